"""Coaching session and message database operations."""

from typing import Any

from momentum.core.logging import get_logger
from momentum.db.supabase_client import get_supabase

logger = get_logger(__name__)

SESSION_WITH_MESSAGES = "*, coaching_messages (*)"


def with_sorted_messages(session: dict[str, Any]) -> dict[str, Any]:
    """Replace the embedded ``coaching_messages`` with ``messages`` oldest first."""
    session = dict(session)
    messages = session.pop("coaching_messages", None) or []
    session["messages"] = sorted(messages, key=lambda m: m.get("created_at") or "")
    return session


def list_sessions(user_id: str, goal_id: str | None = None) -> list[dict[str, Any]]:
    """
    List a user's coaching sessions, newest first.

    Args:
        user_id: Owner of the sessions
        goal_id: Optional goal filter

    Returns:
        Sessions with chronologically sorted ``messages``
    """
    supabase = get_supabase()

    try:
        query = (
            supabase.table("coaching_sessions")
            .select(SESSION_WITH_MESSAGES)
            .eq("user_id", user_id)
        )
        if goal_id:
            query = query.eq("goal_id", goal_id)

        response = query.order("created_at", desc=True).execute()
        return [with_sorted_messages(s) for s in response.data or []]

    except Exception as e:
        logger.error(f"Failed to list coaching sessions: {e}", extra={"user_id": user_id})
        raise


def create_session(user_id: str, goal_id: str | None, stage: str) -> dict[str, Any]:
    """Create an active coaching session."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("coaching_sessions")
            .insert(
                {
                    "user_id": user_id,
                    "goal_id": goal_id,
                    "stage": stage,
                    "is_active": True,
                }
            )
            .execute()
        )

        if not response.data:
            raise ValueError("No data returned from create_session")

        session = response.data[0]
        logger.info(f"Created coaching session {session.get('id')}", extra={"user_id": user_id})
        return session

    except Exception as e:
        logger.error(f"Failed to create coaching session: {e}", extra={"user_id": user_id})
        raise


def get_session(user_id: str, session_id: str) -> dict[str, Any] | None:
    """Get one of the user's sessions with sorted messages, or None."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("coaching_sessions")
            .select(SESSION_WITH_MESSAGES)
            .eq("id", session_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            return None
        return with_sorted_messages(response.data[0])

    except Exception as e:
        logger.error(f"Failed to get coaching session {session_id}: {e}", extra={"user_id": user_id})
        raise


def session_belongs_to_user(user_id: str, session_id: str) -> bool:
    """Check that a session exists and is owned by the user."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("coaching_sessions")
            .select("id")
            .eq("id", session_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)

    except Exception as e:
        logger.error(f"Failed to check session ownership {session_id}: {e}")
        raise


def update_session(
    user_id: str,
    session_id: str,
    updates: dict[str, Any],
) -> dict[str, Any] | None:
    """Apply a partial update; returns the updated row or None if nothing matched."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("coaching_sessions")
            .update(updates)
            .eq("id", session_id)
            .eq("user_id", user_id)
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to update coaching session {session_id}: {e}")
        raise


def add_message(session_id: str, role: str, content: str) -> dict[str, Any]:
    """Append a message to a session."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("coaching_messages")
            .insert({"session_id": session_id, "role": role, "content": content})
            .execute()
        )

        if not response.data:
            raise ValueError("No data returned from add_message")

        return response.data[0]

    except Exception as e:
        logger.error(f"Failed to add message to session {session_id}: {e}")
        raise


def list_messages(session_id: str) -> list[dict[str, Any]]:
    """List a session's messages oldest first."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("coaching_messages")
            .select("role, content, created_at")
            .eq("session_id", session_id)
            .order("created_at")
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list messages of session {session_id}: {e}")
        raise


def get_session_goals(session_ids: list[str]) -> dict[str, dict[str, Any]]:
    """
    Map of session id to its goal ``{id, title, status}``.

    Sessions without a goal are left out.
    """
    if not session_ids:
        return {}

    supabase = get_supabase()

    try:
        response = (
            supabase.table("coaching_sessions")
            .select("id, goals:goal_id (id, title, status)")
            .in_("id", session_ids)
            .execute()
        )
        return {s["id"]: s["goals"] for s in response.data or [] if s.get("goals")}

    except Exception as e:
        logger.error(f"Failed to get session goals: {e}")
        raise
