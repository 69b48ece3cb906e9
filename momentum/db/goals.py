"""Pursuit (goal) database operations."""

from typing import Any

from momentum.core.logging import get_logger
from momentum.core.schemas_goals import (
    RULE_OF_THREE_DB_MESSAGE,
    VISIBLE_STATUSES,
    GoalStatus,
)
from momentum.db.supabase_client import error_message, get_supabase

logger = get_logger(__name__)

GOAL_WITH_MICRO_WINS = "*, micro_wins (*)"


class GoalLimitError(Exception):
    """Raised when the database rejects a goal because the user already has 3 active."""


def _raise_if_goal_limit(e: Exception) -> None:
    if RULE_OF_THREE_DB_MESSAGE in error_message(e):
        raise GoalLimitError(error_message(e)) from e


def with_current_micro_win(goal: dict[str, Any]) -> dict[str, Any]:
    """Sort a goal's embedded micro-wins by position and expose the current one."""
    micro_wins = sorted(goal.get("micro_wins") or [], key=lambda mw: mw.get("position") or 0)
    current = next((mw for mw in micro_wins if mw.get("is_current")), None)
    return {**goal, "micro_wins": micro_wins, "current_micro_win": current}


def list_goals(user_id: str) -> list[dict[str, Any]]:
    """
    List a user's active and parked goals with their micro-wins.

    Args:
        user_id: Owner of the goals

    Returns:
        Goals ordered by status then position, each with ``micro_wins``
        and ``current_micro_win``

    Raises:
        Exception: If database operation fails
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("goals")
            .select(GOAL_WITH_MICRO_WINS)
            .eq("user_id", user_id)
            .in_("status", VISIBLE_STATUSES)
            .order("status")
            .order("position")
            .execute()
        )
        return [with_current_micro_win(goal) for goal in response.data or []]

    except Exception as e:
        logger.error(f"Failed to list goals: {e}", extra={"user_id": user_id})
        raise


def count_goals(user_id: str, status: str) -> int:
    """Count a user's goals in one status (used to append at the end of a column)."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("goals")
            .select("id", count="exact")
            .eq("user_id", user_id)
            .eq("status", status)
            .execute()
        )
        return response.count or 0

    except Exception as e:
        logger.error(f"Failed to count goals: {e}", extra={"user_id": user_id})
        raise


def create_goal(
    user_id: str,
    title: str,
    why_root: str | None,
    status: str,
    position: int,
) -> dict[str, Any]:
    """
    Insert a new goal.

    Args:
        user_id: Owner of the goal
        title: Trimmed goal title
        why_root: Trimmed root motivation or None
        status: Initial status
        position: Position within the status column

    Returns:
        Created goal row

    Raises:
        GoalLimitError: If the user already has the maximum active goals
        Exception: If database operation fails
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("goals")
            .insert(
                {
                    "user_id": user_id,
                    "title": title,
                    "why_root": why_root,
                    "status": status,
                    "position": position,
                }
            )
            .execute()
        )

        if not response.data:
            raise ValueError("No data returned from create_goal")

        goal = response.data[0]
        logger.info(f"Created goal {goal.get('id')}", extra={"user_id": user_id})
        return goal

    except Exception as e:
        _raise_if_goal_limit(e)
        logger.error(f"Failed to create goal: {e}", extra={"user_id": user_id})
        raise


def get_goal(user_id: str, goal_id: str) -> dict[str, Any] | None:
    """
    Get one of the user's goals with its micro-wins.

    Returns:
        Goal dict or None if not found
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("goals")
            .select(GOAL_WITH_MICRO_WINS)
            .eq("id", goal_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            return None
        return with_current_micro_win(response.data[0])

    except Exception as e:
        logger.error(f"Failed to get goal {goal_id}: {e}", extra={"user_id": user_id})
        raise


def goal_belongs_to_user(user_id: str, goal_id: str) -> bool:
    """Check that a goal exists and is owned by the user."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("goals")
            .select("id")
            .eq("id", goal_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)

    except Exception as e:
        logger.error(f"Failed to check goal ownership {goal_id}: {e}", extra={"user_id": user_id})
        raise


def update_goal(user_id: str, goal_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    """
    Apply a partial update to one of the user's goals.

    Returns:
        Updated goal row or None if no goal matched

    Raises:
        GoalLimitError: If activating the goal would exceed the active limit
        Exception: If database operation fails
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("goals")
            .update(updates)
            .eq("id", goal_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            return None

        logger.info(f"Updated goal {goal_id} fields={sorted(updates)}", extra={"user_id": user_id})
        return response.data[0]

    except Exception as e:
        _raise_if_goal_limit(e)
        logger.error(f"Failed to update goal {goal_id}: {e}", extra={"user_id": user_id})
        raise


def archive_goal(user_id: str, goal_id: str) -> None:
    """Soft-delete a goal by moving it to the archived status."""
    supabase = get_supabase()

    try:
        (
            supabase.table("goals")
            .update({"status": GoalStatus.ARCHIVED.value})
            .eq("id", goal_id)
            .eq("user_id", user_id)
            .execute()
        )
        logger.info(f"Archived goal {goal_id}", extra={"user_id": user_id})

    except Exception as e:
        logger.error(f"Failed to archive goal {goal_id}: {e}", extra={"user_id": user_id})
        raise


def insert_goals(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Insert several goals in one request.

    Args:
        rows: Complete goal rows

    Returns:
        Created rows in insertion order
    """
    supabase = get_supabase()

    try:
        response = supabase.table("goals").insert(rows).execute()
        logger.info(f"Inserted {len(response.data or [])} goals")
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to insert goals: {e}")
        raise


def insert_onboarding_selections(rows: list[dict[str, Any]]) -> None:
    """Record which onboarding items produced which pursuits."""
    supabase = get_supabase()

    try:
        supabase.table("onboarding_selections").insert(rows).execute()

    except Exception as e:
        logger.error(f"Failed to store onboarding selections: {e}")
        raise


def list_active_goal_contexts(user_id: str) -> list[dict[str, Any]]:
    """
    Summaries of the user's active goals for prompt personalisation.

    Returns:
        Dicts with title, why_root, momentum and current_micro_win (description)
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("goals")
            .select("title, why_root, momentum, micro_wins (description, is_current)")
            .eq("user_id", user_id)
            .eq("status", GoalStatus.ACTIVE.value)
            .order("position")
            .execute()
        )

        contexts = []
        for goal in response.data or []:
            current = next(
                (mw for mw in goal.get("micro_wins") or [] if mw.get("is_current")), None
            )
            contexts.append(
                {
                    "title": goal["title"],
                    "why_root": goal.get("why_root"),
                    "momentum": goal.get("momentum") or 3,
                    "current_micro_win": current["description"] if current else None,
                }
            )
        return contexts

    except Exception as e:
        logger.error(f"Failed to list active goal contexts: {e}", extra={"user_id": user_id})
        raise
