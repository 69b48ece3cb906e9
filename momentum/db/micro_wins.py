"""Micro-win database operations."""

from typing import Any

from momentum.core.logging import get_logger
from momentum.db.supabase_client import get_supabase

logger = get_logger(__name__)


def list_micro_wins(goal_id: str) -> list[dict[str, Any]]:
    """List a goal's micro-wins ordered by position."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("micro_wins")
            .select("*")
            .eq("goal_id", goal_id)
            .order("position")
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list micro-wins for goal {goal_id}: {e}")
        raise


def count_micro_wins(goal_id: str) -> int:
    """Count a goal's micro-wins."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("micro_wins")
            .select("id", count="exact")
            .eq("goal_id", goal_id)
            .execute()
        )
        return response.count or 0

    except Exception as e:
        logger.error(f"Failed to count micro-wins for goal {goal_id}: {e}")
        raise


def create_micro_win(
    goal_id: str,
    description: str,
    is_current: bool,
    position: int,
) -> dict[str, Any]:
    """
    Insert a micro-win at the given position.

    Returns:
        Created micro-win row

    Raises:
        Exception: If database operation fails
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("micro_wins")
            .insert(
                {
                    "goal_id": goal_id,
                    "description": description,
                    "is_current": is_current,
                    "position": position,
                }
            )
            .execute()
        )

        if not response.data:
            raise ValueError("No data returned from create_micro_win")

        return response.data[0]

    except Exception as e:
        logger.error(f"Failed to create micro-win for goal {goal_id}: {e}")
        raise


def get_micro_win(goal_id: str, micro_win_id: str) -> dict[str, Any] | None:
    """Get a micro-win of a goal, or None."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("micro_wins")
            .select("*")
            .eq("id", micro_win_id)
            .eq("goal_id", goal_id)
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to get micro-win {micro_win_id}: {e}")
        raise


def update_micro_win(
    goal_id: str,
    micro_win_id: str,
    updates: dict[str, Any],
) -> dict[str, Any] | None:
    """Apply a partial update; returns the updated row or None if nothing matched."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("micro_wins")
            .update(updates)
            .eq("id", micro_win_id)
            .eq("goal_id", goal_id)
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to update micro-win {micro_win_id}: {e}")
        raise


def delete_micro_win(goal_id: str, micro_win_id: str) -> None:
    """Delete a micro-win."""
    supabase = get_supabase()

    try:
        (
            supabase.table("micro_wins")
            .delete()
            .eq("id", micro_win_id)
            .eq("goal_id", goal_id)
            .execute()
        )
        logger.info(f"Deleted micro-win {micro_win_id} of goal {goal_id}")

    except Exception as e:
        logger.error(f"Failed to delete micro-win {micro_win_id}: {e}")
        raise


def promote_next_micro_win(goal_id: str) -> dict[str, Any] | None:
    """
    Make the lowest-position incomplete micro-win the current one.

    Args:
        goal_id: Goal whose micro-wins are considered

    Returns:
        The promoted micro-win, or None when every micro-win is complete
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("micro_wins")
            .select("*")
            .eq("goal_id", goal_id)
            .is_("completed_at", "null")
            .order("position")
            .limit(1)
            .execute()
        )
        if not response.data:
            return None

        next_win = response.data[0]
        supabase.table("micro_wins").update({"is_current": True}).eq("id", next_win["id"]).execute()
        logger.info(f"Promoted micro-win {next_win['id']} to current for goal {goal_id}")
        return {**next_win, "is_current": True}

    except Exception as e:
        logger.error(f"Failed to promote next micro-win for goal {goal_id}: {e}")
        raise


def reorder_micro_wins(goal_id: str, ordered_ids: list[str]) -> None:
    """Set each micro-win's position to its index in ``ordered_ids``."""
    supabase = get_supabase()

    try:
        for position, micro_win_id in enumerate(ordered_ids):
            (
                supabase.table("micro_wins")
                .update({"position": position})
                .eq("id", micro_win_id)
                .eq("goal_id", goal_id)
                .execute()
            )

    except Exception as e:
        logger.error(f"Failed to reorder micro-wins for goal {goal_id}: {e}")
        raise
