"""Profile lookups and writing prompt history."""

from typing import Any

from momentum.core.logging import get_logger
from momentum.db.supabase_client import get_supabase, is_no_rows_error

logger = get_logger(__name__)


def get_learning_goals(user_id: str) -> list[str]:
    """Learning goals stored on the user's profile, or an empty list."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("profiles")
            .select("learning_goals")
            .eq("id", user_id)
            .single()
            .execute()
        )
        return (response.data or {}).get("learning_goals") or []

    except Exception as e:
        if is_no_rows_error(e):
            return []
        logger.error(f"Failed to get learning goals: {e}", extra={"user_id": user_id})
        raise


def record_prompt(
    user_id: str,
    document_id: str,
    context: str,
    prompt: str,
    provider: str,
) -> dict[str, Any] | None:
    """Store a generated writing prompt against its document."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("prompt_history")
            .insert(
                {
                    "user_id": user_id,
                    "document_id": document_id,
                    "context_text": context[:500],
                    "prompt_generated": prompt,
                    "provider": provider,
                }
            )
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to record prompt for document {document_id}: {e}", extra={"user_id": user_id})
        raise
