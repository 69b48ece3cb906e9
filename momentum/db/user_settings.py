"""Per-user key/value settings stored as JSON."""

from datetime import datetime, timezone
from typing import Any

from momentum.core.logging import get_logger
from momentum.db.supabase_client import get_supabase, is_no_rows_error

logger = get_logger(__name__)


def get_setting(user_id: str, key: str) -> Any:
    """
    Get a setting value.

    Returns:
        The stored JSON value, or None when the setting does not exist
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("user_settings")
            .select("value")
            .eq("user_id", user_id)
            .eq("key", key)
            .single()
            .execute()
        )
        return response.data["value"] if response.data else None

    except Exception as e:
        if is_no_rows_error(e):
            return None
        logger.error(f"Failed to get setting '{key}': {e}", extra={"user_id": user_id})
        raise


def set_setting(user_id: str, key: str, value: Any) -> Any:
    """
    Create or replace a setting.

    Returns:
        The stored value
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("user_settings")
            .upsert(
                {
                    "user_id": user_id,
                    "key": key,
                    "value": value,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="user_id,key",
            )
            .execute()
        )
        if not response.data:
            raise ValueError("No data returned from set_setting")

        logger.debug(f"Saved setting '{key}'", extra={"user_id": user_id})
        return response.data[0]["value"]

    except Exception as e:
        logger.error(f"Failed to save setting '{key}': {e}", extra={"user_id": user_id})
        raise


def delete_setting(user_id: str, key: str) -> None:
    supabase = get_supabase()

    try:
        (
            supabase.table("user_settings")
            .delete()
            .eq("user_id", user_id)
            .eq("key", key)
            .execute()
        )

    except Exception as e:
        logger.error(f"Failed to delete setting '{key}': {e}", extra={"user_id": user_id})
        raise
