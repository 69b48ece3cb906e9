"""Supabase client initialization."""

from functools import lru_cache

from supabase import Client, create_client

from momentum.core.config import get_settings

# PostgREST error code for ".single()" queries that matched no rows
NO_ROWS_CODE = "PGRST116"


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get Supabase client instance (cached singleton).

    Returns:
        Supabase client configured with service role key

    Raises:
        Exception: If client initialization fails
    """
    try:
        settings = get_settings()
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        return client
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e


def error_message(error: Exception) -> str:
    """Best-effort message text of a PostgREST error."""
    message = getattr(error, "message", None)
    return message if isinstance(message, str) and message else str(error)


def is_no_rows_error(error: Exception) -> bool:
    """True when a PostgREST error only means the query matched no rows."""
    return getattr(error, "code", None) == NO_ROWS_CODE
