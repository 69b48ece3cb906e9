"""Atomic note, tag and connection database operations."""

from datetime import datetime, timezone
from typing import Any

from momentum.core.logging import get_logger
from momentum.db.supabase_client import get_supabase

logger = get_logger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================================
# Notes
# ============================================================================


def list_note_summaries(user_id: str) -> list[dict[str, Any]]:
    """All of a user's notes as ``{id, title, content}``."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("atomic_notes")
            .select("id, title, content")
            .eq("user_id", user_id)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list notes: {e}", extra={"user_id": user_id})
        raise


def list_notes_for_graph(user_id: str) -> list[dict[str, Any]]:
    """Notes newest first with the columns the graph needs."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("atomic_notes")
            .select("id, title, content, note_type, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list notes for graph: {e}", extra={"user_id": user_id})
        raise


def list_note_texts(user_id: str) -> list[dict[str, Any]]:
    """Title, content and created_at of every note."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("atomic_notes")
            .select("title, content, created_at")
            .eq("user_id", user_id)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list note texts: {e}", extra={"user_id": user_id})
        raise


def count_notes(user_id: str) -> int:
    supabase = get_supabase()

    try:
        response = (
            supabase.table("atomic_notes")
            .select("id", count="exact")
            .eq("user_id", user_id)
            .execute()
        )
        return response.count or 0

    except Exception as e:
        logger.error(f"Failed to count notes: {e}", extra={"user_id": user_id})
        raise


def create_note(row: dict[str, Any]) -> dict[str, Any]:
    """
    Insert an atomic note.

    Args:
        row: Column values; ``user_id``, ``title`` and ``content`` are required

    Returns:
        Created note row
    """
    supabase = get_supabase()

    try:
        response = supabase.table("atomic_notes").insert(row).execute()

        if not response.data:
            raise ValueError("No data returned from create_note")

        return response.data[0]

    except Exception as e:
        logger.error(f"Failed to create note '{row.get('title')}': {e}", extra={"user_id": row.get("user_id")})
        raise


def update_note_content(note_id: str, content: str) -> None:
    supabase = get_supabase()

    try:
        (
            supabase.table("atomic_notes")
            .update({"content": content, "updated_at": _utc_now_iso()})
            .eq("id", note_id)
            .execute()
        )

    except Exception as e:
        logger.error(f"Failed to update note {note_id}: {e}")
        raise


def add_note_history(
    note_id: str,
    title: str,
    content: str,
    changed_by: str,
    source_id: str | None = None,
) -> None:
    """Snapshot a note before it is overwritten."""
    supabase = get_supabase()

    try:
        supabase.table("note_history").insert(
            {
                "note_id": note_id,
                "title": title,
                "content": content,
                "changed_by": changed_by,
                "source_id": source_id,
            }
        ).execute()

    except Exception as e:
        logger.error(f"Failed to snapshot note {note_id}: {e}")
        raise


# ============================================================================
# Sources
# ============================================================================


def add_note_source(note_id: str, source_type: str, source_id: str) -> None:
    """Record that a note came from a document or coaching session."""
    supabase = get_supabase()

    try:
        supabase.table("note_sources").insert(
            {"note_id": note_id, "source_type": source_type, "source_id": source_id}
        ).execute()

    except Exception as e:
        logger.error(f"Failed to link note {note_id} to {source_type} {source_id}: {e}")
        raise


def list_note_sources(note_ids: list[str]) -> list[dict[str, Any]]:
    if not note_ids:
        return []

    supabase = get_supabase()

    try:
        response = (
            supabase.table("note_sources")
            .select("note_id, source_type, source_id")
            .in_("note_id", note_ids)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list note sources: {e}")
        raise


# ============================================================================
# Tags
# ============================================================================


def list_tag_names(user_id: str, limit: int = 20) -> list[str]:
    """Names of the user's tags, up to ``limit``."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("tags")
            .select("name")
            .eq("user_id", user_id)
            .limit(limit)
            .execute()
        )
        return [t["name"] for t in response.data or []]

    except Exception as e:
        logger.error(f"Failed to list tags: {e}", extra={"user_id": user_id})
        raise


def get_or_create_tag(user_id: str, name: str) -> str:
    """
    Look up a tag by lowercased name, inserting it when missing.

    Returns:
        Tag id
    """
    supabase = get_supabase()
    name = name.lower()

    try:
        response = (
            supabase.table("tags")
            .select("id")
            .eq("user_id", user_id)
            .eq("name", name)
            .execute()
        )
        if response.data:
            return response.data[0]["id"]

        response = supabase.table("tags").insert({"user_id": user_id, "name": name}).execute()
        if not response.data:
            raise ValueError("No data returned from tag insert")
        return response.data[0]["id"]

    except Exception as e:
        logger.error(f"Failed to get or create tag '{name}': {e}", extra={"user_id": user_id})
        raise


def upsert_tag(user_id: str, name: str) -> str | None:
    """Upsert a tag on ``user_id,name`` and return its id."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("tags")
            .upsert({"user_id": user_id, "name": name}, on_conflict="user_id,name")
            .execute()
        )
        return response.data[0]["id"] if response.data else None

    except Exception as e:
        logger.error(f"Failed to upsert tag '{name}': {e}", extra={"user_id": user_id})
        raise


def tag_note(note_id: str, tag_id: str) -> None:
    supabase = get_supabase()

    try:
        supabase.table("note_tags").insert({"note_id": note_id, "tag_id": tag_id}).execute()

    except Exception as e:
        logger.error(f"Failed to tag note {note_id}: {e}")
        raise


def list_note_tag_names(note_ids: list[str]) -> list[dict[str, Any]]:
    """Rows of ``{note_id, tags: {name}}`` for the given notes."""
    if not note_ids:
        return []

    supabase = get_supabase()

    try:
        response = (
            supabase.table("note_tags")
            .select("note_id, tags:tag_id (name)")
            .in_("note_id", note_ids)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list note tags: {e}")
        raise


# ============================================================================
# Connections
# ============================================================================


def create_connection(
    user_id: str,
    source_note_id: str,
    target_note_id: str,
    connection_type: str,
    strength: float,
) -> None:
    """Insert an AI-generated link between two notes."""
    supabase = get_supabase()

    try:
        supabase.table("note_connections").insert(
            {
                "user_id": user_id,
                "source_note_id": source_note_id,
                "target_note_id": target_note_id,
                "connection_type": connection_type,
                "strength": strength,
                "ai_generated": True,
            }
        ).execute()

    except Exception as e:
        logger.error(
            f"Failed to connect note {source_note_id} -> {target_note_id}: {e}",
            extra={"user_id": user_id},
        )
        raise


def list_connections(user_id: str) -> list[dict[str, Any]]:
    supabase = get_supabase()

    try:
        response = (
            supabase.table("note_connections")
            .select("source_note_id, target_note_id, connection_type, strength")
            .eq("user_id", user_id)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list connections: {e}", extra={"user_id": user_id})
        raise
