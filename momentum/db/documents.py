"""Document database operations."""

from datetime import datetime, timezone
from typing import Any

from momentum.core.logging import get_logger
from momentum.db.supabase_client import get_supabase

logger = get_logger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _quoted_ilike_pattern(query: str) -> str:
    """Substring pattern double-quoted so commas and parentheses stay inside the or_ filter."""
    escaped = query.replace("\\", "\\\\").replace('"', '\\"')
    return f'"%{escaped}%"'


def list_documents(user_id: str, query: str | None = None) -> list[dict[str, Any]]:
    """
    List non-archived documents, most recently updated first.

    Args:
        user_id: Owner of the documents
        query: Optional case-insensitive match on title or content

    Returns:
        Document rows
    """
    supabase = get_supabase()

    try:
        request = (
            supabase.table("documents")
            .select("*")
            .eq("user_id", user_id)
            .eq("is_archived", False)
        )
        if query:
            pattern = _quoted_ilike_pattern(query)
            request = request.or_(f"title.ilike.{pattern},content.ilike.{pattern}")

        response = request.order("updated_at", desc=True).execute()
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list documents: {e}", extra={"user_id": user_id})
        raise


def list_recent_documents(user_id: str, limit: int = 10) -> list[dict[str, Any]]:
    """Lightweight listing for the extraction debug view."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("documents")
            .select("id, title, word_count, created_at, updated_at")
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list recent documents: {e}", extra={"user_id": user_id})
        raise


def list_document_texts(user_id: str) -> list[dict[str, Any]]:
    """Title, content and created_at of non-archived documents."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("documents")
            .select("title, content, created_at")
            .eq("user_id", user_id)
            .eq("is_archived", False)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list document texts: {e}", extra={"user_id": user_id})
        raise


def get_document(document_id: str) -> dict[str, Any] | None:
    """
    Get a document regardless of owner.

    Callers compare ``user_id`` themselves so they can tell "missing" from
    "not yours".
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("documents")
            .select("id, user_id, title, content, word_count")
            .eq("id", document_id)
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to get document {document_id}: {e}")
        raise


def get_document_titles(document_ids: list[str]) -> dict[str, str]:
    """Map of document id to title."""
    if not document_ids:
        return {}

    supabase = get_supabase()

    try:
        response = (
            supabase.table("documents")
            .select("id, title")
            .in_("id", document_ids)
            .execute()
        )
        return {doc["id"]: doc["title"] for doc in response.data or []}

    except Exception as e:
        logger.error(f"Failed to get document titles: {e}")
        raise


def create_document(user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Insert a document from autosave fields."""
    supabase = get_supabase()

    try:
        response = supabase.table("documents").insert({"user_id": user_id, **fields}).execute()

        if not response.data:
            raise ValueError("No data returned from create_document")

        document = response.data[0]
        logger.info(f"Created document {document.get('id')}", extra={"user_id": user_id})
        return document

    except Exception as e:
        logger.error(f"Failed to create document: {e}", extra={"user_id": user_id})
        raise


def update_document(
    user_id: str,
    document_id: str,
    fields: dict[str, Any],
) -> dict[str, Any] | None:
    """Apply autosave fields; returns the updated row or None."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("documents")
            .update({**fields, "updated_at": _utc_now_iso()})
            .eq("id", document_id)
            .eq("user_id", user_id)
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to update document {document_id}: {e}", extra={"user_id": user_id})
        raise


def archive_document(user_id: str, document_id: str) -> bool:
    """Hide a document from listings; returns whether a row matched."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("documents")
            .update({"is_archived": True})
            .eq("id", document_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)

    except Exception as e:
        logger.error(f"Failed to archive document {document_id}: {e}", extra={"user_id": user_id})
        raise


def delete_document(user_id: str, document_id: str) -> None:
    supabase = get_supabase()

    try:
        (
            supabase.table("documents")
            .delete()
            .eq("id", document_id)
            .eq("user_id", user_id)
            .execute()
        )
        logger.info(f"Deleted document {document_id}", extra={"user_id": user_id})

    except Exception as e:
        logger.error(f"Failed to delete document {document_id}: {e}", extra={"user_id": user_id})
        raise
