"""API endpoints for editor documents."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.config import get_settings
from momentum.core.logging import get_logger
from momentum.core.schemas_documents import DocumentSave
from momentum.core.schemas_extraction import DOCUMENT_PRIORITY, SourceType
from momentum.db.documents import (
    archive_document,
    create_document,
    delete_document,
    list_documents,
    update_document,
)
from momentum.db.extraction_queue import queue_source

logger = get_logger(__name__)

router = APIRouter()


def _queue_document_if_ready(user_id: str, document_id: str, row: dict[str, Any]) -> None:
    """Queue a saved document for extraction once it is long enough. Never fails the save."""
    if row["word_count"] < get_settings().EXTRACTION_MIN_WORDS:
        return

    try:
        queue_source(
            user_id=user_id,
            source_type=SourceType.DOCUMENT.value,
            source_id=document_id,
            content=row["content"],
            priority=DOCUMENT_PRIORITY,
        )
    except Exception:
        logger.exception(f"Failed to queue document {document_id}", extra={"user_id": user_id})


@router.get("")
async def list_user_documents(
    q: str | None = Query(None, description="Search title and content"),
    auth: AuthContext = Depends(require_auth),
) -> dict:
    try:
        return {"documents": list_documents(auth.user_id, q)}

    except Exception:
        logger.exception("Failed to list documents", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch documents")


@router.post("")
async def create_user_document(body: DocumentSave, auth: AuthContext = Depends(require_auth)) -> dict:
    """First autosave of a new document."""
    row = body.to_row()
    try:
        document = create_document(auth.user_id, row)

    except Exception:
        logger.exception("Failed to create document", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create document")

    _queue_document_if_ready(auth.user_id, document["id"], row)
    return {"document": document}


@router.put("/{document_id}")
async def save_user_document(
    document_id: str,
    body: DocumentSave,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """Autosave title, content and per-word timestamps."""
    row = body.to_row()
    try:
        document = update_document(auth.user_id, document_id, row)
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to save document {document_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to save document")

    _queue_document_if_ready(auth.user_id, document_id, row)
    return {"document": document}


@router.post("/{document_id}/archive")
async def archive_user_document(document_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        if not archive_document(auth.user_id, document_id):
            raise HTTPException(status_code=404, detail="Document not found")
        return {"success": True}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to archive document {document_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to archive document")


@router.delete("/{document_id}")
async def delete_user_document(document_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        delete_document(auth.user_id, document_id)
        return {"success": True}

    except Exception:
        logger.exception(f"Failed to delete document {document_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to delete document")
