"""API endpoints for the background note-extraction queue."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.config import get_settings
from momentum.core.logging import get_logger
from momentum.core.schemas_documents import word_count
from momentum.core.schemas_extraction import DOCUMENT_PRIORITY, QueueExtractionRequest, SourceType
from momentum.db.documents import get_document, list_recent_documents
from momentum.db.extraction_queue import (
    claim_job,
    find_next_pending_job,
    get_latest_job_for_source,
    list_recent_jobs,
    queue_source,
    reset_stuck_jobs,
)
from momentum.db.notes import count_notes
from momentum.graphs.extraction_worker_graph import process_claimed_job, run_extraction_worker

logger = get_logger(__name__)

router = APIRouter()

PREVIEW_LENGTH = 200


async def _process_job_in_background(job_id: str) -> None:
    try:
        result = await run_extraction_worker(job_id)
        logger.info(f"Background extraction finished: {result}", extra={"job_id": job_id})
    except Exception:
        logger.exception("Background extraction crashed", extra={"job_id": job_id})


@router.post("/queue")
async def queue_document(
    body: QueueExtractionRequest,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """
    Queue a document for extraction and optionally start processing it.

    Raises:
        HTTPException 400: If documentId is missing
        HTTPException 404: If the document does not exist
        HTTPException 403: If the document belongs to someone else
    """
    if not body.documentId or not isinstance(body.documentId, str):
        raise HTTPException(status_code=400, detail="documentId is required")

    settings = get_settings()

    try:
        document = get_document(body.documentId)
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")
        if document["user_id"] != auth.user_id:
            raise HTTPException(status_code=403, detail="Forbidden")

        content = document.get("content") or ""
        if word_count(content) < settings.EXTRACTION_MIN_WORDS:
            return {"message": "Document too short for extraction", "queued": False}

        job, queued = queue_source(
            user_id=auth.user_id,
            source_type=SourceType.DOCUMENT.value,
            source_id=document["id"],
            content=content,
            priority=DOCUMENT_PRIORITY,
        )

        if not job:
            return {"message": "Content unchanged since last extraction", "queued": False}

        if not queued:
            return {
                "message": "Document already queued for extraction",
                "queued": False,
                "existingJobId": job["id"],
            }

        if body.triggerProcessing:
            background_tasks.add_task(_process_job_in_background, job["id"])

        return {"message": "Extraction triggered", "queued": True, "jobId": job["id"]}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to queue document {body.documentId}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to queue extraction")


@router.post("/process")
async def process_queue(auth: AuthContext = Depends(require_auth)) -> dict:
    """
    Run one worker pass over the caller's next pending job.

    The claim RPC falls back to the global queue when the target was taken
    concurrently; a job owned by someone else is processed but only its
    note count is returned.
    """
    try:
        pending = find_next_pending_job(auth.user_id)
        job = claim_job(pending["id"]) if pending else None
        if not job:
            return {"message": "No pending jobs"}

        result = await process_claimed_job(job)

    except Exception:
        logger.exception("Extraction pass failed", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to process extraction queue")

    if job["user_id"] != auth.user_id:
        logger.info("Processed a job owned by another user", extra={"user_id": auth.user_id, "job_id": job["id"]})
        return {"message": "Processed queued job", "notes_created": result.get("notes_created", 0)}

    if "error" in result:
        raise HTTPException(status_code=500, detail=result["error"])
    return result


@router.post("/reset-stuck")
async def reset_stuck(auth: AuthContext = Depends(require_auth)) -> dict:
    """Return jobs stuck in processing back to pending."""
    try:
        count = reset_stuck_jobs(auth.user_id, get_settings().EXTRACTION_STUCK_MINUTES)
        return {"message": "Reset complete", "jobsReset": count}

    except Exception:
        logger.exception("Failed to reset stuck jobs", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to reset stuck jobs")


@router.get("/debug")
async def debug_queue(auth: AuthContext = Depends(require_auth)) -> dict:
    """Recent queue items, recent documents and the atomic note count."""
    try:
        queue_items = []
        for job in list_recent_jobs(auth.user_id):
            item = dict(job)
            snapshot = item.pop("content_snapshot", None) or ""
            item["content_preview"] = snapshot[:PREVIEW_LENGTH] + "..."
            queue_items.append(item)

        return {
            "queueItems": queue_items,
            "documents": list_recent_documents(auth.user_id),
            "totalAtomicNotes": count_notes(auth.user_id),
        }

    except Exception:
        logger.exception("Failed to load extraction debug info", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to load debug info")


@router.get("/status")
async def job_status(
    source_id: str = Query(..., description="Document or coaching session id"),
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """Latest extraction job for a source, or ``{job: null}``."""
    try:
        return {"job": get_latest_job_for_source(auth.user_id, source_id)}

    except Exception:
        logger.exception(f"Failed to get extraction status for {source_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to get extraction status")
