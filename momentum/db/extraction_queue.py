"""Extraction queue database operations.

Jobs move pending -> processing -> completed | skipped | failed. A failed
attempt returns the job to pending until ``max_attempts`` is reached.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any

from momentum.core.config import get_settings
from momentum.core.logging import get_logger
from momentum.core.schemas_extraction import ACTIVE_JOB_STATUSES, FINISHED_JOB_STATUSES, JobStatus
from momentum.db.supabase_client import get_supabase

logger = get_logger(__name__)


def _utc_now_iso() -> str:
    """Get current UTC time as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def content_hash(content: str) -> str:
    """SHA-256 hex digest used to deduplicate identical snapshots."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def find_active_job(user_id: str, source_type: str, source_id: str) -> dict[str, Any] | None:
    """
    Latest pending or processing job for a source.

    Returns:
        Job dict or None
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("extraction_queue")
            .select("id, status, created_at")
            .eq("user_id", user_id)
            .eq("source_type", source_type)
            .eq("source_id", source_id)
            .in_("status", ACTIVE_JOB_STATUSES)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to find active job for {source_type} {source_id}: {e}")
        raise


def refresh_pending_snapshot(
    user_id: str,
    source_type: str,
    source_id: str,
    content: str,
) -> None:
    """Point a still-pending job at the latest content of its source."""
    supabase = get_supabase()

    try:
        (
            supabase.table("extraction_queue")
            .update({"content_snapshot": content, "content_hash": content_hash(content)})
            .eq("user_id", user_id)
            .eq("source_type", source_type)
            .eq("source_id", source_id)
            .eq("status", JobStatus.PENDING.value)
            .execute()
        )

    except Exception as e:
        logger.error(f"Failed to refresh snapshot for {source_type} {source_id}: {e}")
        raise


def enqueue_job(
    user_id: str,
    source_type: str,
    source_id: str,
    content: str,
    priority: int = 0,
) -> dict[str, Any] | None:
    """
    Queue a source for extraction.

    Identical content for the same source is ignored, so this is safe to
    call on every save.

    Returns:
        The queued job, or None when an identical snapshot was already queued
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("extraction_queue")
            .upsert(
                {
                    "user_id": user_id,
                    "source_type": source_type,
                    "source_id": source_id,
                    "content_snapshot": content,
                    "content_hash": content_hash(content),
                    "priority": priority,
                },
                on_conflict="user_id,source_type,source_id,content_hash",
                ignore_duplicates=True,
            )
            .execute()
        )
        if not response.data:
            logger.info(f"Snapshot of {source_type} {source_id} already queued", extra={"user_id": user_id})
            return None

        job = response.data[0]
        logger.info(
            f"Queued {source_type} {source_id} for extraction",
            extra={"user_id": user_id, "job_id": job.get("id")},
        )
        return job

    except Exception as e:
        logger.error(f"Failed to queue {source_type} {source_id}: {e}", extra={"user_id": user_id})
        raise


def queue_source(
    user_id: str,
    source_type: str,
    source_id: str,
    content: str,
    priority: int = 0,
) -> tuple[dict[str, Any] | None, bool]:
    """
    Queue a source unless a job for it is already pending or processing.

    An existing pending job has its snapshot refreshed instead.

    Returns:
        (job, queued) where ``job`` is the new or existing job
    """
    existing = find_active_job(user_id, source_type, source_id)
    if existing:
        refresh_pending_snapshot(user_id, source_type, source_id, content)
        return existing, False

    job = enqueue_job(user_id, source_type, source_id, content, priority)
    return job, job is not None


def find_next_pending_job(user_id: str) -> dict[str, Any] | None:
    """
    The user's next pending job in claim order (priority desc, oldest first).

    Returns:
        Job dict or None
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("extraction_queue")
            .select("id, status, priority, created_at")
            .eq("user_id", user_id)
            .eq("status", JobStatus.PENDING.value)
            .order("priority", desc=True)
            .order("created_at")
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to find next pending job: {e}", extra={"user_id": user_id})
        raise


def claim_job(job_id: str | None = None) -> dict[str, Any] | None:
    """
    Atomically claim a pending job via the ``claim_extraction_job`` RPC.

    The RPC sets status=processing, started_at=now and increments attempts.
    With ``job_id`` it tries that job first, otherwise the highest-priority,
    oldest pending job.

    Returns:
        The claimed job, or None when nothing is pending
    """
    supabase = get_supabase()

    try:
        params = {"target_id": job_id} if job_id else {}
        response = supabase.rpc("claim_extraction_job", params).execute()
        if not response.data:
            return None

        job = response.data[0]
        logger.info(
            f"Claimed extraction job attempt={job.get('attempts')}",
            extra={"job_id": job.get("id"), "user_id": job.get("user_id")},
        )
        return job

    except Exception as e:
        logger.error(f"Failed to claim extraction job: {e}")
        raise


def complete_job(job_id: str, notes_created: int) -> None:
    """Mark a job completed with the number of notes it created."""
    _finish_job(job_id, JobStatus.COMPLETED, notes_created)


def skip_job(job_id: str) -> None:
    """Mark a job skipped because its content held nothing extractable."""
    _finish_job(job_id, JobStatus.SKIPPED, 0)


def _finish_job(job_id: str, status: JobStatus, notes_created: int) -> None:
    supabase = get_supabase()

    try:
        supabase.table("extraction_queue").update(
            {
                "status": status.value,
                "notes_created": notes_created,
                "completed_at": _utc_now_iso(),
            }
        ).eq("id", job_id).execute()

        logger.info(f"Job {status.value} with {notes_created} notes", extra={"job_id": job_id})

    except Exception as e:
        logger.error(f"Failed to mark job {status.value}: {e}", extra={"job_id": job_id})
        raise


def fail_attempt(job: dict[str, Any], error_message: str) -> str:
    """
    Record a failed attempt.

    The job goes back to pending (started_at cleared) unless its attempts
    have reached ``max_attempts``, in which case it is failed.

    Returns:
        The new status value
    """
    supabase = get_supabase()
    max_attempts = job.get("max_attempts") or get_settings().EXTRACTION_MAX_ATTEMPTS
    status = JobStatus.FAILED if (job.get("attempts") or 0) >= max_attempts else JobStatus.PENDING

    try:
        supabase.table("extraction_queue").update(
            {
                "status": status.value,
                "error_message": error_message,
                "started_at": None,
            }
        ).eq("id", job["id"]).execute()

        logger.warning(
            f"Extraction attempt failed, job now {status.value}: {error_message}",
            extra={"job_id": job["id"]},
        )
        return status.value

    except Exception as e:
        logger.error(f"Failed to record failed attempt: {e}", extra={"job_id": job["id"]})
        raise


def reset_stuck_jobs(user_id: str, stuck_minutes: int = 5) -> int:
    """
    Return the user's jobs stuck in processing back to pending.

    Returns:
        Number of jobs reset
    """
    supabase = get_supabase()
    cutoff = (datetime.now(timezone.utc) - timedelta(minutes=stuck_minutes)).isoformat()

    try:
        response = (
            supabase.table("extraction_queue")
            .update({"status": JobStatus.PENDING.value, "started_at": None})
            .eq("user_id", user_id)
            .eq("status", JobStatus.PROCESSING.value)
            .lt("started_at", cutoff)
            .execute()
        )
        count = len(response.data or [])
        logger.info(f"Reset {count} stuck extraction jobs", extra={"user_id": user_id})
        return count

    except Exception as e:
        logger.error(f"Failed to reset stuck jobs: {e}", extra={"user_id": user_id})
        raise


def list_recent_jobs(user_id: str, limit: int = 10) -> list[dict[str, Any]]:
    """Most recent queue items for the debug view, newest first."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("extraction_queue")
            .select(
                "id, source_type, source_id, status, notes_created, error_message, "
                "content_snapshot, created_at, completed_at"
            )
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list recent jobs: {e}", extra={"user_id": user_id})
        raise


def get_latest_job_for_source(user_id: str, source_id: str) -> dict[str, Any] | None:
    """Latest job of any status for a source, or None."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table("extraction_queue")
            .select("id, source_type, source_id, status, attempts, notes_created, error_message, created_at, completed_at")
            .eq("user_id", user_id)
            .eq("source_id", source_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    except Exception as e:
        logger.error(f"Failed to get job status for source {source_id}: {e}", extra={"user_id": user_id})
        raise


def cleanup_old_jobs(retention_days: int = 30) -> int:
    """
    Delete finished jobs older than ``retention_days``.

    Returns:
        Number of jobs deleted
    """
    supabase = get_supabase()
    cutoff = (datetime.now(timezone.utc) - timedelta(days=retention_days)).isoformat()

    try:
        response = (
            supabase.table("extraction_queue")
            .delete()
            .in_("status", FINISHED_JOB_STATUSES)
            .lt("created_at", cutoff)
            .execute()
        )
        count = len(response.data or [])
        logger.info(f"Deleted {count} extraction jobs older than {retention_days} days")
        return count

    except Exception as e:
        logger.error(f"Failed to clean up old extraction jobs: {e}")
        raise
