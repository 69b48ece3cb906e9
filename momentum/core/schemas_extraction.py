"""Pydantic schemas for the extraction queue and note extraction."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class SourceType(str, Enum):
    DOCUMENT = "document"
    COACHING_SESSION = "coaching_session"
    MANUAL_NOTE = "manual_note"


class ConnectionType(str, Enum):
    RELATED = "related"
    SUPPORTS = "supports"
    CONTRADICTS = "contradicts"
    EXTENDS = "extends"
    EXAMPLE_OF = "example_of"


ACTIVE_JOB_STATUSES = [JobStatus.PENDING.value, JobStatus.PROCESSING.value]
FINISHED_JOB_STATUSES = [
    JobStatus.COMPLETED.value,
    JobStatus.FAILED.value,
    JobStatus.SKIPPED.value,
]

# Coaching sessions are extracted after documents
DOCUMENT_PRIORITY = 0
COACHING_SESSION_PRIORITY = -1


# ============================================================================
# Worker LLM output
# ============================================================================


class NoteConnectionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    target_title: str = Field(..., alias="targetTitle")
    type: str = ConnectionType.RELATED.value
    strength: float = 0.5


class WorkerNote(BaseModel):
    """A note proposed by the knowledge-aware extraction prompt.

    ``consolidate_with`` names an existing note to merge into, in which case
    ``merged_content`` replaces that note's content.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    content: str
    consolidate_with: Optional[str] = None
    merged_content: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    connections: list[NoteConnectionOut] = Field(default_factory=list)


class WorkerOutput(BaseModel):
    notes: list[WorkerNote] = Field(default_factory=list)


# ============================================================================
# Request bodies
# ============================================================================


class QueueExtractionRequest(BaseModel):
    """Body for POST /extraction/queue."""
    documentId: Any = None
    triggerProcessing: bool = True


class DirectExtractRequest(BaseModel):
    """Body for POST /ai/extract."""
    text: Any = None
    documentId: Optional[str] = None
    coachingSessionId: Optional[str] = None
