"""Pydantic schemas for goal coaching, why drilling and writing prompts."""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from momentum.core.schemas_goals import Completeness


class CoachingStage(str, Enum):
    """Where a coaching conversation is."""
    WELCOME = "welcome"
    GOAL_DISCOVERY = "goal_discovery"
    WHY_DRILLING = "why_drilling"
    MICRO_WIN = "micro_win"
    CONFIRMATION = "confirmation"
    COMPLETE = "complete"
    CONTINUATION = "continuation"
    DEEPEN = "deepen"          # Reviewing a parked, incomplete pursuit


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


UpdateType = Literal["goal", "why", "step", "notes"]


class ChatMessage(BaseModel):
    role: MessageRole
    content: str


class CoachingContext(BaseModel):
    """Client-held state of a coaching conversation (camelCase on the wire)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    stage: CoachingStage = CoachingStage.WELCOME
    goal_title: Optional[str] = Field(None, alias="goalTitle")
    why_root: Optional[str] = Field(None, alias="whyRoot")
    micro_win: Optional[str] = Field(None, alias="microWin")
    notes: Optional[str] = None
    conversation_history: list[ChatMessage] = Field(default_factory=list, alias="conversationHistory")
    is_continuation: bool = Field(False, alias="isContinuation")
    domain: Optional[str] = None
    completeness: Optional[Completeness] = None


class ParsedCoachingResponse(BaseModel):
    """Coach reply with any captured marker value pulled out."""
    message: str
    goal_title: Optional[str] = None
    why_root: Optional[str] = None
    micro_win: Optional[str] = None
    notes: Optional[str] = None
    is_complete: bool = False
    is_update: bool = False
    update_type: Optional[UpdateType] = None


class ParsedWhyResponse(BaseModel):
    is_complete: bool
    message: str
    why_root: Optional[str] = None


# ============================================================================
# Request bodies
# ============================================================================


class CoachGoalRequest(BaseModel):
    """Body for POST /ai/coach-goal."""
    context: Optional[CoachingContext] = None
    userMessage: Optional[str] = None


class DrillWhyRequest(BaseModel):
    """Body for POST /ai/drill-why."""
    goal_title: Any = None
    conversation: list[ChatMessage] = Field(default_factory=list)


class GenerateTitleRequest(BaseModel):
    content: Any = None


class PromptRequest(BaseModel):
    """Body for POST /ai/prompt."""
    context: Any = None
    documentId: Optional[str] = None


class SessionCreate(BaseModel):
    goal_id: Optional[str] = None
    stage: CoachingStage = CoachingStage.WELCOME


class SessionUpdate(BaseModel):
    """Body for PATCH /coaching-sessions/{id}; other fields are ignored."""
    model_config = ConfigDict(extra="ignore")

    stage: Optional[CoachingStage] = None
    goal_id: Optional[str] = None
    is_active: Optional[bool] = None


class MessageCreate(BaseModel):
    role: Any = None
    content: Any = None
