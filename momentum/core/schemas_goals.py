"""Pydantic schemas for pursuits (goals), micro-wins and onboarding."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================


class GoalStatus(str, Enum):
    """Lifecycle of a pursuit."""
    ACTIVE = "active"
    PARKED = "parked"
    FULFILLED = "fulfilled"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class PursuitDomain(str, Enum):
    """Aristotelian life domains a pursuit contributes to."""
    SOPHIA = "sophia"          # Intellectual Excellence
    PHRONESIS = "phronesis"    # Practical Wisdom
    ARETE = "arete"            # Character & Virtue
    KOINONIA = "koinonia"      # Community & Justice
    SOMA = "soma"              # Physical Flourishing
    TECHNE = "techne"          # Creative Expression
    THEORIA = "theoria"        # Contemplation


# Statuses returned by the pursuit listing
VISIBLE_STATUSES = [GoalStatus.ACTIVE.value, GoalStatus.PARKED.value]

RULE_OF_THREE_DB_MESSAGE = "more than 3 active goals"
RULE_OF_THREE_ERROR = "You already have 3 active goals. Move one to the Parking Lot first."


# ============================================================================
# Value objects
# ============================================================================


class Completeness(BaseModel):
    """Which parts of a pursuit have been filled in."""
    title: bool = False
    why: bool = False
    steps: bool = False
    notes: bool = False


# ============================================================================
# Request bodies
#
# Required fields are validated in the handlers so that clients get the
# same 400 messages regardless of which field is missing or malformed.
# ============================================================================


class GoalCreate(BaseModel):
    """Body for POST /goals."""
    model_config = ConfigDict(extra="ignore")

    title: Any = None
    why_root: Optional[str] = None
    status: GoalStatus = GoalStatus.ACTIVE


class GoalUpdate(BaseModel):
    """Body for PUT /goals/{id}; only supplied fields are written."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    why_root: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[GoalStatus] = None
    momentum: Any = None
    position: Optional[int] = None
    domain_scores: Optional[dict[str, float]] = None
    completeness: Optional[Completeness] = None


class MicroWinCreate(BaseModel):
    """Body for POST /goals/{id}/micro-wins."""
    description: Any = None
    is_current: bool = False


class MicroWinUpdate(BaseModel):
    """Body for PUT /goals/{id}/micro-wins.

    ``completed_at: true`` marks the micro-win complete now.
    """
    model_config = ConfigDict(extra="ignore")

    micro_win_id: Optional[str] = None
    description: Optional[str] = None
    is_current: Optional[bool] = None
    completed_at: Any = None
    position: Optional[int] = None


class MicroWinDelete(BaseModel):
    """Body for DELETE /goals/{id}/micro-wins."""
    micro_win_id: Optional[str] = None


class MicroWinReorder(BaseModel):
    """Body for PATCH /goals/{id}/micro-wins."""
    ordered_ids: Any = None


class BulkSelection(BaseModel):
    """One onboarding pick turned into a parked pursuit."""
    title: str
    domain_scores: dict[str, float] = Field(default_factory=dict)
    is_predefined: bool = False


class BulkPursuitRequest(BaseModel):
    """Body for POST /pursuits/bulk."""
    selections: Optional[list[BulkSelection]] = None
