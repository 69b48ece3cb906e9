"""Pydantic schemas for Note Vitality Quotient (NVQ) scoring."""

from enum import Enum
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class NoteStatus(str, Enum):
    SEED = "Seed"
    SAPLING = "Sapling"
    EVERGREEN = "Evergreen"


class NoteType(str, Enum):
    LOGIC = "Logic"
    TECHNICAL = "Technical"
    REFLECTION = "Reflection"


class Stakeholder(str, Enum):
    SELF = "Self"
    FUTURE_USERS = "Future Users"
    AI_AGENT = "AI Agent"


class QualityStatus(str, Enum):
    PENDING = "pending"
    PASSING = "passing"
    NEEDS_REVIEW = "needs_review"
    MANUAL_OVERRIDE = "manual_override"


TagCategory = Literal["action", "skill", "evolution", "project"]
ConnectionDirection = Literal["upward", "sideways", "downward"]


# ============================================================================
# Extracted notes (LLM output uses camelCase keys)
# ============================================================================


class ExtractedConnection(BaseModel):
    """A link from an extracted note to another note, by title."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    target_title: str = Field(..., alias="targetTitle")
    type: str = "related"
    strength: float = 0.5


class NVQExtractedNote(BaseModel):
    """A note as returned by the NVQ-aware extraction prompt."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    connections: list[ExtractedConnection] = Field(default_factory=list)
    purpose_statement: Optional[str] = Field(None, alias="purposeStatement")
    project: Optional[str] = Field(None, validation_alias=AliasChoices("project", "projectLink"))
    status: Optional[str] = None
    note_type: Optional[str] = Field(None, alias="noteType")
    stakeholder: Optional[str] = None


# ============================================================================
# Component scores
# ============================================================================


class FunctionalTag(BaseModel):
    raw: str
    category: Optional[TagCategory] = None
    action: Optional[str] = None
    is_topic_tag: bool = False


class ClassifiedConnection(BaseModel):
    target_title: str
    original_type: str
    direction: ConnectionDirection
    is_to_moc: bool = False
    is_to_project: bool = False


class WhyScore(BaseModel):
    """0-3: first person, goal link, actionable."""
    score: int = Field(0, ge=0, le=3)
    has_first_person: bool = False
    links_to_personal_goal: bool = False
    is_actionable: bool = False
    raw_statement: Optional[str] = None


class MetadataScore(BaseModel):
    """0-2: 3+ of project/status/type/stakeholder = 2, 2 = 1."""
    score: int = Field(0, ge=0, le=2)
    has_project: bool = False
    project_link: Optional[str] = None
    has_status: bool = False
    status: Optional[str] = None
    has_type: bool = False
    type: Optional[str] = None
    has_stakeholder: bool = False
    stakeholder: Optional[str] = None
    fields_present: int = 0


class TaxonomyScore(BaseModel):
    """0-2: functional tags only = 2, mixed = 1, minus 1 above 5 tags."""
    score: int = Field(0, ge=0, le=2)
    total_tags: int = 0
    functional_tags: int = 0
    topic_tags: int = 0
    tag_breakdown: list[FunctionalTag] = Field(default_factory=list)
    has_action_tag: bool = False
    has_skill_tag: bool = False
    has_evolution_tag: bool = False
    has_project_tag: bool = False
    exceeds_limit: bool = False


class ConnectivityScore(BaseModel):
    """0-2: upward and sideways = 2, one of them = 1."""
    score: int = Field(0, ge=0, le=2)
    has_upward_link: bool = False
    upward_links: list[ClassifiedConnection] = Field(default_factory=list)
    has_sideways_link: bool = False
    sideways_links: list[ClassifiedConnection] = Field(default_factory=list)
    total_connections: int = 0
    meets_minimum: bool = False


class OriginalityScore(BaseModel):
    """0-1: synthesis and not an encyclopedic fact."""
    score: int = Field(0, ge=0, le=1)
    synthesis_ratio: float = 0
    has_original_insight: bool = False
    is_wikipedia_fact: bool = False
    reasoning_provided: str = ""


class NVQBreakdown(BaseModel):
    why: WhyScore
    metadata: MetadataScore
    taxonomy: TaxonomyScore
    connectivity: ConnectivityScore
    originality: OriginalityScore


class NVQScore(BaseModel):
    """Total 0-10 with per-component detail."""
    total: int = Field(0, ge=0, le=10)
    breakdown: NVQBreakdown
    passing: bool = False
    failing_components: list[str] = Field(default_factory=list)


class NVQEvaluationResult(BaseModel):
    note_title: str
    note_content: str
    nvq_score: NVQScore
    issues: list[str] = Field(default_factory=list)


class TopFailure(BaseModel):
    component: str
    issue: str
    count: int


class NVQAggregateMetrics(BaseModel):
    """Batch statistics over evaluated notes."""
    mean_nvq: float = 0
    median_nvq: float = 0
    min_nvq: float = 0
    max_nvq: float = 0
    passing_rate: float = 0

    why_failure_rate: float = 0
    metadata_failure_rate: float = 0
    taxonomy_failure_rate: float = 0
    connectivity_failure_rate: float = 0
    originality_failure_rate: float = 0

    total_notes_evaluated: int = 0
    notes_with_purpose: int = 0
    notes_with_complete_metadata: int = 0
    notes_with_functional_tags: int = 0
    notes_with_two_links: int = 0
    notes_that_are_synthesis: int = 0

    top_failures: list[TopFailure] = Field(default_factory=list)


class NVQGoal(BaseModel):
    """A user goal used to detect purpose statements linked to it."""
    title: str
    why_root: Optional[str] = None
