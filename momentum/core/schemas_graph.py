"""Pydantic schemas for the knowledge graph and its saved groups."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

GRAPH_GROUPS_SETTING = "graph_groups"

GROUP_COLORS = [
    "#6366f1",  # indigo
    "#10b981",  # emerald
    "#f59e0b",  # amber
    "#ef4444",  # red
    "#8b5cf6",  # violet
    "#06b6d4",  # cyan
    "#ec4899",  # pink
    "#84cc16",  # lime
]


class RecencyRange(BaseModel):
    """Percent window over notes ordered newest first; 100 is the newest end."""
    start: float = Field(0, ge=0, le=100)
    end: float = Field(100, ge=0, le=100)

    @model_validator(mode="after")
    def _ordered(self) -> "RecencyRange":
        if self.start > self.end:
            raise ValueError("start must not exceed end")
        return self


class GraphFilter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_query: str = Field("", alias="searchQuery")
    tags: list[str] = Field(default_factory=list)
    recency_range: Optional[RecencyRange] = Field(None, alias="recencyRange")


class GraphGroup(GraphFilter):
    """A named, coloured filter saved in the ``graph_groups`` setting."""
    id: str
    name: str
    color: str
    order: int


class GraphGroupCreate(GraphFilter):
    name: str = Field(..., min_length=1)


class GraphGroupUpdate(BaseModel):
    """Partial update; only fields that were sent are applied."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    color: Optional[str] = None
    search_query: Optional[str] = Field(None, alias="searchQuery")
    tags: Optional[list[str]] = None
    recency_range: Optional[RecencyRange] = Field(None, alias="recencyRange")


class GraphGroupReorder(BaseModel):
    ordered_ids: list[str]
