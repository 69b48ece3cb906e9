"""Pydantic schemas for documents written in the editor."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class WordWithTimestamp(BaseModel):
    """A typed word and when it was typed (ms since epoch)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    word: str
    typed_at: float = Field(..., alias="typedAt")


class DocumentSave(BaseModel):
    """Body for document autosave (create or update)."""
    title: Optional[str] = None
    content: str = ""
    content_with_timestamps: list[WordWithTimestamp] = Field(default_factory=list)

    def to_row(self) -> dict[str, Any]:
        """Columns written on every save."""
        return {
            "title": self.title or "Untitled",
            "content": self.content,
            "content_with_timestamps": [w.model_dump(by_alias=True) for w in self.content_with_timestamps],
            "word_count": word_count(self.content),
        }


def word_count(content: str) -> int:
    """Whitespace-separated words in ``content``."""
    return len(content.split())
