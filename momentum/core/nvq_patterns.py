"""Regex patterns and helpers used by NVQ scoring."""

import re
from typing import Optional

from momentum.core.schemas_nvq import NoteStatus, NoteType, Stakeholder

# ============================================================================
# Purpose statements
# ============================================================================

FIRST_PERSON = re.compile(
    r"I am keeping this because|I need this|This helps me|I'm keeping this|I want to remember",
    re.IGNORECASE,
)

ACTIONABLE = re.compile(
    r"(will help|enables|allows|supports|crucial for|vital for|important for|essential for"
    r"|necessary for|so that I can|in order to|helps me)",
    re.IGNORECASE,
)

# ============================================================================
# Metadata
# ============================================================================

PROJECT_WIKILINK = re.compile(r"\[\[Project[/:]([^\]]+)\]\]", re.IGNORECASE)
PROJECT_INLINE = re.compile(r"project:\s*([^\n,]+)", re.IGNORECASE)
PROJECT_REFERENCE = re.compile(r"for (the |my )?([A-Z][a-zA-Z\s]+) project", re.IGNORECASE)

VALID_STATUSES = {s.value for s in NoteStatus}
VALID_NOTE_TYPES = {t.value for t in NoteType}
VALID_STAKEHOLDERS = {s.value for s in Stakeholder}

# ============================================================================
# Tags
# ============================================================================

ACTION_TAG = re.compile(r"^(task|decision)/")
SKILL_TAG = re.compile(r"^skill/")
EVOLUTION_TAG = re.compile(r"^insight/")
PROJECT_TAG = re.compile(r"^(ui|project)/", re.IGNORECASE)

TOPIC_TAGS = frozenset(
    {
        "accessibility", "ai", "api", "architecture", "authentication", "backend",
        "bug", "code", "database", "design", "development", "documentation",
        "feature", "frontend", "idea", "improvement", "infrastructure",
        "integration", "javascript", "journaling", "learning", "meeting", "note",
        "performance", "planning", "productivity", "programming", "react",
        "reference", "research", "security", "speech", "testing", "typescript",
        "ui", "ux", "writing",
    }
)

# ============================================================================
# Links
# ============================================================================

WIKILINK = re.compile(r"\[\[([^\]]+)\]\]")
MOC_LINK = re.compile(r"\[\[(MOC|Map of Content)[/:]?([^\]]*)\]\]", re.IGNORECASE)
PROJECT_LINK = re.compile(r"\[\[Project[/:]([^\]]+)\]\]", re.IGNORECASE)

# ============================================================================
# Originality
# ============================================================================

ORIGINAL_INSIGHT = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"I (think|believe|realized|discovered|noticed|found|learned)",
        r"my (interpretation|understanding|take|view|insight|conclusion)",
        r"this (suggests|implies|means|tells me|indicates|reveals)",
        r"the key (insight|takeaway|lesson|point) is",
        r"for (my|our) (use case|project|context|situation)",
        r"(decision|lesson learned|takeaway|conclusion):",
        r"I (decided|chose|concluded|determined)",
        r"what this means for",
        r"in my experience",
        r"I've (noticed|observed|seen)",
    )
]

WIKIPEDIA_FACT = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"according to (wikipedia|the documentation|the official)",
        r"is defined as",
        r"was (invented|created|founded|developed) in \d{4}",
        r"\bis a\b.*\bthat\b",
        r"^(The|A|An) [A-Z][a-z]+ is",
        r"officially (released|announced|launched)",
    )
]

QUOTATION = [
    re.compile(r'"[^"]{20,}"'),
    re.compile(r">[^\n]{20,}"),
    re.compile(r"```[\s\S]*?```"),
]


def count_pattern_matches(text: str, patterns: list[re.Pattern]) -> int:
    """Number of patterns that match somewhere in ``text``."""
    return sum(1 for p in patterns if p.search(text))


def is_topic_tag(tag: str) -> bool:
    normalized = re.sub(r"[-_]", "", tag.lower().lstrip("#"))
    return normalized in TOPIC_TAGS


def classify_tag(tag: str) -> dict:
    """
    Classify a tag as action / skill / evolution / project, or a topic tag.

    Returns:
        Dict with ``category``, ``action`` and ``is_topic_tag``
    """
    normalized = re.sub(r"^#", "", tag.lower())

    if ACTION_TAG.search(normalized):
        parts = normalized.split("/")
        return {"category": "action", "action": parts[1] or None, "is_topic_tag": False}

    if SKILL_TAG.search(normalized):
        return {"category": "skill", "action": normalized[len("skill/"):], "is_topic_tag": False}

    if EVOLUTION_TAG.search(normalized):
        return {"category": "evolution", "action": normalized[len("insight/"):], "is_topic_tag": False}

    if PROJECT_TAG.search(normalized):
        parts = normalized.split("/")
        return {"category": "project", "action": parts[1] or None, "is_topic_tag": False}

    return {
        "category": None,
        "action": None,
        "is_topic_tag": is_topic_tag(tag) or "/" not in normalized,
    }


def extract_project_name(text: str) -> Optional[str]:
    """Find a project reference as a wikilink, ``project:`` field or prose."""
    match = PROJECT_WIKILINK.search(text)
    if match:
        return match.group(1).strip()

    match = PROJECT_INLINE.search(text)
    if match:
        return match.group(1).strip()

    match = PROJECT_REFERENCE.search(text)
    if match:
        return match.group(2).strip()

    return None


def extract_wikilinks(text: str) -> list[str]:
    return WIKILINK.findall(text)


def calculate_synthesis_ratio(text: str) -> float:
    """Share of ``text`` that is not quoted, block-quoted or fenced code."""
    if not text:
        return 0.0

    quoted_length = 0
    for pattern in QUOTATION:
        quoted_length += sum(len(m.group(0)) for m in pattern.finditer(text))

    return (len(text) - quoted_length) / len(text)
