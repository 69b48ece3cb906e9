"""Knowledge graph assembly, filtering and saved group bookkeeping."""

import math
import uuid
from typing import Any

from momentum.core.schemas_extraction import SourceType
from momentum.core.schemas_graph import GROUP_COLORS, GraphGroup, GraphGroupCreate, GraphGroupUpdate, RecencyRange


def build_graph(
    notes: list[dict[str, Any]],
    note_tags: list[dict[str, Any]],
    connections: list[dict[str, Any]],
    note_sources: list[dict[str, Any]],
    document_titles: dict[str, str],
    session_goals: dict[str, dict[str, Any]],
) -> dict[str, list[dict[str, Any]]]:
    """
    Turn note rows into graph nodes and links.

    Args:
        notes: Notes newest first (id, title, content, note_type, created_at)
        note_tags: Rows of ``{note_id, tags: {name}}``
        connections: note_connections rows
        note_sources: note_sources rows
        document_titles: Document id to title
        session_goals: Coaching session id to its goal ``{id, title, status}``

    Returns:
        ``{nodes, links}``; a note's goal is that of its first coaching-session
        source that has one
    """
    tags_by_note: dict[str, list[str]] = {}
    for row in note_tags:
        tag = row.get("tags")
        names = tags_by_note.setdefault(row["note_id"], [])
        if isinstance(tag, dict) and tag.get("name"):
            names.append(tag["name"])

    sources_by_note: dict[str, list[dict[str, Any]]] = {}
    goal_by_note: dict[str, dict[str, Any]] = {}
    for row in note_sources:
        note_id, source_type, source_id = row["note_id"], row["source_type"], row["source_id"]
        goal = session_goals.get(source_id) if source_type == SourceType.COACHING_SESSION.value else None

        sources_by_note.setdefault(note_id, []).append(
            {
                "id": f"{note_id}-{source_type}-{source_id}",
                "source_type": source_type,
                "source_id": source_id,
                "document_title": (
                    document_titles.get(source_id) if source_type == SourceType.DOCUMENT.value else None
                ),
                "session_goal_title": goal["title"] if goal else None,
            }
        )
        if goal and note_id not in goal_by_note:
            goal_by_note[note_id] = goal

    nodes = []
    for note in notes:
        goal = goal_by_note.get(note["id"])
        nodes.append(
            {
                "id": note["id"],
                "title": note["title"],
                "content": note["content"],
                "type": note.get("note_type"),
                "tags": tags_by_note.get(note["id"], []),
                "sources": sources_by_note.get(note["id"], []),
                "goalId": goal["id"] if goal else None,
                "goalTitle": goal["title"] if goal else None,
                "goalStatus": goal["status"] if goal else None,
                "createdAt": note.get("created_at"),
            }
        )

    links = [
        {
            "source": c["source_note_id"],
            "target": c["target_note_id"],
            "type": c["connection_type"],
            "strength": c["strength"],
        }
        for c in connections
    ]

    return {"nodes": nodes, "links": links}


def all_tags(nodes: list[dict[str, Any]]) -> list[str]:
    return sorted({tag for node in nodes for tag in node["tags"]})


def recency_slice(count: int, recency: RecencyRange) -> slice:
    """Index window for a percent range over a newest-first list."""
    start = math.floor((100 - recency.end) / 100 * count)
    end = math.ceil((100 - recency.start) / 100 * count)
    return slice(start, end)


def filter_graph(
    graph: dict[str, list[dict[str, Any]]],
    search: str | None = None,
    tags: list[str] | None = None,
    recency: RecencyRange | None = None,
) -> dict[str, list[dict[str, Any]]]:
    """
    Narrow a graph by search text, tags and recency, in that order.

    Links survive only when both of their ends do.
    """
    nodes = graph["nodes"]

    if search:
        query = search.lower()
        nodes = [n for n in nodes if query in n["title"].lower() or query in n["content"].lower()]

    if tags:
        nodes = [n for n in nodes if any(tag in n["tags"] for tag in tags)]

    if recency:
        nodes = nodes[recency_slice(len(nodes), recency)]

    kept = {n["id"] for n in nodes}
    links = [link for link in graph["links"] if link["source"] in kept and link["target"] in kept]
    return {"nodes": nodes, "links": links}


# ============================================================================
# Saved groups
# ============================================================================


def sorted_groups(groups: list[GraphGroup]) -> list[GraphGroup]:
    return sorted(groups, key=lambda g: g.order)


def add_group(groups: list[GraphGroup], data: GraphGroupCreate) -> tuple[list[GraphGroup], GraphGroup]:
    """Append a group coloured and ordered by how many groups exist."""
    group = GraphGroup(
        id=str(uuid.uuid4()),
        name=data.name,
        tags=data.tags,
        recency_range=data.recency_range,
        search_query=data.search_query,
        color=GROUP_COLORS[len(groups) % len(GROUP_COLORS)],
        order=len(groups),
    )
    return [*groups, group], group


def update_group(groups: list[GraphGroup], group_id: str, data: GraphGroupUpdate) -> list[GraphGroup] | None:
    """Apply the sent fields to one group; None when it does not exist."""
    if not any(g.id == group_id for g in groups):
        return None

    updates = {field: getattr(data, field) for field in data.model_fields_set}
    return [g.model_copy(update=updates) if g.id == group_id else g for g in groups]


def remove_group(groups: list[GraphGroup], group_id: str) -> list[GraphGroup]:
    """Drop a group and renumber the rest."""
    remaining = [g for g in groups if g.id != group_id]
    return [g.model_copy(update={"order": i}) for i, g in enumerate(remaining)]


def reorder_groups(groups: list[GraphGroup], ordered_ids: list[str]) -> list[GraphGroup]:
    """Order groups by ``ordered_ids``; groups not listed are dropped."""
    by_id = {g.id: g for g in groups}
    return [
        by_id[group_id].model_copy(update={"order": i})
        for i, group_id in enumerate(gid for gid in ordered_ids if gid in by_id)
    ]
