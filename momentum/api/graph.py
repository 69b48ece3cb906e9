"""API endpoints for the knowledge graph and its saved groups."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.knowledge_graph import (
    add_group,
    all_tags,
    build_graph,
    filter_graph,
    remove_group,
    reorder_groups,
    sorted_groups,
    update_group,
)
from momentum.core.logging import get_logger
from momentum.core.schemas_extraction import SourceType
from momentum.core.schemas_graph import (
    GRAPH_GROUPS_SETTING,
    GraphGroup,
    GraphGroupCreate,
    GraphGroupReorder,
    GraphGroupUpdate,
    RecencyRange,
)
from momentum.db.coaching_sessions import get_session_goals
from momentum.db.documents import get_document_titles
from momentum.db.notes import list_connections, list_note_sources, list_note_tag_names, list_notes_for_graph
from momentum.db.user_settings import get_setting, set_setting

logger = get_logger(__name__)

router = APIRouter()


def _load_graph(user_id: str) -> dict[str, list[dict[str, Any]]]:
    notes = list_notes_for_graph(user_id)
    note_ids = [n["id"] for n in notes]
    sources = list_note_sources(note_ids)

    document_ids = sorted({s["source_id"] for s in sources if s["source_type"] == SourceType.DOCUMENT.value})
    session_ids = sorted(
        {s["source_id"] for s in sources if s["source_type"] == SourceType.COACHING_SESSION.value}
    )

    return build_graph(
        notes=notes,
        note_tags=list_note_tag_names(note_ids),
        connections=list_connections(user_id),
        note_sources=sources,
        document_titles=get_document_titles(document_ids),
        session_goals=get_session_goals(session_ids),
    )


def _load_groups(user_id: str) -> list[GraphGroup]:
    stored = get_setting(user_id, GRAPH_GROUPS_SETTING) or []
    return sorted_groups([GraphGroup.model_validate(g) for g in stored])


def _save_groups(user_id: str, groups: list[GraphGroup]) -> list[dict[str, Any]]:
    payload = [g.model_dump(mode="json", by_alias=True) for g in sorted_groups(groups)]
    set_setting(user_id, GRAPH_GROUPS_SETTING, payload)
    return payload


@router.get("")
async def get_graph(
    search: str | None = Query(None),
    tags: list[str] | None = Query(None),
    recency_start: float | None = Query(None),
    recency_end: float | None = Query(None),
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """
    Notes as graph nodes and their connections as links.

    Returns:
        Dict with the filtered nodes and links plus every tag in the
        unfiltered graph
    """
    recency = None
    if recency_start is not None or recency_end is not None:
        try:
            recency = RecencyRange(
                start=recency_start if recency_start is not None else 0,
                end=recency_end if recency_end is not None else 100,
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid recency range: {e.errors()[0]['msg']}")

    try:
        graph = _load_graph(auth.user_id)
        filtered = filter_graph(graph, search=search, tags=tags, recency=recency)
        return {**filtered, "tags": all_tags(graph["nodes"])}

    except Exception:
        logger.exception("Failed to build knowledge graph", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to load graph")


@router.get("/groups")
async def list_graph_groups(auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        groups = _load_groups(auth.user_id)
        return {"groups": [g.model_dump(mode="json", by_alias=True) for g in groups]}

    except Exception:
        logger.exception("Failed to list graph groups", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch groups")


@router.post("/groups")
async def create_graph_group(body: GraphGroupCreate, auth: AuthContext = Depends(require_auth)) -> dict:
    """Save a filter as a group; its colour comes from the palette by position."""
    try:
        groups, group = add_group(_load_groups(auth.user_id), body)
        _save_groups(auth.user_id, groups)
        return {"group": group.model_dump(mode="json", by_alias=True)}

    except Exception:
        logger.exception("Failed to create graph group", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create group")


@router.post("/groups/reorder")
async def reorder_graph_groups(body: GraphGroupReorder, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        groups = reorder_groups(_load_groups(auth.user_id), body.ordered_ids)
        return {"groups": _save_groups(auth.user_id, groups)}

    except Exception:
        logger.exception("Failed to reorder graph groups", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to reorder groups")


@router.put("/groups/{group_id}")
async def update_graph_group(
    group_id: str,
    body: GraphGroupUpdate,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    try:
        groups = update_group(_load_groups(auth.user_id), group_id, body)
        if groups is None:
            raise HTTPException(status_code=404, detail="Group not found")

        _save_groups(auth.user_id, groups)
        group = next(g for g in groups if g.id == group_id)
        return {"group": group.model_dump(mode="json", by_alias=True)}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to update graph group {group_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update group")


@router.delete("/groups/{group_id}")
async def delete_graph_group(group_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        groups = remove_group(_load_groups(auth.user_id), group_id)
        _save_groups(auth.user_id, groups)
        return {"success": True}

    except Exception:
        logger.exception(f"Failed to delete graph group {group_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to delete group")
