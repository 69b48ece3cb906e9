"""Extraction worker LangGraph: turns one queued source into atomic notes."""

from dataclasses import dataclass, field
from typing import Any

from langgraph.graph import END, StateGraph

from momentum.chains.prompts import build_worker_extraction_prompt
from momentum.chains.providers import get_ai_provider
from momentum.core.config import get_settings
from momentum.core.logging import get_logger
from momentum.core.schemas_extraction import SourceType, WorkerNote, WorkerOutput
from momentum.core.text_keywords import extract_keywords, score_related_notes
from momentum.db.extraction_queue import claim_job, complete_job, fail_attempt, skip_job
from momentum.db.notes import (
    add_note_history,
    add_note_source,
    create_connection,
    create_note,
    get_or_create_tag,
    list_note_summaries,
    list_tag_names,
    tag_note,
    update_note_content,
)

logger = get_logger(__name__)

MAX_STEPS = 6
RELATED_NOTES_LIMIT = 15
COMMON_TAGS_LIMIT = 20


@dataclass
class ExtractionWorkerState:
    """State for the extraction worker graph."""

    # Input fields
    job: dict[str, Any]

    # Processing state
    step_count: int = 0
    related_notes: list[dict[str, Any]] = field(default_factory=list)
    common_tags: list[str] = field(default_factory=list)
    notes: list[WorkerNote] = field(default_factory=list)

    # Output
    result: dict[str, Any] = field(default_factory=dict)


def _check_max_steps(state: ExtractionWorkerState) -> ExtractionWorkerState:
    """Check and increment step count, raise if exceeded."""
    state.step_count += 1
    if state.step_count > MAX_STEPS:
        raise RuntimeError(f"Exceeded max steps ({MAX_STEPS})")
    return state


def load_context(state: ExtractionWorkerState) -> dict[str, Any]:
    """Find the user's notes and tags the new content should know about."""
    state = _check_max_steps(state)
    job = state.job

    keywords = extract_keywords(job["content_snapshot"], limit=8)
    related = (
        score_related_notes(list_note_summaries(job["user_id"]), keywords, limit=RELATED_NOTES_LIMIT)
        if keywords
        else []
    )
    tags = list_tag_names(job["user_id"], limit=COMMON_TAGS_LIMIT)

    logger.info(
        f"Loaded {len(related)} related notes and {len(tags)} tags",
        extra={"job_id": job["id"], "user_id": job["user_id"]},
    )

    return {"related_notes": related, "common_tags": tags, "step_count": state.step_count}


async def call_llm(state: ExtractionWorkerState) -> dict[str, Any]:
    """Ask the model for notes, aware of related notes and existing tags."""
    state = _check_max_steps(state)
    settings = get_settings()
    job = state.job

    provider = get_ai_provider(job["user_id"])
    raw_notes = await provider.extract_notes_with_prompt(
        job["content_snapshot"],
        build_worker_extraction_prompt(state.related_notes, state.common_tags),
        max_tokens=settings.EXTRACTION_MAX_TOKENS,
    )
    notes = WorkerOutput.model_validate({"notes": raw_notes}).notes

    logger.info(f"Model proposed {len(notes)} notes", extra={"job_id": job["id"]})
    return {"notes": notes, "step_count": state.step_count}


def _route_after_llm(state: ExtractionWorkerState) -> str:
    return "persist" if state.notes else "skip"


def skip(state: ExtractionWorkerState) -> dict[str, Any]:
    """Nothing worth keeping: mark the job skipped."""
    state = _check_max_steps(state)
    skip_job(state.job["id"])
    return {
        "result": {"message": "No extractable content", "notes_created": 0},
        "step_count": state.step_count,
    }


def _find_note(notes: list[dict[str, Any]], title: str) -> dict[str, Any] | None:
    wanted = title.lower()
    return next((n for n in notes if n["title"].lower() == wanted), None)


def _link_source_and_tags(
    note_id: str, tags: list[str], user_id: str, source_type: str, source_id: str, job_id: str
) -> None:
    """Attach provenance and tags to a stored note. Failures are logged per write."""
    try:
        add_note_source(note_id, source_type, source_id)
    except Exception:
        logger.exception(f"Failed to add source to note {note_id}", extra={"job_id": job_id})

    for tag in tags:
        try:
            tag_note(note_id, get_or_create_tag(user_id, tag))
        except Exception:
            logger.exception(f'Failed to tag note {note_id} with "{tag}"', extra={"job_id": job_id})


def _consolidate(
    existing: dict[str, Any], merged_content: str, source_type: str, source_id: str, job_id: str
) -> bool:
    """Merge new content into an existing note, keeping the prior version in history."""
    try:
        add_note_history(
            existing["id"],
            existing["title"],
            existing["content"],
            changed_by="consolidation",
            source_id=source_id,
        )
        update_note_content(existing["id"], merged_content)
    except Exception:
        logger.exception(f'Failed to consolidate into "{existing["title"]}"', extra={"job_id": job_id})
        return False

    existing["content"] = merged_content
    try:
        add_note_source(existing["id"], source_type, source_id)
    except Exception:
        logger.exception(f"Failed to add source to note {existing['id']}", extra={"job_id": job_id})
    return True


def persist(state: ExtractionWorkerState) -> dict[str, Any]:
    """Merge into or create notes, tag them, link them and complete the job.

    Only the job completion is fatal. Writes after a note exists (history,
    sources, tags, connections) are logged and skipped so a retry never
    recreates notes that were already stored.
    """
    state = _check_max_steps(state)
    job = state.job
    job_id = job["id"]
    user_id = job["user_id"]
    source_type = job["source_type"]
    source_id = job["source_id"]

    # Related notes plus everything created in this pass, for merges and links
    context_notes = [dict(n) for n in state.related_notes]
    created: list[dict[str, Any]] = []
    consolidated = 0

    for note in state.notes:
        if note.consolidate_with and note.merged_content:
            existing = _find_note(context_notes, note.consolidate_with)
            if existing:
                if _consolidate(existing, note.merged_content, source_type, source_id, job_id):
                    consolidated += 1
                continue

        try:
            row = create_note(
                {
                    "user_id": user_id,
                    "source_document_id": source_id if source_type == SourceType.DOCUMENT.value else None,
                    "title": note.title,
                    "content": note.content,
                    "note_type": "permanent",
                    "ai_generated": True,
                }
            )
        except Exception:
            logger.exception(f'Failed to create note "{note.title}"', extra={"job_id": job_id})
            continue

        created.append({"id": row["id"], "title": note.title})
        context_notes.append({"id": row["id"], "title": note.title, "content": note.content})
        _link_source_and_tags(row["id"], note.tags, user_id, source_type, source_id, job_id)

    intra_links = 0
    cross_links = 0
    for note in state.notes:
        if note.consolidate_with:
            continue
        source = next((n for n in created if n["title"] == note.title), None)
        if not source:
            continue

        for connection in note.connections:
            target = _find_note(created, connection.target_title)
            is_cross = False
            if not target:
                target = _find_note(context_notes, connection.target_title)
                is_cross = target is not None
            if not target:
                continue

            try:
                create_connection(user_id, source["id"], target["id"], connection.type, connection.strength)
            except Exception:
                logger.warning(
                    f"Skipped connection {source['id']} -> {target['id']}",
                    exc_info=True,
                    extra={"job_id": job_id},
                )
                continue
            if is_cross:
                cross_links += 1
            else:
                intra_links += 1

    complete_job(job_id, len(created))

    logger.info(
        f"Created {len(created)} notes, consolidated {consolidated}, "
        f"links {intra_links} intra / {cross_links} cross",
        extra={"job_id": job_id, "user_id": user_id},
    )

    return {
        "result": {"message": "Extraction completed", "notes_created": len(created), "notes": created},
        "step_count": state.step_count,
    }


def _build_graph() -> StateGraph:
    """Build the extraction worker graph."""
    graph = StateGraph(ExtractionWorkerState)

    graph.add_node("load_context", load_context)
    graph.add_node("call_llm", call_llm)
    graph.add_node("skip", skip)
    graph.add_node("persist", persist)

    graph.set_entry_point("load_context")
    graph.add_edge("load_context", "call_llm")
    graph.add_conditional_edges("call_llm", _route_after_llm, {"persist": "persist", "skip": "skip"})
    graph.add_edge("skip", END)
    graph.add_edge("persist", END)

    return graph


_compiled_graph = _build_graph().compile()


async def process_claimed_job(job: dict[str, Any]) -> dict[str, Any]:
    """
    Run the graph over a job already claimed by the caller.

    Returns:
        The pass result, or ``{error}`` when extraction failed and the
        attempt was recorded
    """
    logger.info(
        f"Processing {job['source_type']} {job['source_id']}",
        extra={"job_id": job["id"], "user_id": job["user_id"]},
    )

    try:
        final_state = await _compiled_graph.ainvoke(ExtractionWorkerState(job=job))
    except Exception as e:
        logger.exception("Extraction failed", extra={"job_id": job["id"]})
        fail_attempt(job, str(e) or type(e).__name__)
        return {"error": str(e) or type(e).__name__}

    return final_state["result"]


async def run_extraction_worker(job_id: str | None = None) -> dict[str, Any]:
    """
    Run one worker pass: claim a job and extract notes from it.

    Args:
        job_id: Job to claim; the next pending job when omitted

    Returns:
        ``{message: "No pending jobs"}`` or the result of ``process_claimed_job``
    """
    job = claim_job(job_id)
    if not job:
        return {"message": "No pending jobs"}

    return await process_claimed_job(job)
