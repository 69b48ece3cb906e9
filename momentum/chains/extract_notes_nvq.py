"""Direct note extraction held to the NVQ quality bar.

Extracts atomic notes with the NVQ-aware prompt, scores each one, asks the
model to rewrite failing notes, then stores notes with their scores, sources,
tags and connections.
"""

import re
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from momentum.chains.prompts import build_nvq_extraction_prompt, build_refinement_prompt
from momentum.chains.providers import AIProvider, get_ai_provider
from momentum.core.config import get_settings
from momentum.core.llm import parse_llm_json_dict
from momentum.core.logging import get_logger
from momentum.core.nvq_evaluator import NVQEvaluator, identify_issues, quality_status, to_storable_breakdown
from momentum.core.schemas_extraction import SourceType
from momentum.core.schemas_nvq import NVQExtractedNote, NVQGoal, NVQScore
from momentum.core.text_keywords import leading_keywords, score_related_notes
from momentum.db.goals import list_active_goal_contexts
from momentum.db.notes import add_note_source, create_connection, create_note, list_note_summaries, list_tag_names, tag_note, upsert_tag

logger = get_logger(__name__)

_MOC_PREFIX = re.compile(r"^moc/", re.IGNORECASE)
_PROJECT_PREFIX = re.compile(r"^project/", re.IGNORECASE)
_WIKILINK_BRACKETS = re.compile(r"^\[\[|\]\]$")


def fetch_extraction_context(user_id: str, text: str) -> dict[str, Any]:
    """
    Gather what the NVQ prompt and evaluator need about the user.

    Returns:
        Dict with related_notes, common_tags, user_goals, available_mocs
        and available_projects
    """
    notes = list_note_summaries(user_id)
    goals = list_active_goal_contexts(user_id)

    return {
        "related_notes": score_related_notes(notes, leading_keywords(text, 10), limit=15),
        "common_tags": list_tag_names(user_id, limit=30),
        "user_goals": [{"title": g["title"], "why_root": g.get("why_root") or ""} for g in goals],
        "available_mocs": [
            _MOC_PREFIX.sub("", n["title"]) for n in notes if _MOC_PREFIX.match(n["title"] or "")
        ],
        "available_projects": [
            _PROJECT_PREFIX.sub("", n["title"]) for n in notes if _PROJECT_PREFIX.match(n["title"] or "")
        ],
    }


def _merge_refinement(note: NVQExtractedNote, refined: dict[str, Any]) -> NVQExtractedNote:
    merged = {**note.model_dump(by_alias=True), **refined}
    if "projectLink" in refined:
        merged["project"] = refined["projectLink"]
    return NVQExtractedNote.model_validate(merged)


async def refine_note(
    provider: AIProvider,
    evaluator: NVQEvaluator,
    note: NVQExtractedNote,
    context: dict[str, Any],
    max_attempts: int,
) -> tuple[NVQExtractedNote, NVQScore, int, int]:
    """
    Ask the model to rewrite a note until it passes or attempts run out.

    A round whose reply cannot be parsed keeps the current note.

    Returns:
        Tuple of (note, score, attempts made, successful rewrites)
    """
    score = evaluator.evaluate_note(note)
    attempts = 0
    rewrites = 0

    while not score.passing and attempts < max_attempts:
        logger.debug(f'Note "{note.title}" scored {score.total}/10, refining')
        prompt = build_refinement_prompt(note, score, identify_issues(score), context)

        try:
            reply = await provider.chat([{"role": "user", "content": prompt}])
            note = _merge_refinement(note, parse_llm_json_dict(reply))
            score = evaluator.evaluate_note(note)
            rewrites += 1
        except (ValueError, ValidationError) as e:
            logger.warning(f'Could not use refinement of "{note.title}": {e}')

        attempts += 1

    return note, score, attempts, rewrites


def normalize_tag(tag: str) -> str:
    return tag.lower().removeprefix("#")


def _persist_note(
    user_id: str,
    note: NVQExtractedNote,
    score: NVQScore,
    document_id: str | None,
    coaching_session_id: str | None,
) -> dict[str, Any]:
    """Store a scored note. Only the note insert itself raises; source and tag writes are logged."""
    created = create_note(
        {
            "user_id": user_id,
            "source_document_id": document_id,
            "title": note.title,
            "content": note.content,
            "note_type": "permanent",
            "ai_generated": True,
            "nvq_score": score.total,
            "nvq_breakdown": to_storable_breakdown(score),
            "nvq_evaluated_at": datetime.now(timezone.utc).isoformat(),
            "quality_status": quality_status(score).value,
            "purpose_statement": note.purpose_statement,
            "note_status": note.status,
            "note_content_type": note.note_type,
            "stakeholder": note.stakeholder,
            "project_link": note.project,
        }
    )

    sources = [(SourceType.DOCUMENT.value, document_id), (SourceType.COACHING_SESSION.value, coaching_session_id)]
    for source_type, source_id in sources:
        if not source_id:
            continue
        try:
            add_note_source(created["id"], source_type, source_id)
        except Exception:
            logger.exception(f"Failed to add {source_type} source to note {created['id']}", extra={"user_id": user_id})

    for tag in note.tags:
        try:
            tag_id = upsert_tag(user_id, normalize_tag(tag))
            if tag_id:
                tag_note(created["id"], tag_id)
        except Exception:
            logger.exception(f'Failed to tag note {created["id"]} with "{tag}"', extra={"user_id": user_id})

    return created


def _find_by_title(items: list[dict[str, Any]], title: str) -> dict[str, Any] | None:
    wanted = _WIKILINK_BRACKETS.sub("", title.lower())
    return next((item for item in items if item["title"].lower() == wanted), None)


async def run_nvq_extraction(
    user_id: str,
    text: str,
    document_id: str | None = None,
    coaching_session_id: str | None = None,
) -> dict[str, Any]:
    """
    Extract, score, refine and store notes for a piece of text.

    Args:
        user_id: Owner of the notes
        text: Source text
        document_id: Source document, if any
        coaching_session_id: Source coaching session, if any

    Returns:
        Response dict with success, notesCreated, notes and nvqMetrics
    """
    settings = get_settings()
    context = fetch_extraction_context(user_id, text)
    provider = get_ai_provider(user_id)

    raw_notes = await provider.extract_notes_with_prompt(text, build_nvq_extraction_prompt(context))
    notes = []
    for raw in raw_notes:
        try:
            notes.append(NVQExtractedNote.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed extracted note: {e}", extra={"user_id": user_id})

    if not notes:
        return {"success": True, "notesCreated": 0, "notes": [], "nvqMetrics": None}

    evaluator = NVQEvaluator(
        mocs=context["available_mocs"],
        projects=context["available_projects"],
        goals=[NVQGoal(**g) for g in context["user_goals"]],
        passing_threshold=settings.NVQ_PASSING_THRESHOLD,
    )

    scored: list[tuple[NVQExtractedNote, NVQScore]] = []
    refinement_attempts = 0
    notes_refined = 0
    for note in notes:
        note, score, attempts, rewrites = await refine_note(
            provider, evaluator, note, context, settings.NVQ_MAX_REFINEMENT_ATTEMPTS
        )
        refinement_attempts += attempts
        notes_refined += rewrites
        scored.append((note, score))

    created_notes: list[dict[str, Any]] = []
    for note, score in scored:
        try:
            created = _persist_note(user_id, note, score, document_id, coaching_session_id)
        except Exception:
            logger.exception(f'Failed to store note "{note.title}"', extra={"user_id": user_id})
            continue
        created_notes.append({"id": created["id"], "title": note.title, "nvqScore": score.total})

    for note, _ in scored:
        source = next((n for n in created_notes if n["title"] == note.title), None)
        if not source:
            continue

        for connection in note.connections:
            target = _find_by_title(created_notes, connection.target_title) or _find_by_title(
                context["related_notes"], connection.target_title
            )
            if not target:
                continue
            try:
                create_connection(user_id, source["id"], target["id"], connection.type, connection.strength)
            except Exception:
                logger.warning(
                    f"Skipped connection {source['id']} -> {target['id']}",
                    exc_info=True,
                    extra={"user_id": user_id},
                )

    passing = sum(1 for _, score in scored if score.passing)
    logger.info(
        f"Extracted {len(created_notes)} notes, {passing}/{len(scored)} passing NVQ",
        extra={"user_id": user_id},
    )

    return {
        "success": True,
        "notesCreated": len(created_notes),
        "notes": created_notes,
        "nvqMetrics": {
            "meanNVQ": sum(score.total for _, score in scored) / len(scored),
            "passingRate": passing / len(scored),
            "notesPassing": passing,
            "notesFailed": len(scored) - passing,
            "refinementAttempts": refinement_attempts,
            "notesRefined": notes_refined,
        },
    }
