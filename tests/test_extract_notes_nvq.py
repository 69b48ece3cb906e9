"""Tests for NVQ-scored direct note extraction."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from momentum.chains.extract_notes_nvq import (
    fetch_extraction_context,
    normalize_tag,
    refine_note,
    run_nvq_extraction,
)
from momentum.core.nvq_evaluator import NVQEvaluator
from momentum.core.schemas_nvq import NVQExtractedNote, NVQGoal

from tests.conftest import USER_ID

MODULE = "momentum.chains.extract_notes_nvq"

STRONG_NOTE = {
    "title": "Queue extraction instead of running it inline",
    "content": (
        "I realized that queueing each document keeps the editor fast. "
        "This suggests retries belong in the worker. See [[MOC/Writing Systems]]."
    ),
    "purposeStatement": "I am keeping this because it will help me ship the Momentum app",
    "projectLink": "Momentum",
    "status": "Seed",
    "noteType": "Logic",
    "stakeholder": "Self",
    "tags": ["decision/queue", "skill/python"],
    "connections": [{"targetTitle": "[[Background jobs]]", "type": "related", "strength": 0.7}],
}

WEAK_NOTE = {
    "title": "Python",
    "content": "Python is a programming language that was created in 1991.",
    "tags": ["programming"],
}

NOTE_SUMMARIES = [
    {"id": "moc-1", "title": "MOC/Writing Systems", "content": "Index"},
    {"id": "proj-1", "title": "Project/Momentum", "content": "The app"},
    {"id": "bg-1", "title": "Background jobs", "content": "Workers drain queues"},
]

GOALS = [{"id": "g1", "title": "Ship the Momentum app", "why_root": "Help people keep writing"}]

TEXT = "Background jobs keep the editor fast while documents wait in a queue."


def _evaluator() -> NVQEvaluator:
    return NVQEvaluator(
        mocs=["Writing Systems"],
        projects=["Momentum"],
        goals=[NVQGoal(title="Ship the Momentum app", why_root="Help people keep writing")],
    )


def _provider(notes=None, chat_replies=None):
    provider = MagicMock()
    provider.extract_notes_with_prompt = AsyncMock(return_value=notes or [])
    provider.chat = AsyncMock(side_effect=chat_replies or [])
    return provider


@pytest.fixture
def db():
    """Patch the database calls made during extraction."""
    mocks = {
        "list_note_summaries": MagicMock(return_value=NOTE_SUMMARIES),
        "list_active_goal_contexts": MagicMock(return_value=GOALS),
        "list_tag_names": MagicMock(return_value=["skill/python"]),
        "create_note": MagicMock(side_effect=[{"id": "new-1"}, {"id": "new-2"}]),
        "add_note_source": MagicMock(),
        "upsert_tag": MagicMock(return_value="tag-1"),
        "tag_note": MagicMock(),
        "create_connection": MagicMock(),
    }
    with patch.multiple(MODULE, **mocks):
        yield mocks


def test_normalize_tag():
    assert normalize_tag("#Skill/Python") == "skill/python"
    assert normalize_tag("decision/queue") == "decision/queue"


def test_fetch_extraction_context(db):
    context = fetch_extraction_context(USER_ID, TEXT)

    assert context["available_mocs"] == ["Writing Systems"]
    assert context["available_projects"] == ["Momentum"]
    assert context["user_goals"] == [{"title": "Ship the Momentum app", "why_root": "Help people keep writing"}]
    assert [n["id"] for n in context["related_notes"]] == ["bg-1"]
    assert context["common_tags"] == ["skill/python"]


class TestRefineNote:
    @pytest.mark.asyncio
    async def test_passing_note_is_not_refined(self):
        provider = _provider()

        note, score, attempts, rewrites = await refine_note(
            provider, _evaluator(), NVQExtractedNote.model_validate(STRONG_NOTE), {}, max_attempts=2
        )

        assert score.total == 10
        assert (attempts, rewrites) == (0, 0)
        provider.chat.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rewrite_that_passes_stops_early(self):
        provider = _provider(chat_replies=[f"```json\n{json.dumps(STRONG_NOTE)}\n```"])

        note, score, attempts, rewrites = await refine_note(
            provider, _evaluator(), NVQExtractedNote.model_validate(WEAK_NOTE), {}, max_attempts=2
        )

        assert score.passing is True
        assert note.project == "Momentum"
        assert (attempts, rewrites) == (1, 1)

    @pytest.mark.asyncio
    async def test_unparseable_reply_keeps_note(self):
        provider = _provider(chat_replies=["I cannot help with that", "still no json"])
        weak = NVQExtractedNote.model_validate(WEAK_NOTE)

        note, score, attempts, rewrites = await refine_note(provider, _evaluator(), weak, {}, max_attempts=2)

        assert note == weak
        assert score.total == 0
        assert (attempts, rewrites) == (2, 0)


class TestRunNvqExtraction:
    @pytest.mark.asyncio
    async def test_nothing_extracted(self, db):
        with patch(f"{MODULE}.get_ai_provider", return_value=_provider([])):
            result = await run_nvq_extraction(USER_ID, TEXT)

        assert result == {"success": True, "notesCreated": 0, "notes": [], "nvqMetrics": None}
        db["create_note"].assert_not_called()

    @pytest.mark.asyncio
    async def test_stores_scored_notes_with_sources_tags_and_links(self, db):
        provider = _provider([STRONG_NOTE, {"content": "no title"}])

        with patch(f"{MODULE}.get_ai_provider", return_value=provider):
            result = await run_nvq_extraction(USER_ID, TEXT, document_id="d1", coaching_session_id="s1")

        assert result["notesCreated"] == 1
        assert result["notes"] == [
            {"id": "new-1", "title": "Queue extraction instead of running it inline", "nvqScore": 10}
        ]
        assert result["nvqMetrics"] == {
            "meanNVQ": 10.0,
            "passingRate": 1.0,
            "notesPassing": 1,
            "notesFailed": 0,
            "refinementAttempts": 0,
            "notesRefined": 0,
        }

        row = db["create_note"].call_args.args[0]
        assert row["source_document_id"] == "d1"
        assert row["nvq_score"] == 10
        assert row["nvq_breakdown"] == {
            "why": 3,
            "metadata": 2,
            "taxonomy": 2,
            "connectivity": 2,
            "originality": 1,
        }
        assert row["quality_status"] == "passing"
        assert row["project_link"] == "Momentum"
        assert row["note_content_type"] == "Logic"

        sources = [c.args for c in db["add_note_source"].call_args_list]
        assert sources == [("new-1", "document", "d1"), ("new-1", "coaching_session", "s1")]
        assert [c.args[1] for c in db["upsert_tag"].call_args_list] == ["decision/queue", "skill/python"]
        db["create_connection"].assert_called_once_with(USER_ID, "new-1", "bg-1", "related", 0.7)

    @pytest.mark.asyncio
    async def test_failing_note_is_refined_then_stored_for_review(self, db):
        provider = _provider([WEAK_NOTE], chat_replies=["nope", "nope again"])

        with patch(f"{MODULE}.get_ai_provider", return_value=provider):
            result = await run_nvq_extraction(USER_ID, TEXT)

        assert result["nvqMetrics"]["refinementAttempts"] == 2
        assert result["nvqMetrics"]["notesRefined"] == 0
        assert result["nvqMetrics"]["notesFailed"] == 1
        assert db["create_note"].call_args.args[0]["quality_status"] == "needs_review"
        db["add_note_source"].assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_failure_skips_note(self, db):
        db["create_note"].side_effect = RuntimeError("insert failed")

        with patch(f"{MODULE}.get_ai_provider", return_value=_provider([STRONG_NOTE])):
            result = await run_nvq_extraction(USER_ID, TEXT)

        assert result["notesCreated"] == 0
        assert result["nvqMetrics"]["notesPassing"] == 1
        db["create_connection"].assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_connection_does_not_fail_extraction(self, db):
        db["create_connection"].side_effect = [None, RuntimeError("duplicate key")]
        note = {
            **STRONG_NOTE,
            "connections": [{"targetTitle": "Background jobs"}, {"targetTitle": "[[Background jobs]]"}],
        }

        with patch(f"{MODULE}.get_ai_provider", return_value=_provider([note])):
            result = await run_nvq_extraction(USER_ID, TEXT, document_id="d1")

        assert result["success"] is True
        assert result["notesCreated"] == 1
        assert db["create_connection"].call_count == 2

    @pytest.mark.asyncio
    async def test_tag_failure_still_reports_note(self, db):
        db["tag_note"].side_effect = RuntimeError("duplicate key")
        db["add_note_source"].side_effect = RuntimeError("timeout")

        with patch(f"{MODULE}.get_ai_provider", return_value=_provider([STRONG_NOTE])):
            result = await run_nvq_extraction(USER_ID, TEXT, document_id="d1")

        assert result["notesCreated"] == 1
        assert result["notes"][0]["id"] == "new-1"
        assert db["tag_note"].call_count == 2
        db["create_connection"].assert_called_once_with(USER_ID, "new-1", "bg-1", "related", 0.7)
