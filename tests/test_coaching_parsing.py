"""Tests for coaching reply parsing and stage transitions."""

import pytest

from momentum.chains.coaching import (
    build_coaching_prompt,
    describe_missing,
    get_next_stage,
    merge_captures,
    parse_coaching_response,
)
from momentum.core.schemas_coaching import CoachingContext, CoachingStage, ParsedCoachingResponse
from momentum.core.schemas_goals import Completeness


class TestParseCoachingResponse:
    def test_plain_reply_is_returned_unchanged(self):
        parsed = parse_coaching_response("What would you like to work on?")

        assert parsed.message == "What would you like to work on?"
        assert parsed.goal_title is None
        assert parsed.is_complete is False
        assert parsed.is_update is False

    def test_goal_captured(self):
        parsed = parse_coaching_response(
            "[GOAL_CAPTURED]\nRun a half marathon\nThat's a great pursuit! Why does it matter to you?"
        )

        assert parsed.goal_title == "Run a half marathon"
        assert parsed.message == "That's a great pursuit! Why does it matter to you?"

    def test_why_captured_strips_braces(self):
        parsed = parse_coaching_response("[WHY_CAPTURED]\n{To feel strong for my kids}\nLovely.")

        assert parsed.why_root == "To feel strong for my kids"
        assert parsed.message == "Lovely."

    def test_micro_win_captured_strips_label(self):
        parsed = parse_coaching_response(
            "[MICROWIN_CAPTURED]\nSpecific action: Walk for 10 minutes after lunch\nReady to commit?"
        )

        assert parsed.micro_win == "Walk for 10 minutes after lunch"

    def test_placeholder_prefix_is_removed(self):
        parsed = parse_coaching_response("[GOAL_CAPTURED]\n<title>: Learn Spanish\nGreat.")

        assert parsed.goal_title == "Learn Spanish"

    def test_goal_title_label_is_removed(self):
        parsed = parse_coaching_response("[GOAL_CAPTURED]\nGoal title: Learn Spanish\nGreat.")

        assert parsed.goal_title == "Learn Spanish"

    def test_marker_on_same_line_as_value(self):
        parsed = parse_coaching_response("[GOAL_CAPTURED] Learn Spanish\nGreat choice.")

        assert parsed.goal_title == "Learn Spanish"
        assert parsed.message == "Great choice."

    def test_goal_complete_marker_removed(self):
        parsed = parse_coaching_response("[GOAL_COMPLETE] You've got this!")

        assert parsed.is_complete is True
        assert parsed.message == "You've got this!"

    def test_capture_takes_precedence_over_complete(self):
        parsed = parse_coaching_response("[GOAL_CAPTURED]\nLearn Spanish\n[GOAL_COMPLETE] Done")

        assert parsed.goal_title == "Learn Spanish"
        assert parsed.is_complete is False

    @pytest.mark.parametrize(
        "marker,update_type,field",
        [
            ("GOAL_UPDATED", "goal", "goal_title"),
            ("WHY_UPDATED", "why", "why_root"),
            ("STEP_UPDATED", "step", "micro_win"),
        ],
    )
    def test_update_markers(self, marker, update_type, field):
        parsed = parse_coaching_response(f"[{marker}]\nNew value\nUpdated that for you.")

        assert parsed.is_update is True
        assert parsed.update_type == update_type
        assert getattr(parsed, field) == "New value"
        assert parsed.message == "Updated that for you."

    def test_notes_updated_reads_until_blank_line(self):
        parsed = parse_coaching_response(
            "[NOTES_UPDATED]\nTrain on Tuesdays.\nRest on Sundays.\n\nI've noted your schedule."
        )

        assert parsed.is_update is True
        assert parsed.update_type == "notes"
        assert parsed.notes == "Train on Tuesdays.\nRest on Sundays."
        assert parsed.message == "I've noted your schedule."


class TestGetNextStage:
    def _context(self, **fields):
        return CoachingContext(**fields)

    def test_welcome_moves_to_discovery(self):
        assert get_next_stage(CoachingStage.WELCOME, self._context()) == CoachingStage.GOAL_DISCOVERY

    def test_discovery_waits_for_title(self):
        assert get_next_stage(CoachingStage.GOAL_DISCOVERY, self._context()) == CoachingStage.GOAL_DISCOVERY

    def test_discovery_goes_to_why_drilling(self):
        context = self._context(goal_title="Learn Spanish")
        assert get_next_stage(CoachingStage.GOAL_DISCOVERY, context) == CoachingStage.WHY_DRILLING

    def test_discovery_skips_why_when_known(self):
        context = self._context(goal_title="Learn Spanish", why_root="Talk to my grandmother")
        assert get_next_stage(CoachingStage.GOAL_DISCOVERY, context) == CoachingStage.MICRO_WIN

    def test_why_drilling_waits_for_why(self):
        context = self._context(goal_title="Learn Spanish")
        assert get_next_stage(CoachingStage.WHY_DRILLING, context) == CoachingStage.WHY_DRILLING

    def test_why_drilling_to_micro_win(self):
        context = self._context(goal_title="Learn Spanish", why_root="Family")
        assert get_next_stage(CoachingStage.WHY_DRILLING, context) == CoachingStage.MICRO_WIN

    def test_why_drilling_to_confirmation_when_step_known(self):
        context = self._context(goal_title="Learn Spanish", why_root="Family", micro_win="One lesson")
        assert get_next_stage(CoachingStage.WHY_DRILLING, context) == CoachingStage.CONFIRMATION

    def test_micro_win_to_confirmation(self):
        context = self._context(micro_win="One lesson")
        assert get_next_stage(CoachingStage.MICRO_WIN, context) == CoachingStage.CONFIRMATION
        assert get_next_stage(CoachingStage.MICRO_WIN, self._context()) == CoachingStage.MICRO_WIN

    def test_confirmation_completes(self):
        assert get_next_stage(CoachingStage.CONFIRMATION, self._context()) == CoachingStage.COMPLETE

    def test_deepen_needs_why_and_step(self):
        assert get_next_stage(CoachingStage.DEEPEN, self._context(why_root="Family")) == CoachingStage.DEEPEN
        context = self._context(why_root="Family", micro_win="One lesson")
        assert get_next_stage(CoachingStage.DEEPEN, context) == CoachingStage.CONFIRMATION

    @pytest.mark.parametrize("stage", [CoachingStage.COMPLETE, CoachingStage.CONTINUATION])
    def test_other_stages_unchanged(self, stage):
        assert get_next_stage(stage, self._context(goal_title="x")) == stage


def test_merge_captures_keeps_existing_values():
    context = CoachingContext(stage=CoachingStage.WHY_DRILLING, goal_title="Learn Spanish")
    parsed = ParsedCoachingResponse(message="ok", why_root="Family")

    merged = merge_captures(context, parsed)

    assert merged.goal_title == "Learn Spanish"
    assert merged.why_root == "Family"
    assert context.why_root is None


def test_context_accepts_camel_case():
    context = CoachingContext.model_validate(
        {
            "stage": "micro_win",
            "goalTitle": "Learn Spanish",
            "whyRoot": "Family",
            "conversationHistory": [{"role": "user", "content": "hi"}],
        }
    )

    assert context.goal_title == "Learn Spanish"
    assert context.why_root == "Family"
    assert context.conversation_history[0].content == "hi"


class TestDescribeMissing:
    def test_unknown_completeness(self):
        assert "Unknown" in describe_missing(None)

    def test_lists_missing_parts(self):
        missing = describe_missing(Completeness(title=True, why=True))

        assert "motivation" not in missing
        assert "a concrete first step" in missing
        assert "longer-term reflections" in missing

    def test_nothing_missing(self):
        complete = Completeness(title=True, why=True, steps=True, notes=True)
        assert describe_missing(complete).startswith("Nothing")


def test_stage_prompts_request_their_marker():
    assert "[GOAL_CAPTURED]" in build_coaching_prompt(CoachingContext(stage=CoachingStage.GOAL_DISCOVERY))
    assert "[WHY_CAPTURED]" in build_coaching_prompt(
        CoachingContext(stage=CoachingStage.WHY_DRILLING, goal_title="Learn Spanish")
    )
    assert "[GOAL_COMPLETE]" in build_coaching_prompt(
        CoachingContext(stage=CoachingStage.CONFIRMATION, goal_title="a", why_root="b", micro_win="c")
    )


def test_deepen_prompt_lists_missing_parts():
    prompt = build_coaching_prompt(
        CoachingContext(
            stage=CoachingStage.DEEPEN,
            goal_title="Learn Spanish",
            completeness=Completeness(title=True),
        )
    )

    assert "Motivation: not explored yet" in prompt
    assert "a concrete first step" in prompt
