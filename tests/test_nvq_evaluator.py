"""Tests for Note Vitality Quotient scoring."""

from momentum.core.nvq_evaluator import (
    NVQEvaluator,
    aggregate_metrics,
    identify_issues,
    quality_status,
    quick_evaluate_note,
    to_storable_breakdown,
)
from momentum.core.nvq_patterns import calculate_synthesis_ratio, classify_tag, extract_project_name
from momentum.core.schemas_nvq import NVQEvaluationResult, NVQExtractedNote, NVQGoal, QualityStatus


def _strong_note() -> NVQExtractedNote:
    return NVQExtractedNote.model_validate(
        {
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
            "connections": [{"targetTitle": "Background jobs", "type": "related", "strength": 0.7}],
        }
    )


def _weak_note() -> NVQExtractedNote:
    return NVQExtractedNote(
        title="Python",
        content="Python is a programming language that was created in 1991.",
        tags=["programming"],
    )


def _evaluator() -> NVQEvaluator:
    return NVQEvaluator(
        mocs=["Writing Systems"],
        projects=["Momentum"],
        goals=[NVQGoal(title="Ship the Momentum app", why_root="Help people keep writing")],
    )


class TestEvaluateNote:
    def test_strong_note_scores_full_marks(self):
        score = _evaluator().evaluate_note(_strong_note())

        assert score.breakdown.why.score == 3
        assert score.breakdown.metadata.score == 2
        assert score.breakdown.taxonomy.score == 2
        assert score.breakdown.connectivity.score == 2
        assert score.breakdown.originality.score == 1
        assert score.total == 10
        assert score.passing is True
        assert score.failing_components == []

    def test_weak_note_fails_everything(self):
        score = _evaluator().evaluate_note(_weak_note())

        assert score.total == 0
        assert score.passing is False
        assert set(score.failing_components) == {"why", "metadata", "taxonomy", "connectivity", "originality"}
        assert score.breakdown.originality.is_wikipedia_fact is True

    def test_project_link_alias(self):
        assert _strong_note().project == "Momentum"

    def test_threshold_is_configurable(self):
        evaluator = NVQEvaluator(passing_threshold=11)
        assert evaluator.evaluate_note(_strong_note()).passing is False


class TestComponents:
    def test_two_metadata_fields_score_one(self):
        note = NVQExtractedNote(title="t", content="c", status="Seed", stakeholder="Self")
        metadata = NVQEvaluator().score_metadata(note)

        assert metadata.fields_present == 2
        assert metadata.score == 1

    def test_invalid_metadata_values_do_not_count(self):
        note = NVQExtractedNote(title="t", content="c", status="Done", note_type="Essay", stakeholder="Team")
        assert NVQEvaluator().score_metadata(note).fields_present == 0

    def test_project_found_in_content(self):
        note = NVQExtractedNote(title="t", content="Part of [[Project/Garden]] planning.")
        metadata = NVQEvaluator().score_metadata(note)

        assert metadata.has_project is True
        assert metadata.project_link == "Garden"

    def test_mixed_tags_score_one(self):
        note = NVQExtractedNote(title="t", content="c", tags=["task/refactor", "research"])
        taxonomy = NVQEvaluator().score_taxonomy(note)

        assert taxonomy.functional_tags == 1
        assert taxonomy.topic_tags == 1
        assert taxonomy.score == 1
        assert taxonomy.has_action_tag is True

    def test_too_many_tags_loses_a_point(self):
        note = NVQExtractedNote(title="t", content="c", tags=[f"task/step-{i}" for i in range(6)])
        taxonomy = NVQEvaluator().score_taxonomy(note)

        assert taxonomy.exceeds_limit is True
        assert taxonomy.score == 1

    def test_no_tags_scores_zero(self):
        assert NVQEvaluator().score_taxonomy(NVQExtractedNote(title="t", content="c")).score == 0

    def test_example_of_is_downward(self):
        note = NVQExtractedNote.model_validate(
            {"title": "t", "content": "c", "connections": [{"targetTitle": "Specific case", "type": "example_of"}]}
        )
        connectivity = NVQEvaluator().score_connectivity(note)

        assert connectivity.score == 0
        assert connectivity.total_connections == 1

    def test_sideways_only_scores_one(self):
        note = NVQExtractedNote(title="t", content="Relates to [[Habit loops]].")
        connectivity = NVQEvaluator().score_connectivity(note)

        assert connectivity.has_sideways_link is True
        assert connectivity.has_upward_link is False
        assert connectivity.score == 1

    def test_project_link_is_upward(self):
        note = NVQExtractedNote(title="t", content="Feeds [[Project/Garden]].")
        classified = NVQEvaluator().classify_connections(note)

        assert classified[0].direction == "upward"
        assert classified[0].is_to_project is True

    def test_why_without_goal_link(self):
        note = NVQExtractedNote(title="t", content="c", purpose_statement="This helps me in order to focus")
        why = NVQEvaluator().score_why(note)

        assert why.has_first_person is True
        assert why.is_actionable is True
        assert why.links_to_personal_goal is False
        assert why.score == 2


def test_identify_issues_for_weak_note():
    issues = identify_issues(_evaluator().evaluate_note(_weak_note()))

    assert 'Missing purpose statement ("I am keeping this because...")' in issues
    assert "Missing metadata fields (Status, Type, Stakeholder)" in issues
    assert "Too many topic tags, not enough functional tags" in issues
    assert "Missing upward link to MOC or Project" in issues
    assert "Missing sideways link to related concept" in issues
    assert "Content is too factual - add personal interpretation" in issues


def test_identify_issues_for_strong_note():
    assert identify_issues(_evaluator().evaluate_note(_strong_note())) == []


def test_aggregate_metrics():
    evaluator = _evaluator()
    results, metrics = evaluator.evaluate_notes([_strong_note(), _weak_note()])

    assert len(results) == 2
    assert metrics.total_notes_evaluated == 2
    assert metrics.mean_nvq == 5.0
    assert metrics.min_nvq == 0
    assert metrics.max_nvq == 10
    assert metrics.passing_rate == 0.5
    assert metrics.why_failure_rate == 0.5
    assert metrics.notes_with_purpose == 1
    assert metrics.notes_with_two_links == 1
    assert len(metrics.top_failures) == 5
    assert all(f.component == "why" for f in metrics.top_failures)


def test_aggregate_metrics_empty():
    assert aggregate_metrics([]).total_notes_evaluated == 0


def test_quality_status_and_storable_breakdown():
    strong = quick_evaluate_note(_strong_note())
    weak = quick_evaluate_note(_weak_note())

    assert quality_status(weak) == QualityStatus.NEEDS_REVIEW
    assert to_storable_breakdown(weak) == {
        "why": 0,
        "metadata": 0,
        "taxonomy": 0,
        "connectivity": 0,
        "originality": 0,
    }
    assert set(to_storable_breakdown(strong)) == {"why", "metadata", "taxonomy", "connectivity", "originality"}


def test_evaluation_result_model():
    score = quick_evaluate_note(_weak_note())
    result = NVQEvaluationResult(note_title="Python", note_content="...", nvq_score=score)

    assert result.issues == []


class TestPatterns:
    def test_classify_functional_tags(self):
        assert classify_tag("#decision/database")["category"] == "action"
        assert classify_tag("skill/writing") == {"category": "skill", "action": "writing", "is_topic_tag": False}
        assert classify_tag("insight/habits")["category"] == "evolution"
        assert classify_tag("project/garden")["category"] == "project"

    def test_classify_topic_tags(self):
        assert classify_tag("productivity")["is_topic_tag"] is True
        assert classify_tag("gardening")["is_topic_tag"] is True

    def test_extract_project_name(self):
        assert extract_project_name("project: Garden plan") == "Garden plan"
        assert extract_project_name("This is for my Garden project") == "Garden"
        assert extract_project_name("nothing here") is None

    def test_synthesis_ratio_discounts_quotes(self):
        assert calculate_synthesis_ratio("") == 0.0
        assert calculate_synthesis_ratio("all my own words") == 1.0
        text = 'Quote: "this is a long quoted passage indeed"'
        assert calculate_synthesis_ratio(text) < 0.5
