"""NVQ scoring engine.

Scores extracted notes on the 10-point Note Vitality Quotient:

- why (0-3): purpose statement in first person, linked to a goal, actionable
- metadata (0-2): project, status, type and stakeholder fields
- taxonomy (0-2): functional tags rather than topic tags
- connectivity (0-2): an upward link (MOC / project) and a sideways link
- originality (0-1): synthesis rather than encyclopedic fact

Pure Python, no LLM calls.
"""

import re
from collections import Counter
from typing import Iterable

from momentum.core import nvq_patterns as patterns
from momentum.core.schemas_nvq import (
    ClassifiedConnection,
    ConnectivityScore,
    FunctionalTag,
    MetadataScore,
    NVQAggregateMetrics,
    NVQBreakdown,
    NVQEvaluationResult,
    NVQExtractedNote,
    NVQGoal,
    NVQScore,
    OriginalityScore,
    QualityStatus,
    TaxonomyScore,
    TopFailure,
    WhyScore,
)

DEFAULT_PASSING_THRESHOLD = 7
MAX_TAGS = 5


def _link_pattern(name: str) -> re.Pattern:
    return re.compile(rf"\[\[.*{re.escape(name)}.*\]\]", re.IGNORECASE)


class NVQEvaluator:
    """Evaluate notes against the user's MOCs, projects and goals."""

    def __init__(
        self,
        mocs: Iterable[str] = (),
        projects: Iterable[str] = (),
        goals: Iterable[NVQGoal] = (),
        passing_threshold: int = DEFAULT_PASSING_THRESHOLD,
    ):
        self.moc_patterns = [_link_pattern(m) for m in mocs]
        self.project_patterns = [_link_pattern(p) for p in projects]
        self.goals = list(goals)
        self.passing_threshold = passing_threshold

    def evaluate_note(self, note: NVQExtractedNote) -> NVQScore:
        why = self.score_why(note)
        metadata = self.score_metadata(note)
        taxonomy = self.score_taxonomy(note)
        connectivity = self.score_connectivity(note)
        originality = self.score_originality(note)

        components = {
            "why": why,
            "metadata": metadata,
            "taxonomy": taxonomy,
            "connectivity": connectivity,
            "originality": originality,
        }
        total = sum(c.score for c in components.values())

        return NVQScore(
            total=total,
            breakdown=NVQBreakdown(**components),
            passing=total >= self.passing_threshold,
            failing_components=[name for name, c in components.items() if c.score == 0],
        )

    # ==========================================================================
    # Components
    # ==========================================================================

    def score_why(self, note: NVQExtractedNote) -> WhyScore:
        purpose = note.purpose_statement or ""
        content = f"{note.title} {note.content} {purpose}"

        has_first_person = bool(
            patterns.FIRST_PERSON.search(purpose) or patterns.FIRST_PERSON.search(content)
        )
        links_to_goal = self._links_to_goal(content)
        is_actionable = bool(
            patterns.ACTIONABLE.search(purpose) or patterns.ACTIONABLE.search(content)
        )

        return WhyScore(
            score=int(has_first_person) + int(links_to_goal) + int(is_actionable),
            has_first_person=has_first_person,
            links_to_personal_goal=links_to_goal,
            is_actionable=is_actionable,
            raw_statement=purpose or None,
        )

    def _links_to_goal(self, content: str) -> bool:
        content_lower = content.lower()
        return any(
            goal.title.lower() in content_lower
            or (goal.why_root and goal.why_root.lower() in content_lower)
            for goal in self.goals
        )

    def score_metadata(self, note: NVQExtractedNote) -> MetadataScore:
        project_link = note.project or patterns.extract_project_name(note.content)
        has_project = bool(project_link)
        has_status = note.status in patterns.VALID_STATUSES
        has_type = note.note_type in patterns.VALID_NOTE_TYPES
        has_stakeholder = note.stakeholder in patterns.VALID_STAKEHOLDERS

        fields_present = sum([has_project, has_status, has_type, has_stakeholder])
        if fields_present >= 3:
            score = 2
        elif fields_present == 2:
            score = 1
        else:
            score = 0

        return MetadataScore(
            score=score,
            has_project=has_project,
            project_link=project_link or None,
            has_status=has_status,
            status=note.status,
            has_type=has_type,
            type=note.note_type,
            has_stakeholder=has_stakeholder,
            stakeholder=note.stakeholder,
            fields_present=fields_present,
        )

    def score_taxonomy(self, note: NVQExtractedNote) -> TaxonomyScore:
        breakdown = [FunctionalTag(raw=tag, **patterns.classify_tag(tag)) for tag in note.tags]
        functional = [t for t in breakdown if not t.is_topic_tag]
        topic = [t for t in breakdown if t.is_topic_tag]
        categories = {t.category for t in breakdown}
        exceeds_limit = len(note.tags) > MAX_TAGS

        score = 0
        if functional and not topic:
            score = 2
        elif functional:
            score = 1
        if exceeds_limit and score > 0:
            score -= 1

        return TaxonomyScore(
            score=score,
            total_tags=len(note.tags),
            functional_tags=len(functional),
            topic_tags=len(topic),
            tag_breakdown=breakdown,
            has_action_tag="action" in categories,
            has_skill_tag="skill" in categories,
            has_evolution_tag="evolution" in categories,
            has_project_tag="project" in categories,
            exceeds_limit=exceeds_limit,
        )

    def score_connectivity(self, note: NVQExtractedNote) -> ConnectivityScore:
        classified = self.classify_connections(note)
        upward = [c for c in classified if c.direction == "upward"]
        sideways = [c for c in classified if c.direction == "sideways"]

        meets_minimum = bool(upward and sideways)
        if meets_minimum:
            score = 2
        elif upward or sideways:
            score = 1
        else:
            score = 0

        return ConnectivityScore(
            score=score,
            has_upward_link=bool(upward),
            upward_links=upward,
            has_sideways_link=bool(sideways),
            sideways_links=sideways,
            total_connections=len(note.connections),
            meets_minimum=meets_minimum,
        )

    def classify_connections(self, note: NVQExtractedNote) -> list[ClassifiedConnection]:
        """Classify explicit connections plus wikilinks found in the content."""
        links = [(c.target_title, c.type) for c in note.connections]
        links += [(title, "reference") for title in patterns.extract_wikilinks(note.content)]

        classified = []
        for target_title, original_type in links:
            target = target_title.lower()
            is_to_moc = (
                any(p.search(target_title) for p in self.moc_patterns)
                or "moc" in target
                or "map of content" in target
                or bool(patterns.MOC_LINK.search(target_title))
            )
            is_to_project = (
                any(p.search(target_title) for p in self.project_patterns)
                or "project/" in target
                or bool(patterns.PROJECT_LINK.search(target_title))
            )

            if is_to_moc or is_to_project:
                direction = "upward"
            elif original_type == "example_of":
                direction = "downward"
            else:
                direction = "sideways"

            classified.append(
                ClassifiedConnection(
                    target_title=target_title,
                    original_type=original_type,
                    direction=direction,
                    is_to_moc=is_to_moc,
                    is_to_project=is_to_project,
                )
            )
        return classified

    def score_originality(self, note: NVQExtractedNote) -> OriginalityScore:
        content = f"{note.title} {note.content}"

        synthesis_matches = patterns.count_pattern_matches(content, patterns.ORIGINAL_INSIGHT)
        fact_matches = patterns.count_pattern_matches(content, patterns.WIKIPEDIA_FACT)
        is_wikipedia_fact = fact_matches > 0 and synthesis_matches < 2
        synthesis_ratio = patterns.calculate_synthesis_ratio(content)
        has_original_insight = synthesis_matches >= 2 or synthesis_ratio > 0.7

        if is_wikipedia_fact:
            reasoning = "Contains primarily factual/encyclopedic content"
        elif has_original_insight:
            reasoning = "Contains original interpretation and synthesis"
        else:
            reasoning = "Mostly factual, lacks personal synthesis"

        return OriginalityScore(
            score=1 if has_original_insight and not is_wikipedia_fact else 0,
            synthesis_ratio=synthesis_ratio,
            has_original_insight=has_original_insight,
            is_wikipedia_fact=is_wikipedia_fact,
            reasoning_provided=reasoning,
        )

    # ==========================================================================
    # Batch evaluation
    # ==========================================================================

    def evaluate_notes(
        self, notes: list[NVQExtractedNote]
    ) -> tuple[list[NVQEvaluationResult], NVQAggregateMetrics]:
        results = []
        for note in notes:
            score = self.evaluate_note(note)
            results.append(
                NVQEvaluationResult(
                    note_title=note.title,
                    note_content=note.content,
                    nvq_score=score,
                    issues=identify_issues(score),
                )
            )
        return results, aggregate_metrics(results)


def identify_issues(score: NVQScore) -> list[str]:
    """Human-readable improvement hints for a scored note."""
    b = score.breakdown
    issues = []

    if b.why.score == 0:
        issues.append('Missing purpose statement ("I am keeping this because...")')
    elif not b.why.links_to_personal_goal:
        issues.append("Purpose statement does not link to a personal goal")

    if b.metadata.fields_present < 2:
        issues.append("Missing metadata fields (Status, Type, Stakeholder)")

    if b.taxonomy.topic_tags > b.taxonomy.functional_tags:
        issues.append("Too many topic tags, not enough functional tags")

    if b.taxonomy.exceeds_limit:
        issues.append("Exceeds 5 tag limit - note may need to be split")

    if not b.connectivity.meets_minimum:
        if not b.connectivity.has_upward_link:
            issues.append("Missing upward link to MOC or Project")
        if not b.connectivity.has_sideways_link:
            issues.append("Missing sideways link to related concept")

    if b.originality.is_wikipedia_fact:
        issues.append("Content is too factual - add personal interpretation")

    return issues


def aggregate_metrics(results: list[NVQEvaluationResult]) -> NVQAggregateMetrics:
    """Mean / median / extremes, component failure rates and top issues."""
    if not results:
        return NVQAggregateMetrics()

    n = len(results)
    scores = sorted(r.nvq_score.total for r in results)
    breakdowns = [r.nvq_score.breakdown for r in results]

    issue_counter: Counter = Counter()
    for result in results:
        component = (result.nvq_score.failing_components or ["general"])[0]
        for issue in result.issues:
            issue_counter[(component, issue)] += 1

    def rate(predicate) -> float:
        return sum(1 for b in breakdowns if predicate(b)) / n

    return NVQAggregateMetrics(
        mean_nvq=sum(scores) / n,
        median_nvq=scores[n // 2],
        min_nvq=scores[0],
        max_nvq=scores[-1],
        passing_rate=sum(1 for r in results if r.nvq_score.passing) / n,
        why_failure_rate=rate(lambda b: b.why.score == 0),
        metadata_failure_rate=rate(lambda b: b.metadata.score == 0),
        taxonomy_failure_rate=rate(lambda b: b.taxonomy.score == 0),
        connectivity_failure_rate=rate(lambda b: b.connectivity.score == 0),
        originality_failure_rate=rate(lambda b: b.originality.score == 0),
        total_notes_evaluated=n,
        notes_with_purpose=sum(1 for b in breakdowns if b.why.raw_statement),
        notes_with_complete_metadata=sum(1 for b in breakdowns if b.metadata.fields_present >= 3),
        notes_with_functional_tags=sum(1 for b in breakdowns if b.taxonomy.functional_tags > 0),
        notes_with_two_links=sum(1 for b in breakdowns if b.connectivity.meets_minimum),
        notes_that_are_synthesis=sum(1 for b in breakdowns if b.originality.has_original_insight),
        top_failures=[
            TopFailure(component=component, issue=issue, count=count)
            for (component, issue), count in issue_counter.most_common(5)
        ],
    )


def quality_status(score: NVQScore) -> QualityStatus:
    return QualityStatus.PASSING if score.passing else QualityStatus.NEEDS_REVIEW


def to_storable_breakdown(score: NVQScore) -> dict[str, int]:
    """Component totals for the ``nvq_breakdown`` column."""
    b = score.breakdown
    return {
        "why": b.why.score,
        "metadata": b.metadata.score,
        "taxonomy": b.taxonomy.score,
        "connectivity": b.connectivity.score,
        "originality": b.originality.score,
    }


def quick_evaluate_note(
    note: NVQExtractedNote,
    passing_threshold: int = DEFAULT_PASSING_THRESHOLD,
) -> NVQScore:
    """Score a note without MOC, project or goal context."""
    return NVQEvaluator(passing_threshold=passing_threshold).evaluate_note(note)
