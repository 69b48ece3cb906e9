"""Prompt builders for writing prompts, titles and note extraction."""

from typing import Any

from momentum.core.schemas_nvq import NVQExtractedNote, NVQScore

FALLBACK_PROMPT = "What happens next?"

TITLE_SYSTEM_PROMPT = """You name personal writing. Read the text and reply with a 2-6 word title in title case that captures its main theme.
Avoid generic titles such as "My Writing" and do not wrap the title in quotes.
Reply with the title only."""


def build_continuation_prompt(
    learning_goals: list[str] | None = None,
    active_goals: list[dict[str, Any]] | None = None,
) -> str:
    """
    System prompt for the one-line "keep writing" nudge.

    Active goals take precedence over the older profile learning goals.
    Momentum of 2 or less reads as stuck, 4 or more as flowing.
    """
    prompt = """You keep a writer moving. Given their most recent writing, reply with one short open question or statement that follows naturally from it and invites them to go further.
Match their tone. Do not give advice, analyse the writing or ask more than one question.
Reply with the prompt text only."""

    if active_goals:
        lines = []
        for goal in active_goals:
            line = f'- "{goal["title"]}"'
            if goal.get("why_root"):
                line += f" (motivation: {goal['why_root']})"
            if goal.get("current_micro_win"):
                line += f" [current focus: {goal['current_micro_win']}]"
            momentum = goal.get("momentum") or 3
            if momentum <= 2:
                line += " [stuck: be encouraging and grounding]"
            elif momentum >= 4:
                line += " [flowing: support the momentum]"
            lines.append(line)

        plural = "s" if len(active_goals) > 1 else ""
        prompt += (
            f"\n\nThe writer has {len(active_goals)} active goal{plural}:\n"
            + "\n".join(lines)
            + "\n\nWhere it fits, connect the prompt to one of these goals or its motivation."
        )
    elif learning_goals:
        prompt += "\n\nThe writer's learning goals:\n" + "\n".join(f"- {g}" for g in learning_goals)

    return prompt


def build_worker_extraction_prompt(
    related_notes: list[dict[str, Any]],
    common_tags: list[str],
) -> str:
    """System prompt for queued extraction, aware of the user's existing notes."""
    sections = [
        "You extract atomic Zettelkasten notes from a piece of writing. Each note holds one idea that stands on its own."
    ]

    if related_notes:
        notes = "\n".join(f'- "{n["title"]}": {n["content"]}' for n in related_notes)
        sections.append(f"EXISTING RELATED NOTES (link to these or merge into them):\n{notes}")

    if common_tags:
        sections.append(f"EXISTING TAGS (reuse when they fit):\n{', '.join(common_tags)}")

    sections.append(
        """For each idea:
- If it substantially repeats an existing note, set "consolidate_with" to that note's exact title and "merged_content" to a combined version richer than either.
- Otherwise write a new note: a title of at most 10 words, a 1-3 sentence explanation and 2-5 tags.
- Add connections to new or existing notes by exact title. Types: related, supports, contradicts, extends, example_of.

Reply with JSON only:
{"notes": [{"title": "...", "content": "...", "consolidate_with": null, "merged_content": null, "tags": ["..."], "connections": [{"targetTitle": "...", "type": "related", "strength": 0.8}]}]}

If nothing is worth keeping reply {"notes": []}."""
    )
    return "\n\n".join(sections)


def build_nvq_extraction_prompt(context: dict[str, Any]) -> str:
    """
    System prompt for direct extraction held to the NVQ scorecard.

    Args:
        context: Dict with related_notes, common_tags, user_goals,
            available_mocs and available_projects
    """
    sections = [
        """You extract atomic Zettelkasten notes that must score at least 7/10 on this scorecard:
- why (3): a first-person purpose statement ("I am keeping this because...") that names one of the user's goals and says what it enables
- metadata (2): status Seed|Sapling|Evergreen, noteType Logic|Technical|Reflection, stakeholder Self|Future Users|AI Agent, and projectLink when relevant
- taxonomy (2): at most 5 functional tags such as #task/..., #decision/..., #skill/..., #insight/..., #project/...; no bare topic tags
- connectivity (2): one upward link to a MOC or project ("[[MOC/...]]", "[[Project/...]]") and one sideways link to a related note
- originality (1): personal interpretation, not encyclopedic fact"""
    ]

    goals = context.get("user_goals") or []
    if goals:
        lines = "\n".join(
            f'- "{g["title"]}"' + (f" (why: {g['why_root']})" if g.get("why_root") else "") for g in goals
        )
        sections.append(f"USER GOALS:\n{lines}")

    if context.get("available_mocs"):
        sections.append("MOCS: " + ", ".join(f"[[MOC/{m}]]" for m in context["available_mocs"]))
    if context.get("available_projects"):
        sections.append("PROJECTS: " + ", ".join(f"[[Project/{p}]]" for p in context["available_projects"]))

    related = context.get("related_notes") or []
    if related:
        notes = "\n".join(f'- "{n["title"]}": {n["content"]}' for n in related)
        sections.append(f"EXISTING RELATED NOTES:\n{notes}")

    if context.get("common_tags"):
        sections.append("EXISTING TAGS: " + ", ".join(context["common_tags"]))

    sections.append(
        """Reply with JSON only:
{"notes": [{"title": "...", "purposeStatement": "I am keeping this because...", "content": "...", "status": "Seed", "noteType": "Reflection", "stakeholder": "Self", "projectLink": null, "tags": ["#insight/..."], "connections": [{"targetTitle": "[[MOC/...]]", "type": "related", "strength": 0.8}], "consolidate_with": null, "merged_content": null}]}

If nothing is worth keeping reply {"notes": []}."""
    )
    return "\n\n".join(sections)


def _fix_instructions(score: NVQScore) -> list[str]:
    b = score.breakdown
    fixes = []

    if b.why.score < 3:
        if not b.why.has_first_person:
            fixes.append('Add a first-person purpose statement ("I am keeping this because...").')
        if not b.why.links_to_personal_goal:
            fixes.append("Tie the purpose statement to one of the user's goals.")
        if not b.why.is_actionable:
            fixes.append("Say what this note lets the user do.")

    if b.metadata.fields_present < 3:
        missing = [
            name
            for name, present in (
                ("status", b.metadata.has_status),
                ("noteType", b.metadata.has_type),
                ("stakeholder", b.metadata.has_stakeholder),
            )
            if not present
        ]
        fixes.append(f"Fill in metadata: {', '.join(missing) or 'projectLink'}.")

    if b.taxonomy.topic_tags or not b.taxonomy.functional_tags:
        fixes.append("Replace topic tags with prefixed functional tags (#task/, #skill/, #insight/, #project/).")
    if b.taxonomy.exceeds_limit:
        fixes.append("Keep at most 5 tags.")

    if not b.connectivity.has_upward_link:
        fixes.append("Add an upward link to a MOC or project.")
    if not b.connectivity.has_sideways_link:
        fixes.append("Add a sideways link to a related note.")

    if b.originality.score == 0:
        fixes.append("Add personal interpretation instead of restating facts.")

    return fixes


def build_refinement_prompt(
    note: NVQExtractedNote,
    score: NVQScore,
    issues: list[str],
    context: dict[str, Any],
) -> str:
    """User message asking the model to rewrite one failing note."""
    b = score.breakdown
    breakdown = (
        f"why {b.why.score}/3, metadata {b.metadata.score}/2, taxonomy {b.taxonomy.score}/2, "
        f"connectivity {b.connectivity.score}/2, originality {b.originality.score}/1"
    )
    note_json = note.model_dump_json(by_alias=True, exclude_none=True)

    parts = [
        f"This note scored {score.total}/10 ({breakdown}) and needs at least 7.",
        f"NOTE:\n{note_json}",
    ]
    if issues:
        parts.append("ISSUES:\n" + "\n".join(f"- {i}" for i in issues))
    parts.append("FIXES:\n" + "\n".join(f"- {f}" for f in _fix_instructions(score)))

    goals = context.get("user_goals") or []
    if goals:
        parts.append("USER GOALS: " + "; ".join(g["title"] for g in goals))
    if context.get("available_mocs"):
        parts.append("MOCS: " + ", ".join(context["available_mocs"]))
    if context.get("available_projects"):
        parts.append("PROJECTS: " + ", ".join(context["available_projects"]))
    related = context.get("related_notes") or []
    if related:
        parts.append("RELATED NOTES: " + ", ".join(f'"{n["title"]}"' for n in related))

    parts.append("Reply with the rewritten note as one JSON object using the same keys.")
    return "\n\n".join(parts)
