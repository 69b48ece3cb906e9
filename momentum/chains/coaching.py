"""Pursuit coaching chain: stage prompts, marker parsing and stage transitions."""

import re
import time

from momentum.core.config import get_settings
from momentum.core.llm import first_text_block, get_anthropic_client
from momentum.core.llm_usage import log_llm_usage, usage_from_anthropic
from momentum.core.logging import get_logger
from momentum.core.schemas_coaching import CoachingContext, CoachingStage, ParsedCoachingResponse
from momentum.core.schemas_goals import Completeness

logger = get_logger(__name__)

OPENING_MESSAGE = "Hi, I want to set a new goal."

WELCOME_MESSAGE = (
    "Hi! I'm here to help you set a meaningful goal. "
    "What's something you've been wanting to work on or change in your life?"
)

_FRAMING = (
    "You are a warm, concise coach. You help people shape pursuits: lasting directions of growth "
    "rather than tasks to tick off. Keep replies to 2-4 sentences."
)

# Marker on its own line, then the captured value line, then the visible reply
_MARKER_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (name, re.compile(rf"\[{name}\]\s*\n?([^\n]+)\n([\s\S]*)"))
    for name in ("GOAL_CAPTURED", "WHY_CAPTURED", "MICROWIN_CAPTURED")
]
_UPDATE_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (update_type, re.compile(rf"\[{name}\]\s*\n?([^\n]+)\n([\s\S]*)"))
    for name, update_type in (("GOAL_UPDATED", "goal"), ("WHY_UPDATED", "why"), ("STEP_UPDATED", "step"))
]
_NOTES_UPDATED = re.compile(r"\[NOTES_UPDATED\]\s*\n([\s\S]*?)\n\n([\s\S]*)")

_VALUE_CLEANUPS = [
    re.compile(r"^\{|\}$"),
    re.compile(r"^<[^>]*>:?\s*", re.IGNORECASE),
    re.compile(r"<[^>]*>\s*$", re.IGNORECASE),
    re.compile(r"^goal title:\s*", re.IGNORECASE),
    re.compile(r"^pursuit title:\s*", re.IGNORECASE),
    re.compile(r"^why statement:\s*", re.IGNORECASE),
    re.compile(r"^specific action:\s*", re.IGNORECASE),
]

_CAPTURE_FIELDS = {
    "GOAL_CAPTURED": "goal_title",
    "WHY_CAPTURED": "why_root",
    "MICROWIN_CAPTURED": "micro_win",
}
_UPDATE_FIELDS = {"goal": "goal_title", "why": "why_root", "step": "micro_win"}


def describe_missing(completeness: Completeness | None) -> str:
    """Human-readable list of what a pursuit still lacks."""
    if completeness is None:
        return "Unknown -- explore freely"

    missing = []
    if not completeness.why:
        missing.append("motivation/why")
    if not completeness.steps:
        missing.append("a concrete first step")
    if not completeness.notes:
        missing.append("longer-term reflections")
    return ", ".join(missing) if missing else "Nothing -- the pursuit is fully formed"


def _marker_format(marker: str, value_hint: str) -> str:
    return (
        f"Reply in exactly this format:\n[{marker}]\n{{{value_hint}}}\n{{your reply to the user}}\n"
        "Only the text after the value line is shown to the user."
    )


def build_coaching_prompt(context: CoachingContext) -> str:
    """System prompt for the current coaching stage."""
    stage = context.stage
    goal = f'Pursuit: "{context.goal_title}"'
    why = f'Motivation: "{context.why_root}"'

    if stage == CoachingStage.WELCOME:
        return f"{_FRAMING}\n\nAsk, in one or two friendly sentences, what pursuit they would like to work on."

    if stage == CoachingStage.GOAL_DISCOVERY:
        return (
            f"{_FRAMING}\n\nThe user has described something they want to pursue. Acknowledge it and ask why it matters to them.\n\n"
            + _marker_format("GOAL_CAPTURED", "a 3-10 word pursuit title")
        )

    if stage == CoachingStage.WHY_DRILLING:
        return (
            f"{_FRAMING}\n\n{goal}\n\nThe user has shared their motivation. Reflect it back and ask for one small first step "
            "they could take this week in 5-15 minutes.\n\n"
            + _marker_format("WHY_CAPTURED", "a 5-15 word statement of their motivation")
        )

    if stage == CoachingStage.MICRO_WIN:
        return (
            f"{_FRAMING}\n\n{goal}\n{why}\n\nPin down one specific first step and ask whether they are ready to commit.\n\n"
            + _marker_format("MICROWIN_CAPTURED", "a specific 5-15 minute action for this week")
        )

    if stage == CoachingStage.CONFIRMATION:
        return (
            f"{_FRAMING}\n\n{goal}\n{why}\nFirst step: \"{context.micro_win}\"\n\n"
            "The user has committed. Start your reply with [GOAL_COMPLETE] and follow it with one or two sentences "
            "encouraging their first step. Do not repeat the details back."
        )

    if stage == CoachingStage.COMPLETE:
        return "Give one sentence of encouragement for the road ahead."

    if stage == CoachingStage.DEEPEN:
        ready = context.why_root and context.micro_win
        approach = (
            "It already has a motivation and a step: reflect them back briefly and ask if they are ready to activate."
            if ready
            else "It is missing pieces: help them fill those in before activating."
        )
        lines = [
            f"{_FRAMING}\n\nThe user is reviewing a parked pursuit so they can activate it.",
            goal,
            why if context.why_root else "Motivation: not explored yet",
            f'Current step: "{context.micro_win}"' if context.micro_win else "Next step: not identified yet",
        ]
        if context.notes:
            lines.append(f'Notes: "{context.notes}"')
        lines.append(f"Still missing: {describe_missing(context.completeness)}")
        lines.append(approach)
        lines.append(
            "When they are ready, start your reply with [GOAL_COMPLETE]. To record a change use exactly one of "
            "[WHY_CAPTURED], [MICROWIN_CAPTURED] or [NOTES_UPDATED] on its own line, then the value, then your reply."
        )
        return "\n".join(lines)

    if stage == CoachingStage.CONTINUATION:
        return (
            f"{_FRAMING}\n\nThe user is revisiting an existing pursuit.\n{goal}\n{why}\n"
            f'First step: "{context.micro_win}"\nNotes: "{context.notes or "None yet"}"\n\n'
            "If they change something, put exactly one marker on its own line followed by the new value:\n"
            "[GOAL_UPDATED] title, [WHY_UPDATED] motivation, [STEP_UPDATED] next step, or "
            "[NOTES_UPDATED] notes followed by a blank line.\n"
            "Then write your reply. Without a change, just reply."
        )

    return f"{_FRAMING}\n\nHelp the user clarify their pursuit with a clear why and a first step."


def _clean_value(value: str) -> str:
    for pattern in _VALUE_CLEANUPS:
        value = pattern.sub("", value)
    return value.strip()


def parse_coaching_response(text: str) -> ParsedCoachingResponse:
    """
    Pull a captured value out of a coach reply.

    Markers are checked in a fixed order and the first match wins. Replies
    without a marker come back unchanged as the message.
    """
    for marker, pattern in _MARKER_PATTERNS:
        match = pattern.search(text)
        if match:
            return ParsedCoachingResponse(
                message=match.group(2).strip(),
                **{_CAPTURE_FIELDS[marker]: _clean_value(match.group(1))},
            )

    if "[GOAL_COMPLETE]" in text:
        return ParsedCoachingResponse(message=text.replace("[GOAL_COMPLETE]", "", 1).strip(), is_complete=True)

    for update_type, pattern in _UPDATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return ParsedCoachingResponse(
                message=match.group(2).strip(),
                is_update=True,
                update_type=update_type,
                **{_UPDATE_FIELDS[update_type]: _clean_value(match.group(1))},
            )

    match = _NOTES_UPDATED.search(text)
    if match:
        return ParsedCoachingResponse(
            message=match.group(2).strip(),
            notes=_clean_value(match.group(1)),
            is_update=True,
            update_type="notes",
        )

    return ParsedCoachingResponse(message=text)


def get_next_stage(stage: CoachingStage, context: CoachingContext) -> CoachingStage:
    """Stage that follows ``stage`` given what the context now holds."""
    if stage == CoachingStage.WELCOME:
        return CoachingStage.GOAL_DISCOVERY

    if stage == CoachingStage.GOAL_DISCOVERY:
        if not context.goal_title:
            return CoachingStage.GOAL_DISCOVERY
        return CoachingStage.MICRO_WIN if context.why_root else CoachingStage.WHY_DRILLING

    if stage == CoachingStage.WHY_DRILLING:
        if not context.why_root:
            return CoachingStage.WHY_DRILLING
        return CoachingStage.CONFIRMATION if context.micro_win else CoachingStage.MICRO_WIN

    if stage == CoachingStage.MICRO_WIN:
        return CoachingStage.CONFIRMATION if context.micro_win else CoachingStage.MICRO_WIN

    if stage == CoachingStage.CONFIRMATION:
        return CoachingStage.COMPLETE

    if stage == CoachingStage.DEEPEN:
        if context.why_root and context.micro_win:
            return CoachingStage.CONFIRMATION
        return CoachingStage.DEEPEN

    return stage


def merge_captures(context: CoachingContext, parsed: ParsedCoachingResponse) -> CoachingContext:
    """Context with any values captured in this turn applied."""
    updates = {
        field: value
        for field in ("goal_title", "why_root", "micro_win", "notes")
        if (value := getattr(parsed, field))
    }
    return context.model_copy(update=updates)


async def run_coaching_turn(
    context: CoachingContext,
    user_message: str | None = None,
    user_id: str | None = None,
) -> tuple[ParsedCoachingResponse, CoachingStage]:
    """
    Run one coaching exchange.

    Args:
        context: Conversation state held by the client
        user_message: Latest user message, if any
        user_id: For usage logging

    Returns:
        Tuple of (parsed reply, next stage)
    """
    settings = get_settings()

    messages = [{"role": m.role.value, "content": m.content} for m in context.conversation_history]
    if user_message:
        messages.append({"role": "user", "content": user_message})
    elif not messages:
        messages.append({"role": "user", "content": OPENING_MESSAGE})

    client = get_anthropic_client()

    start = time.time()
    response = await client.messages.create(
        model=settings.COACHING_MODEL,
        max_tokens=settings.COACHING_MAX_TOKENS,
        system=build_coaching_prompt(context),
        messages=messages,
    )
    duration_ms = int((time.time() - start) * 1000)

    tokens_in, tokens_out = usage_from_anthropic(response)
    log_llm_usage(
        workflow="coaching",
        model=settings.COACHING_MODEL,
        provider="anthropic",
        tokens_input=tokens_in,
        tokens_output=tokens_out,
        duration_ms=duration_ms,
        user_id=user_id,
        chain="coach_goal",
    )

    raw = first_text_block(response) or ""
    parsed = parse_coaching_response(raw)

    logger.info(
        f"Coaching turn at stage {context.stage.value}",
        extra={
            "user_id": user_id,
            "is_complete": parsed.is_complete,
            "update_type": parsed.update_type,
        },
    )

    next_stage = get_next_stage(context.stage, merge_captures(context, parsed))
    return parsed, next_stage
