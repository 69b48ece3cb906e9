"""Repeated "why" questioning to find the root motivation behind a goal."""

import time

from momentum.core.config import get_settings
from momentum.core.llm import first_text_block, get_anthropic_client
from momentum.core.llm_usage import log_llm_usage, usage_from_anthropic
from momentum.core.logging import get_logger
from momentum.core.schemas_coaching import ChatMessage, ParsedWhyResponse

logger = get_logger(__name__)

COMPLETE_MARKER = "[COMPLETE]"

DEFAULT_QUESTION = "Why is this important to you?"

FALLBACK_QUESTIONS = [
    DEFAULT_QUESTION,
    "And why does that matter?",
    "What would achieving this give you that you don't have now?",
]

WHY_DRILLING_SYSTEM_PROMPT = f"""You help someone find the emotional reason behind a goal by asking "why" a few times.

Ask one short, warm question per reply, each going a level deeper than their last answer and using their own words.
You are at the root when they talk about people they care about, core values, or what they fear losing or hope to gain. That usually takes 3-4 rounds.

While still asking, reply with the question only.
Once you reach the root, start your reply with {COMPLETE_MARKER} and follow it with one or two sentences in the second person ("You want to ... because ...")."""


def build_why_messages(goal_title: str, conversation: list[ChatMessage]) -> list[dict[str, str]]:
    """Conversation for the model, opened by the goal itself."""
    messages = [{"role": "user", "content": f"I want to: {goal_title}"}]
    messages.extend({"role": m.role.value, "content": m.content} for m in conversation)
    return messages


def parse_why_response(text: str) -> ParsedWhyResponse:
    if text.startswith(COMPLETE_MARKER):
        why_root = text.replace(COMPLETE_MARKER, "", 1).strip()
        return ParsedWhyResponse(is_complete=True, message=why_root, why_root=why_root)

    return ParsedWhyResponse(is_complete=False, message=text.strip())


def fallback_why_response(goal_title: str, conversation: list[ChatMessage]) -> ParsedWhyResponse:
    """Canned questions by turn, used when no model is configured."""
    if len(conversation) >= 3:
        why_root = f"You want to {goal_title.lower()} because it matters deeply to you."
        return ParsedWhyResponse(is_complete=True, message=why_root, why_root=why_root)

    index = min(len(conversation), len(FALLBACK_QUESTIONS) - 1)
    return ParsedWhyResponse(is_complete=False, message=FALLBACK_QUESTIONS[index])


async def run_why_drilling(
    goal_title: str,
    conversation: list[ChatMessage],
    user_id: str | None = None,
) -> ParsedWhyResponse:
    """
    Ask the next "why" question, or summarise the root once it is reached.

    Falls back to canned questions when no Anthropic key is configured.
    """
    settings = get_settings()
    if not settings.ANTHROPIC_API_KEY:
        return fallback_why_response(goal_title, conversation)

    client = get_anthropic_client()

    start = time.time()
    response = await client.messages.create(
        model=settings.COACHING_MODEL,
        max_tokens=settings.COACHING_MAX_TOKENS,
        system=WHY_DRILLING_SYSTEM_PROMPT,
        messages=build_why_messages(goal_title, conversation),
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
        chain="drill_why",
    )

    text = first_text_block(response)
    if not text:
        logger.warning("Why drilling returned no text", extra={"user_id": user_id})
        return ParsedWhyResponse(is_complete=False, message=DEFAULT_QUESTION)

    return parse_why_response(text)
