"""LLM client utilities shared by the coaching and extraction chains."""

import json
import re
from typing import Any

from anthropic import AsyncAnthropic
from langchain_openai import ChatOpenAI

from momentum.core.config import get_settings

# Greedy match from the first "{" to the last "}" of a response
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def get_llm(
    model: str | None = None,
    temperature: float = 0.3,
    max_tokens: int | None = None,
    json_mode: bool = False,
) -> ChatOpenAI:
    """
    Get configured OpenAI chat model for LangChain calls.

    Args:
        model: Model name override (defaults to config setting)
        temperature: Temperature for generation
        max_tokens: Optional completion token limit
        json_mode: Ask the API for a JSON object response

    Returns:
        ChatOpenAI instance configured with API key and model
    """
    settings = get_settings()

    kwargs: dict[str, Any] = {}
    if json_mode:
        kwargs["model_kwargs"] = {"response_format": {"type": "json_object"}}
    if max_tokens:
        kwargs["max_tokens"] = max_tokens

    return ChatOpenAI(
        api_key=settings.OPENAI_API_KEY,
        model=model or settings.OPENAI_MODEL,
        temperature=temperature,
        **kwargs,
    )


def get_anthropic_client() -> AsyncAnthropic:
    """Get an async Anthropic client using the configured API key."""
    settings = get_settings()
    return AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)


def first_text_block(response: Any) -> str | None:
    """Return the text of the first text content block of a Messages API response."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return block.text
    return None


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_llm_json_dict(raw_output: str) -> dict:
    """
    Parse LLM output as a JSON object, tolerating prose around it.

    Fences are stripped first; when the remainder is not pure JSON the
    outermost ``{...}`` span is parsed instead.

    Args:
        raw_output: Raw string from LLM response

    Returns:
        Parsed dict from JSON

    Raises:
        ValueError: If no JSON object is present in the output
        json.JSONDecodeError: If JSON parsing fails after cleanup
    """
    cleaned = _strip_llm_fences(raw_output)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(cleaned)
        if not match:
            raise ValueError("No valid JSON in response")
        parsed = json.loads(match.group(0))

    if not isinstance(parsed, dict):
        raise ValueError("Expected a JSON object in response")
    return parsed
