"""AI providers for writing prompts, titles, note extraction and free chat.

``get_ai_provider()`` picks one from the ``AI_PROVIDER`` setting: ``anthropic``,
``openai``, or anything else for a mock that makes no network calls.
"""

import random
import time
from typing import Any

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from momentum.chains.prompts import FALLBACK_PROMPT, TITLE_SYSTEM_PROMPT, build_continuation_prompt
from momentum.core.config import get_settings
from momentum.core.llm import first_text_block, get_anthropic_client, get_llm, parse_llm_json_dict
from momentum.core.llm_usage import log_llm_usage, usage_from_anthropic, usage_from_langchain
from momentum.core.logging import get_logger

logger = get_logger(__name__)

MOCK_PROMPTS = [
    "What happens next?",
    "And then...",
    "But why?",
    "What if everything changed?",
    "Who else was there?",
    "What did they discover?",
    "How did it begin?",
    "What were they afraid of?",
]


def _clean_title(raw: str) -> str:
    return raw.strip().strip("\"'").strip()


class AnthropicProvider:
    """Provider backed by the Anthropic Messages API."""

    name = "anthropic"

    def __init__(self, user_id: str | None = None):
        self.settings = get_settings()
        self.model = self.settings.EXTRACTION_MODEL
        self.user_id = user_id

    async def _complete(
        self,
        chain: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        system: str | None = None,
    ) -> str | None:
        client = get_anthropic_client()
        kwargs: dict[str, Any] = {"model": self.model, "max_tokens": max_tokens, "messages": messages}
        if system:
            kwargs["system"] = system

        start = time.time()
        response = await client.messages.create(**kwargs)
        duration_ms = int((time.time() - start) * 1000)

        tokens_in, tokens_out = usage_from_anthropic(response)
        log_llm_usage(
            workflow="ai_provider",
            model=self.model,
            provider=self.name,
            tokens_input=tokens_in,
            tokens_output=tokens_out,
            duration_ms=duration_ms,
            user_id=self.user_id,
            chain=chain,
        )
        return first_text_block(response)

    async def generate_prompt(
        self,
        context: str,
        learning_goals: list[str] | None = None,
        active_goals: list[dict[str, Any]] | None = None,
    ) -> str:
        text = await self._complete(
            "generate_prompt",
            [{"role": "user", "content": f"Recent writing:\n\n{context}"}],
            max_tokens=100,
            system=build_continuation_prompt(learning_goals, active_goals),
        )
        return text.strip() if text else FALLBACK_PROMPT

    async def generate_title(self, content: str) -> str:
        text = await self._complete(
            "generate_title",
            [{"role": "user", "content": content[:4000]}],
            max_tokens=50,
            system=TITLE_SYSTEM_PROMPT,
        )
        return _clean_title(text) if text else "Untitled"

    async def extract_notes_with_prompt(
        self,
        text: str,
        system_prompt: str,
        max_tokens: int = 2000,
    ) -> list[dict[str, Any]]:
        """
        Run an extraction prompt and return the raw note dicts.

        Raises:
            ValueError: If the response holds no JSON object
        """
        raw = await self._complete(
            "extract_notes",
            [{"role": "user", "content": text}],
            max_tokens=max_tokens,
            system=system_prompt,
        )
        if not raw:
            raise ValueError("Empty response from model")
        return parse_llm_json_dict(raw).get("notes") or []

    async def chat(self, messages: list[dict[str, str]], system: str | None = None) -> str:
        text = await self._complete("chat", messages, max_tokens=1000, system=system)
        return text or ""


class OpenAIProvider:
    """Provider backed by ChatOpenAI."""

    name = "openai"

    def __init__(self, user_id: str | None = None):
        self.settings = get_settings()
        self.model = self.settings.OPENAI_MODEL
        self.user_id = user_id

    async def _invoke(
        self,
        chain: str,
        messages: list[Any],
        max_tokens: int,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        llm = get_llm(model=self.model, temperature=temperature, max_tokens=max_tokens, json_mode=json_mode)

        start = time.time()
        response = await llm.ainvoke(messages)
        duration_ms = int((time.time() - start) * 1000)

        tokens_in, tokens_out = usage_from_langchain(response)
        log_llm_usage(
            workflow="ai_provider",
            model=self.model,
            provider=self.name,
            tokens_input=tokens_in,
            tokens_output=tokens_out,
            duration_ms=duration_ms,
            user_id=self.user_id,
            chain=chain,
        )
        return response.content if isinstance(response.content, str) else str(response.content)

    async def generate_prompt(
        self,
        context: str,
        learning_goals: list[str] | None = None,
        active_goals: list[dict[str, Any]] | None = None,
    ) -> str:
        text = await self._invoke(
            "generate_prompt",
            [
                SystemMessage(content=build_continuation_prompt(learning_goals, active_goals)),
                HumanMessage(content=f"Recent writing:\n\n{context}"),
            ],
            max_tokens=100,
        )
        return text.strip() or FALLBACK_PROMPT

    async def generate_title(self, content: str) -> str:
        text = await self._invoke(
            "generate_title",
            [SystemMessage(content=TITLE_SYSTEM_PROMPT), HumanMessage(content=content[:4000])],
            max_tokens=50,
        )
        return _clean_title(text) or "Untitled"

    async def extract_notes_with_prompt(
        self,
        text: str,
        system_prompt: str,
        max_tokens: int = 2000,
    ) -> list[dict[str, Any]]:
        raw = await self._invoke(
            "extract_notes",
            [SystemMessage(content=system_prompt), HumanMessage(content=text)],
            max_tokens=max_tokens,
            temperature=0.3,
            json_mode=True,
        )
        return parse_llm_json_dict(raw).get("notes") or []

    async def chat(self, messages: list[dict[str, str]], system: str | None = None) -> str:
        lc_messages: list[Any] = [SystemMessage(content=system)] if system else []
        for m in messages:
            cls = AIMessage if m["role"] == "assistant" else HumanMessage
            lc_messages.append(cls(content=m["content"]))
        return await self._invoke("chat", lc_messages, max_tokens=1000)


class MockProvider:
    """Offline provider: random prompts, no notes, titles from leading words."""

    name = "mock"

    def __init__(self, user_id: str | None = None):
        self.user_id = user_id

    async def generate_prompt(
        self,
        context: str,
        learning_goals: list[str] | None = None,
        active_goals: list[dict[str, Any]] | None = None,
    ) -> str:
        return random.choice(MOCK_PROMPTS)

    async def generate_title(self, content: str) -> str:
        words = content.split()[:5]
        return " ".join(w.capitalize() for w in words) or "Untitled"

    async def extract_notes_with_prompt(
        self,
        text: str,
        system_prompt: str,
        max_tokens: int = 2000,
    ) -> list[dict[str, Any]]:
        return []

    async def chat(self, messages: list[dict[str, str]], system: str | None = None) -> str:
        return ""


AIProvider = AnthropicProvider | OpenAIProvider | MockProvider


def get_ai_provider(user_id: str | None = None) -> AIProvider:
    """Return the provider selected by ``AI_PROVIDER``."""
    provider = get_settings().AI_PROVIDER

    if provider == "anthropic":
        return AnthropicProvider(user_id)
    if provider == "openai":
        return OpenAIProvider(user_id)

    logger.debug(f"Using mock AI provider for AI_PROVIDER={provider!r}")
    return MockProvider(user_id)
