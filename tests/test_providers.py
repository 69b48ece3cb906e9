"""Tests for AI provider selection and response handling."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from momentum.chains.prompts import FALLBACK_PROMPT
from momentum.chains.providers import (
    MOCK_PROMPTS,
    AnthropicProvider,
    MockProvider,
    OpenAIProvider,
    get_ai_provider,
)
from momentum.core.llm import parse_llm_json_dict


@pytest.mark.parametrize(
    "setting,expected",
    [("anthropic", AnthropicProvider), ("openai", OpenAIProvider), ("mock", MockProvider), ("", MockProvider)],
)
def test_get_ai_provider(setting, expected):
    with patch("momentum.chains.providers.get_settings") as mock_settings:
        mock_settings.return_value.AI_PROVIDER = setting
        assert isinstance(get_ai_provider("user-1"), expected)


class TestMockProvider:
    @pytest.mark.asyncio
    async def test_prompt_comes_from_canned_list(self):
        assert await MockProvider().generate_prompt("Once upon a time") in MOCK_PROMPTS

    @pytest.mark.asyncio
    async def test_title_from_leading_words(self):
        assert await MockProvider().generate_title("the quick brown fox jumps over") == "The Quick Brown Fox Jumps"
        assert await MockProvider().generate_title("   ") == "Untitled"

    @pytest.mark.asyncio
    async def test_extracts_nothing(self):
        assert await MockProvider().extract_notes_with_prompt("text", "system") == []


def _anthropic_response(text, input_tokens=10, output_tokens=5):
    block = MagicMock(type="text", text=text)
    return MagicMock(content=[block], usage=MagicMock(input_tokens=input_tokens, output_tokens=output_tokens))


@pytest.fixture
def anthropic_client():
    client = MagicMock()
    client.messages.create = AsyncMock()
    with patch("momentum.chains.providers.get_anthropic_client", return_value=client), patch(
        "momentum.chains.providers.log_llm_usage"
    ) as mock_log:
        client.log_llm_usage = mock_log
        yield client


class TestAnthropicProvider:
    @pytest.mark.asyncio
    async def test_title_is_unquoted(self, anthropic_client):
        anthropic_client.messages.create.return_value = _anthropic_response('  "Rainy Evening Walks"\n')

        title = await AnthropicProvider("user-1").generate_title("walking in the rain " * 10)

        assert title == "Rainy Evening Walks"
        kwargs = anthropic_client.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 50
        assert "system" in kwargs

    @pytest.mark.asyncio
    async def test_empty_prompt_falls_back(self, anthropic_client):
        anthropic_client.messages.create.return_value = MagicMock(content=[], usage=None)

        assert await AnthropicProvider().generate_prompt("She opened the door.") == FALLBACK_PROMPT

    @pytest.mark.asyncio
    async def test_usage_is_logged(self, anthropic_client):
        anthropic_client.messages.create.return_value = _anthropic_response("What next?", 120, 8)

        await AnthropicProvider("user-1").generate_prompt("She opened the door.")

        kwargs = anthropic_client.log_llm_usage.call_args.kwargs
        assert kwargs["tokens_input"] == 120
        assert kwargs["tokens_output"] == 8
        assert kwargs["chain"] == "generate_prompt"
        assert kwargs["user_id"] == "user-1"

    @pytest.mark.asyncio
    async def test_extract_notes_parses_fenced_json(self, anthropic_client):
        anthropic_client.messages.create.return_value = _anthropic_response(
            'Here you go:\n```json\n{"notes": [{"title": "A", "content": "B"}]}\n```'
        )

        notes = await AnthropicProvider().extract_notes_with_prompt("text", "system")

        assert notes == [{"title": "A", "content": "B"}]

    @pytest.mark.asyncio
    async def test_extract_notes_without_json_raises(self, anthropic_client):
        anthropic_client.messages.create.return_value = _anthropic_response("I found nothing.")

        with pytest.raises(ValueError):
            await AnthropicProvider().extract_notes_with_prompt("text", "system")


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_chat_maps_roles(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=MagicMock(content="Sure.", usage_metadata=None))

        with patch("momentum.chains.providers.get_llm", return_value=llm), patch(
            "momentum.chains.providers.log_llm_usage"
        ):
            reply = await OpenAIProvider().chat(
                [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}],
                system="Be brief",
            )

        assert reply == "Sure."
        messages = llm.ainvoke.call_args.args[0]
        assert [type(m).__name__ for m in messages] == ["SystemMessage", "HumanMessage", "AIMessage"]

    @pytest.mark.asyncio
    async def test_extraction_uses_json_mode(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=MagicMock(content='{"notes": []}', usage_metadata={}))

        with patch("momentum.chains.providers.get_llm", return_value=llm) as mock_get_llm, patch(
            "momentum.chains.providers.log_llm_usage"
        ):
            notes = await OpenAIProvider().extract_notes_with_prompt("text", "system")

        assert notes == []
        assert mock_get_llm.call_args.kwargs["json_mode"] is True
        assert mock_get_llm.call_args.kwargs["temperature"] == 0.3


def test_parse_llm_json_dict_finds_object_in_prose():
    assert parse_llm_json_dict('Result: {"a": 1} done') == {"a": 1}
