"""Tests for word cloud extraction and weighting."""

from datetime import datetime, timezone

from momentum.core.word_cloud import build_word_cloud, extract_words

NOW = datetime(2026, 1, 31, tzinfo=timezone.utc)
RECENT = "2026-01-20T10:00:00Z"
OLD = "2025-06-01T00:00:00+00:00"


class TestExtractWords:
    def test_strips_markdown_code_and_urls(self):
        text = (
            "## Tomatoes\n"
            "```python\nprint('hidden')\n```\n"
            "Use `inline` code and [compost guide](https://example.com/compost) "
            "plus https://example.com/raw **seedlings**"
        )

        words = extract_words(text)

        assert "tomatoes" in words
        assert "compost" in words
        assert "guide" in words
        assert "seedlings" in words
        assert "print" not in words
        assert "inline" not in words
        assert "https" not in words

    def test_keeps_wikilink_text(self):
        assert extract_words("See [[Companion planting]]") == ["companion", "planting"]

    def test_filters_short_stop_and_junk_words(self):
        words = extract_words("the cat is on zzz and aaa with rhythm")

        assert words == ["cat", "rhythm"]


class TestBuildWordCloud:
    def _cloud(self, hidden=()):
        notes = [{"title": "", "content": "tomatoes tomatoes tomatoes compost compost", "created_at": RECENT}]
        documents = [{"title": "", "content": "seedlings seedlings seedlings seedlings", "created_at": OLD}]
        return build_word_cloud(notes, documents, hidden_words=hidden, now=NOW)

    def test_weights_and_order(self):
        cloud = self._cloud()

        assert [item["word"] for item in cloud] == ["tomatoes", "seedlings", "compost"]
        assert cloud[0] == {"word": "tomatoes", "type": "word", "weight": 10, "noteCount": 3, "recentCount": 3}
        assert cloud[1]["weight"] == 6
        assert cloud[1]["noteCount"] == 2
        assert cloud[1]["recentCount"] == 0
        assert cloud[2]["weight"] == 2

    def test_rare_words_are_dropped(self):
        cloud = build_word_cloud([{"content": "tomatoes compost", "created_at": OLD}], [], now=NOW)

        assert cloud == []

    def test_document_words_count_half(self):
        cloud = build_word_cloud([], [{"content": "seedlings seedlings seedlings", "created_at": OLD}], now=NOW)

        assert cloud == []

    def test_hidden_words_are_removed(self):
        cloud = self._cloud(hidden=["Tomatoes"])

        assert [item["word"] for item in cloud] == ["seedlings", "compost"]

    def test_single_word_gets_middle_weight(self):
        cloud = build_word_cloud([{"content": "harvest harvest", "created_at": OLD}], [], now=NOW)

        assert cloud == [{"word": "harvest", "type": "word", "weight": 6, "noteCount": 2, "recentCount": 0}]
