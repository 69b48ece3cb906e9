"""Tests for keyword extraction and related-note scoring."""

from momentum.core.text_keywords import extract_keywords, leading_keywords, score_related_notes


def test_extract_keywords_by_frequency():
    text = "Gardening gardening compost. The compost heap, gardening again! Tomatoes."

    assert extract_keywords(text, limit=2) == ["gardening", "compost"]


def test_extract_keywords_skips_short_and_stop_words():
    keywords = extract_keywords("I really think that this is the best idea for them")

    assert "really" not in keywords
    assert "think" not in keywords
    assert "that" not in keywords
    assert keywords == ["best", "idea"]


def test_extract_keywords_empty():
    assert extract_keywords("a an the of") == []


def test_leading_keywords_keeps_order_and_drops_punctuation():
    text = "Morning pages, morning coffee; writing every single day."

    assert leading_keywords(text, limit=4) == ["morning", "pages", "morning", "coffee"]


def test_score_related_notes_weights_title_over_content():
    notes = [
        {"id": "1", "title": "Coffee rituals", "content": "Slow mornings", "created_at": "x"},
        {"id": "2", "title": "Mornings", "content": "Coffee before writing"},
        {"id": "3", "title": "Taxes", "content": "Deadlines"},
    ]

    related = score_related_notes(notes, ["coffee"])

    assert [n["id"] for n in related] == ["1", "2"]
    assert related[0] == {"id": "1", "title": "Coffee rituals", "content": "Slow mornings"}


def test_score_related_notes_respects_limit():
    notes = [{"id": str(i), "title": f"coffee {i}", "content": ""} for i in range(20)]

    assert len(score_related_notes(notes, ["coffee"], limit=15)) == 15


def test_score_related_notes_without_keywords():
    assert score_related_notes([{"id": "1", "title": "a", "content": "b"}], []) == []
