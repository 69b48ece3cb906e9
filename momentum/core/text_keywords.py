"""Keyword helpers for finding notes related to new writing."""

import re
from collections import Counter
from typing import Any

STOP_WORDS = frozenset(
    """
    the a an is are was were be been being have has had do does did will would could
    should may might must shall can need dare ought used to of in for on with at by
    from as into through during before after above below between under again further
    then once here there when where why how all each few more most other some such
    no nor not only own same so than too very just and but if or because until while
    about against this that these those what which who whom its itself they them
    their theirs themselves you your yours yourself yourselves really think feel like
    want going know make getting
    """.split()
)

_NON_WORD = re.compile(r"[^\w\s]")


def extract_keywords(text: str, limit: int = 10) -> list[str]:
    """
    Most frequent content words in ``text``.

    Punctuation is dropped, words of 3 letters or fewer and stop words are
    skipped. Ties keep first-seen order.
    """
    words = [
        w
        for w in _NON_WORD.sub("", text.lower()).split()
        if len(w) > 3 and w not in STOP_WORDS
    ]
    return [word for word, _ in Counter(words).most_common(limit)]


def leading_keywords(text: str, limit: int = 10) -> list[str]:
    """First ``limit`` lowercased words longer than 3 characters, punctuation dropped."""
    return [w for w in _NON_WORD.sub("", text.lower()).split() if len(w) > 3][:limit]


def score_related_notes(
    notes: list[dict[str, Any]],
    keywords: list[str],
    limit: int = 15,
) -> list[dict[str, Any]]:
    """
    Rank notes by keyword hits: 2 per keyword in the title, 1 in the content.

    Returns:
        Up to ``limit`` ``{id, title, content}`` dicts with a positive score,
        best first
    """
    if not keywords:
        return []

    scored = []
    for note in notes:
        title = (note.get("title") or "").lower()
        content = (note.get("content") or "").lower()
        score = sum((2 if kw in title else 0) + (1 if kw in content else 0) for kw in keywords)
        if score > 0:
            scored.append((score, note))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [
        {"id": note["id"], "title": note["title"], "content": note["content"]}
        for _, note in scored[:limit]
    ]
