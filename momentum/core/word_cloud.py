"""Word cloud weighting over a user's notes and documents."""

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

HIDDEN_WORDS_SETTING = "word_cloud_hidden"

MIN_WORD_COUNT = 2
RECENT_DAYS = 30
NOTE_WEIGHT = 1.0
DOCUMENT_WEIGHT = 0.5

STOPWORDS = frozenset(
    """
    a an the this that these those my your his her its our their
    i me we us you he him she it they them who whom what which
    in on at to for of with by from up about into through during before after above below
    between under over out off down around
    and but or nor so yet both either neither not only than as if
    is are was were be been being have has had do does did will would could should may might
    must can shall need want get got make made take took go went come came see saw know knew
    think thought feel felt say said tell told ask asked use used find found give gave work
    worked seem seemed try tried leave left call called
    very really just also now then here there when where why how all each every any some no
    more most other such even still again always never often sometimes usually already soon
    too well back away
    thing things way ways time times year years day days part parts place places case cases
    point points fact facts lot lots bit bits something anything nothing everything someone
    anyone everyone nobody one two three first second last new old good bad great little big
    small long short high low right wrong same different own able many much few less least
    enough several certain sure true real
    like etc example note notes using based needs important
    i'm i've i'll i'd you're you've you'll you'd he's he'd he'll she's she'd she'll it's it'll
    we're we've we'll we'd they're they've they'll they'd that's that'll that'd who's who'll
    who'd what's what'll what'd where's where'll where'd when's how's why's isn't aren't
    wasn't weren't hasn't haven't hadn't doesn't don't didn't won't wouldn't couldn't
    shouldn't mightn't mustn't can't let's here's there's
    maybe instead because rather without within although though however therefore whether
    while since until unless once upon toward towards across along among behind beneath
    beside besides beyond except per via versus despite regarding according
    become becomes becoming became create creates creating created means mean meaning
    require requires required requiring suggest suggests suggested include includes
    including included provide provides provided allow allows allowed allowing consider
    considers considered realize realized realizes understand understood understands
    believe believed believes actually basically essentially generally simply probably
    possibly particularly especially specifically currently recently finally
    line lines word words text page pages section sections current previous next following
    start started starting begin began beginning end ended ending help helps helped helping
    support supports supported keep keeps keeping kept move moves moved moving put puts
    putting set sets setting add adds added adding change changes changed changing turn
    turns turned turning show shows showed showing look looks looked looking run runs
    running read reads reading write writes wrote writing build builds built building making
    """.split()
)

_CLEANUPS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"`[^`]+`"), ""),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"https?://\S+"), ""),
    (re.compile(r"[#*_~>]"), ""),
    (re.compile(r"\[\[([^\]]+)\]\]"), r"\1"),
]
_WORD_SPLIT = re.compile(r"[^a-z'-]+")
_VOWEL = re.compile(r"[aeiouy]")
_REPEATED_LETTER = re.compile(r"^(.)\1+$")


def extract_words(text: str) -> list[str]:
    """
    Meaningful words in markdown text.

    Code, URLs and markdown syntax are removed (link and wikilink text is
    kept). Words shorter than 3 characters, stopwords, words without a vowel
    and single repeated letters are dropped.
    """
    for pattern, replacement in _CLEANUPS:
        text = pattern.sub(replacement, text)

    return [
        word
        for word in _WORD_SPLIT.split(text.lower())
        if len(word) >= 3
        and word not in STOPWORDS
        and _VOWEL.search(word)
        and not _REPEATED_LETTER.match(word)
    ]


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def build_word_cloud(
    notes: Iterable[dict[str, Any]],
    documents: Iterable[dict[str, Any]],
    hidden_words: Iterable[str] = (),
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """
    Weighted words for the cloud, heaviest first.

    Note words count 1 and document words 0.5. Words seen fewer than twice
    are dropped. Weight (1-10) comes from the word's frequency percentile
    plus up to 15% for words mostly seen in the last 30 days.

    Args:
        notes: Rows with title, content and created_at
        documents: Rows with title, content and created_at
        hidden_words: Words to leave out, case-insensitive
        now: Reference time for recency

    Returns:
        Items ``{word, type, weight, noteCount, recentCount}``
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=RECENT_DAYS)
    counts: dict[str, dict[str, float]] = {}

    for rows, weight in ((notes, NOTE_WEIGHT), (documents, DOCUMENT_WEIGHT)):
        for row in rows:
            created_at = _parse_timestamp(row.get("created_at"))
            is_recent = created_at is not None and created_at >= cutoff
            words = extract_words(row.get("title") or "") + extract_words(row.get("content") or "")
            for word in words:
                entry = counts.setdefault(word, {"total": 0.0, "recent": 0.0})
                entry["total"] += weight
                if is_recent:
                    entry["recent"] += weight

    ranked = [(word, c["total"], c["recent"]) for word, c in counts.items() if c["total"] >= MIN_WORD_COUNT]
    ranked.sort(key=lambda item: item[1])

    items = []
    last = len(ranked) - 1
    for index, (word, total, recent) in enumerate(ranked):
        percentile = index / last if last > 0 else 0.5
        recency_boost = (recent / total) * 0.15 if total > 0 else 0
        items.append(
            {
                "word": word,
                "type": "word",
                "weight": max(1, min(10, _round_half_up(1 + (percentile + recency_boost) * 9))),
                "noteCount": _round_half_up(total),
                "recentCount": _round_half_up(recent),
            }
        )

    items.sort(key=lambda item: (-item["weight"], -item["noteCount"]))

    hidden = {w.lower() for w in hidden_words}
    return [item for item in items if item["word"].lower() not in hidden]
