"""Life-domain catalogue used by onboarding and pursuit balance views."""

from typing import Any, Iterable

from momentum.core.schemas_goals import PursuitDomain

DOMAIN_KEYS: list[str] = [d.value for d in PursuitDomain]

DOMAINS: list[dict[str, str]] = [
    {"key": "sophia", "name": "Intellectual Excellence", "greek_name": "Sophia",
     "description": "Learning, knowledge, understanding, wisdom"},
    {"key": "phronesis", "name": "Practical Wisdom", "greek_name": "Phronesis",
     "description": "Career, finances, decision-making, judgment"},
    {"key": "arete", "name": "Character & Virtue", "greek_name": "Arete",
     "description": "Personal development, habits, discipline, integrity"},
    {"key": "koinonia", "name": "Community & Justice", "greek_name": "Koinonia",
     "description": "Relationships, service, belonging, civic life"},
    {"key": "soma", "name": "Physical Flourishing", "greek_name": "Soma",
     "description": "Health, body, vitality, movement"},
    {"key": "techne", "name": "Creative Expression", "greek_name": "Techne",
     "description": "Craft, art, making, creation, skill"},
    {"key": "theoria", "name": "Contemplation", "greek_name": "Theoria",
     "description": "Reflection, mindfulness, inner life, presence"},
]


def domain_scores(**partial: float) -> dict[str, float]:
    """Build a full score vector; unspecified domains score 0."""
    unknown = set(partial) - set(DOMAIN_KEYS)
    if unknown:
        raise ValueError(f"Unknown domains: {sorted(unknown)}")
    return {key: partial.get(key, 0) for key in DOMAIN_KEYS}


def _item(label: str, **scores: float) -> dict[str, Any]:
    return {"label": label, "domain_scores": domain_scores(**scores)}


# Each item scores 0-5 per domain; the primary domain scores highest.
PREDEFINED_ITEMS: list[dict[str, Any]] = [
    # Sophia
    _item("Read more deeply", sophia=5, theoria=2, phronesis=1),
    _item("Learn a new language", sophia=4, koinonia=2, arete=2),
    _item("Study philosophy", sophia=5, theoria=3, arete=1),
    _item("Take a course or pursue formal education", sophia=5, phronesis=2, arete=1),
    _item("Develop critical thinking", sophia=4, phronesis=3, arete=1),
    _item("Explore science or mathematics", sophia=5, techne=1, theoria=2),
    # Phronesis
    _item("Advance in my career", phronesis=5, arete=2, koinonia=1),
    _item("Improve financial literacy", phronesis=5, sophia=2, arete=1),
    _item("Make better decisions under pressure", phronesis=5, arete=3, theoria=1),
    _item("Develop leadership skills", phronesis=4, koinonia=3, arete=2),
    _item("Start or grow a business", phronesis=5, techne=2, arete=2),
    _item("Plan for long-term security", phronesis=5, sophia=1, arete=1),
    # Arete
    _item("Build consistent daily habits", arete=5, phronesis=2, soma=1),
    _item("Practice honesty and integrity", arete=5, koinonia=3, theoria=1),
    _item("Cultivate patience", arete=5, theoria=3, koinonia=1),
    _item("Overcome procrastination", arete=5, phronesis=2, techne=1),
    _item("Develop self-discipline", arete=5, soma=2, phronesis=1),
    _item("Practice gratitude", arete=4, theoria=3, koinonia=2),
    # Koinonia
    _item("Deepen close friendships", koinonia=5, arete=2, phronesis=1),
    _item("Be more present with family", koinonia=5, theoria=2, arete=2),
    _item("Volunteer or serve my community", koinonia=5, arete=3, phronesis=1),
    _item("Improve communication skills", koinonia=4, phronesis=3, sophia=1),
    _item("Build professional relationships", koinonia=4, phronesis=3, arete=1),
    _item("Mentor or teach others", koinonia=5, sophia=3, arete=2),
    # Soma
    _item("Exercise regularly", soma=5, arete=2, theoria=1),
    _item("Improve nutrition", soma=5, sophia=1, arete=2),
    _item("Sleep better", soma=5, arete=1, theoria=1),
    _item("Manage stress", soma=4, theoria=3, arete=2),
    _item("Train for a physical challenge", soma=5, arete=3, phronesis=1),
    _item("Develop a movement practice", soma=5, theoria=2, techne=1),
    # Techne
    _item("Write regularly", techne=5, sophia=2, theoria=3),
    _item("Learn a musical instrument", techne=5, sophia=2, arete=2),
    _item("Practice visual art or design", techne=5, sophia=1, theoria=2),
    _item("Build something with my hands", techne=5, soma=2, phronesis=1),
    _item("Develop my craft or trade", techne=5, phronesis=2, arete=2),
    _item("Create a personal project", techne=5, phronesis=2, sophia=1),
    # Theoria
    _item("Establish a meditation practice", theoria=5, arete=2, soma=1),
    _item("Journal regularly", theoria=5, sophia=2, techne=2),
    _item("Spend more time in nature", theoria=5, soma=3, koinonia=1),
    _item("Practice mindfulness", theoria=5, arete=2, soma=1),
    _item("Explore spiritual traditions", theoria=5, sophia=3, koinonia=1),
    _item("Cultivate solitude and silence", theoria=5, arete=2, soma=1),
]


def sum_domain_scores(items: Iterable[dict[str, Any]]) -> dict[str, float]:
    """Sum the ``domain_scores`` vectors of several items; missing keys count as 0."""
    totals = {key: 0 for key in DOMAIN_KEYS}
    for item in items:
        scores = item.get("domain_scores") or {}
        for key in DOMAIN_KEYS:
            totals[key] += scores.get(key, 0) or 0
    return totals
