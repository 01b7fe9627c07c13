"""
Relationship kind mapping.

Relationship words are stored in their genderless form ("parent") and
rendered with the target's gender for display ("father" / "mother"):

    normalize_kind("Father")        -> "parent"
    render_kind("parent", "M")      -> "father"
    reciprocal_kind("grandparent")  -> "grandchild"
"""

from typing import Optional, Dict, Tuple, List

from .models import Gender

# genderless kind -> (male word, female word)
GENDERED_KINDS: Dict[str, Tuple[str, str]] = {
    "parent": ("father", "mother"),
    "child": ("son", "daughter"),
    "sibling": ("brother", "sister"),
    "spouse": ("husband", "wife"),
    "grandparent": ("grandfather", "grandmother"),
    "grandchild": ("grandson", "granddaughter"),
    "auncle": ("uncle", "aunt"),
    "nibling": ("nephew", "niece"),
}

GENDERLESS_KINDS = ("partner", "cousin", "friend", "colleague", "relative")

# colloquial word -> (genderless kind, implied gender)
KIND_ALIASES: Dict[str, Tuple[str, Optional[Gender]]] = {
    "mom": ("parent", Gender.FEMALE),
    "dad": ("parent", Gender.MALE),
    "bro": ("sibling", Gender.MALE),
    "sis": ("sibling", Gender.FEMALE),
    "boyfriend": ("partner", Gender.MALE),
    "girlfriend": ("partner", Gender.FEMALE),
}

ASYMMETRIC_RECIPROCALS: Dict[str, str] = {
    "parent": "child",
    "child": "parent",
    "grandparent": "grandchild",
    "grandchild": "grandparent",
    "auncle": "nibling",
    "nibling": "auncle",
}

SYMMETRIC_KINDS = frozenset(
    ["sibling", "spouse", "partner", "friend", "colleague", "relative", "cousin"]
)

_GENDER_TOKENS: Dict[str, Gender] = {
    "M": Gender.MALE,
    "MALE": Gender.MALE,
    "F": Gender.FEMALE,
    "FEMALE": Gender.FEMALE,
    "NB": Gender.NONBINARY,
    "NON-BINARY": Gender.NONBINARY,
    "NONBINARY": Gender.NONBINARY,
    "U": Gender.UNSPECIFIED,
    "UNSPECIFIED": Gender.UNSPECIFIED,
}

# gendered word -> (genderless kind, gender)
_GENDERED_WORDS: Dict[str, Tuple[str, Gender]] = {}
for _kind, (_male, _female) in GENDERED_KINDS.items():
    _GENDERED_WORDS[_male] = (_kind, Gender.MALE)
    _GENDERED_WORDS[_female] = (_kind, Gender.FEMALE)


def parse_gender(value) -> Optional[Gender]:
    """Read a GENDER value in short or long form; None when absent or unknown."""
    if isinstance(value, Gender):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    return _GENDER_TOKENS.get(value.strip().upper())


def normalize_kind(kind: str) -> str:
    """Genderless storage form of a relationship word."""
    lowered = kind.strip().lower()
    if lowered in _GENDERED_WORDS:
        return _GENDERED_WORDS[lowered][0]
    if lowered in KIND_ALIASES:
        return KIND_ALIASES[lowered][0]
    return lowered


def render_kind(genderless_kind: str, gender=None) -> str:
    """
    Display form of a genderless kind for a target of the given gender.

    Only male and female genders change the word; anything else, or a kind
    without a gendered pair, comes back unchanged.
    """
    pair = GENDERED_KINDS.get(genderless_kind.lower())
    parsed = parse_gender(gender)
    if pair is None or parsed is None:
        return genderless_kind
    if parsed == Gender.MALE:
        return pair[0]
    if parsed == Gender.FEMALE:
        return pair[1]
    return genderless_kind


def is_gendered(kind: str) -> bool:
    """True for words like "father" or "mom", False for "parent" or "friend"."""
    lowered = kind.strip().lower()
    return lowered in _GENDERED_WORDS or lowered in KIND_ALIASES


def infer_gender(kind: str) -> Optional[Gender]:
    """Gender implied by a strictly gendered word, if any."""
    lowered = kind.strip().lower()
    if lowered in _GENDERED_WORDS:
        return _GENDERED_WORDS[lowered][1]
    if lowered in KIND_ALIASES:
        return KIND_ALIASES[lowered][1]
    return None


def reciprocal_kind(kind: str) -> Optional[str]:
    """
    The kind the target of an edge would use for its source.

    Gendered words are normalised first, so reciprocal_kind("mother") is
    "child". Kinds without a defined reciprocal return None.
    """
    genderless = normalize_kind(kind)
    if genderless in ASYMMETRIC_RECIPROCALS:
        return ASYMMETRIC_RECIPROCALS[genderless]
    if genderless in SYMMETRIC_KINDS:
        return genderless
    return None


def should_have_reciprocal(kind: str) -> bool:
    return reciprocal_kind(kind) is not None


def supported_kinds() -> List[str]:
    """Every relationship word the mapping knows, genderless forms first."""
    kinds = list(GENDERED_KINDS) + list(GENDERLESS_KINDS)
    for male, female in GENDERED_KINDS.values():
        kinds.extend([male, female])
    kinds.extend(KIND_ALIASES)
    return kinds


def is_known_kind(kind: str) -> bool:
    return kind.strip().lower() in supported_kinds()
