"""
The free-text Related list of a contact note.

    ## Related
    - father [[John Smith]]
    - friend: [[Ana Lopez]]
    - [[Sam Lee]] (colleague)
    - cousin: Chris Park

All four line styles are read; render_related_section() always writes the
first one.
"""

import re
import logging
from typing import List, Optional, Iterable

from .models import RelatedListEntry

logger = logging.getLogger(__name__)

_WIKILINK = r"\[\[([^\[\]|]+)(?:\|[^\[\]]*)?\]\]"

_LINE_PATTERNS = [
    # - type [[Name]]  /  - type: [[Name]]
    re.compile(r"^\s*[-*]\s*([^\[\]():]+?)\s*:?\s*" + _WIKILINK),
    # - [[Name]] (type)
    re.compile(r"^\s*[-*]\s*" + _WIKILINK + r"\s*\(([^()]+)\)"),
    # - type: Name
    re.compile(r"^\s*[-*]\s*([^\[\]():]+?)\s*:\s*([^\[\]]+?)\s*$"),
]

_ANY_HEADING = re.compile(r"^#{1,6}\s")


def _heading_pattern(heading: str):
    return re.compile(r"^#{2,}\s*" + re.escape(heading) + r"\s*$", re.IGNORECASE)


def extract_related_section(content: str, heading: str = "Related") -> Optional[str]:
    """Body of the Related section up to the next heading, or None."""
    if not content:
        return None

    pattern = _heading_pattern(heading)
    lines = content.replace("\r\n", "\n").split("\n")
    for start, line in enumerate(lines):
        if pattern.match(line.strip()):
            body = []
            for following in lines[start + 1:]:
                if _ANY_HEADING.match(following):
                    break
                body.append(following)
            return "\n".join(body)
    return None


def parse_related_line(line: str) -> Optional[RelatedListEntry]:
    """Parse one list line; None when it is not a relationship line."""
    for number, pattern in enumerate(_LINE_PATTERNS):
        match = pattern.match(line)
        if not match:
            continue
        if number == 1:
            name, kind = match.group(1), match.group(2)
        else:
            kind, name = match.group(1), match.group(2)
        kind, name = kind.strip(), name.strip()
        if kind and name:
            return RelatedListEntry(kind=kind, name=name)
    return None


def parse_related_section(content: str, heading: str = "Related") -> List[RelatedListEntry]:
    """
    Relationship entries of the note's Related section, in order.

    The heading may be any level from ``##`` down and is matched without
    regard to case. Lines that match none of the list styles are ignored.
    """
    section = extract_related_section(content, heading)
    if section is None:
        return []

    entries = []
    for line in section.split("\n"):
        if not line.strip():
            continue
        entry = parse_related_line(line)
        if entry is None:
            logger.debug(f"Ignoring non-relationship line in {heading} section: {line!r}")
            continue
        entries.append(entry)
    return entries


def render_related_section(entries: Iterable[RelatedListEntry], heading: str = "Related") -> str:
    """Canonical markdown for a Related section."""
    lines = [f"## {heading}"]
    lines.extend(f"- {entry.kind} [[{entry.name}]]" for entry in entries)
    return "\n".join(lines) + "\n"
