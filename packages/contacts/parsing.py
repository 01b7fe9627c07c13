"""
vCard text decoding.

Turns raw vCard text into flat records keyed by ``PROP[INDEX:TYPE].SUBFIELD``:

    for slug, record in parse_vcard_text(text):
        print(slug, record["FN"])

Decoding is lazy: each BEGIN:VCARD ... END:VCARD section is parsed and
yielded on its own, so a caller can stop after the first few contacts.
Calling parse_vcard_text again always starts from the top of the text.
"""

import re
import logging
from datetime import datetime
from typing import Optional, List, Dict, Iterator, Tuple

from dateutil import parser as dateutil_parser

from .errors import MalformedInputError, ErrorCode
from .keys import base_of
from .models import (
    ContactRecord,
    ScalarField,
    VCardSupportedKey,
    COMPOSITE_TYPES,
    STRUCTURED_FIELDS,
    DATE_PROPERTIES,
)
from .names import create_name_slug

logger = logging.getLogger(__name__)

# Decoded records are sorted with these properties first; ADR goes after BDAY.
PRIORITY_ORDER = [
    "N", "FN", "PHOTO",
    "EMAIL", "TEL",
    "BDAY",
    "ADR", "URL",
    "ORG", "TITLE", "ROLE",
]

_COMPACT_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})(T.*)?$")
_DEFAULT_DATE = datetime(1900, 1, 1)


# ==================== Lines and sections ====================

def unfold_lines(text: str) -> List[str]:
    """
    Normalize line endings and join folded continuation lines.

    A physical line starting with a space or tab continues the previous
    logical line; exactly one leading whitespace character is removed.
    Blank lines are dropped.
    """
    normalized = re.sub(r"\r\n?", "\n", text)

    unfolded: List[str] = []
    current = ""
    for line in normalized.split("\n"):
        if line[:1] in (" ", "\t"):
            current += line[1:]
        else:
            if current:
                unfolded.append(current)
            current = line
    if current:
        unfolded.append(current)
    return unfolded


def split_sections(lines: List[str]) -> Iterator[List[str]]:
    """
    Group unfolded lines into vCard sections.

    Lines outside BEGIN/END markers are ignored. A section missing its END
    line at the end of input is still yielded.
    """
    section: Optional[List[str]] = None
    for line in lines:
        marker = line.strip().upper()
        if marker == "BEGIN:VCARD":
            if section:
                logger.warning("vCard section without END:VCARD, starting a new one")
                yield section
            section = []
        elif marker == "END:VCARD":
            if section is not None:
                yield section
            section = None
        elif section is not None:
            section.append(line)

    if section:
        logger.warning("Input ended inside a vCard section")
        yield section


def split_unescaped(value: str, separator: str, quoted: bool = False) -> List[str]:
    """
    Split on a separator that is not backslash-escaped.

    With ``quoted`` set, separators inside double quotes are ignored too.
    Escape sequences are kept as they are.
    """
    parts: List[str] = []
    current = []
    escaped = False
    in_quotes = False
    for ch in value:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\":
            current.append(ch)
            escaped = True
        elif quoted and ch == '"':
            current.append(ch)
            in_quotes = not in_quotes
        elif ch == separator and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def split_line(line: str) -> Tuple[str, str]:
    """Split a content line into key segment and value on the first unescaped colon."""
    head, *rest = split_unescaped(line, ":", quoted=True)
    if not rest:
        raise MalformedInputError(
            f"vCard line has no value separator: {line[:60]}",
            code=ErrorCode.MAL_FIELD,
        )
    return head, ":".join(rest)


def parse_params(param_parts: List[str]) -> Dict[str, List[str]]:
    """
    Turn ``TYPE=a,b`` style parameters into a lowercase-keyed dict.

    Repeated parameters accumulate; bare parameters map to an empty list.
    """
    params: Dict[str, List[str]] = {}
    for part in param_parts:
        name, eq, raw = part.partition("=")
        values = [v.strip('"') for v in raw.split(",")] if eq and raw else []
        params.setdefault(name.strip().lower(), []).extend(values)
    return params


# ==================== Value helpers ====================

def format_vcard_date(value: str) -> str:
    """
    Normalize BDAY/ANNIVERSARY values to YYYY-MM-DD.

    ``YYYYMMDD`` (with an optional ``T...`` time part) is reformatted
    directly; other parseable dates go through dateutil. Anything else,
    including year-less ``--MMDD`` values, is returned unchanged.
    """
    trimmed = value.strip()
    if not trimmed or trimmed.startswith("--"):
        return trimmed

    match = _COMPACT_DATE.match(trimmed)
    if match:
        year, month, day = (int(g) for g in match.group(1, 2, 3))
        try:
            return datetime(year, month, day).strftime("%Y-%m-%d")
        except ValueError:
            pass

    try:
        parsed = dateutil_parser.parse(trimmed, default=_DEFAULT_DATE)
    except (ValueError, OverflowError):
        logger.debug(f"Leaving unparseable date as is: {trimmed}")
        return trimmed
    return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"


def is_legacy_photo(prop: str, params: Dict[str, List[str]]) -> bool:
    encodings = [e.upper() for e in params.get("encoding", [])]
    return prop == "PHOTO" and ("BASE64" in encodings or "B" in encodings)


def photo_line_to_data_uri(key_segment: str, value: str) -> str:
    """
    Convert a vCard 2.1/3.0 base64 PHOTO into an inline data URI.

        PHOTO;ENCODING=BASE64;JPEG:/9j/4AAQ  ->  data:image/jpeg;base64,/9j/4AAQ
        PHOTO;ENCODING=b;TYPE=PNG:iVBOR      ->  data:image/png;base64,iVBOR
    """
    _, *param_parts = key_segment.split(";")
    params = parse_params(param_parts)

    mime = "jpeg"
    if params.get("type"):
        mime = params["type"][0]
    else:
        bare = [name for name, values in params.items() if not values and name != "encoding"]
        if bare:
            mime = bare[0]
    return f"data:image/{mime.lower()};base64,{value.strip()}"


# ==================== Line parsing ====================

def parse_line(line: str) -> List[ScalarField]:
    """
    Parse one unfolded content line into property occurrences.

    Returns an empty list for properties the codec does not keep. Composite
    properties come back as a single structured occurrence.
    """
    key_segment, raw_value = split_line(line)
    value = raw_value.strip()

    property_part, *param_parts = split_unescaped(key_segment, ";", quoted=True)
    # Drop Apple style group prefixes such as item1.EMAIL
    prop = property_part.rsplit(".", 1)[-1].strip().upper()

    params = parse_params(param_parts)
    type_value = ",".join(params["type"]) if params.get("type") else None

    if is_legacy_photo(prop, params):
        return [ScalarField(property="PHOTO", value=photo_line_to_data_uri(key_segment, value))]

    if prop == "VERSION":
        return [ScalarField(property="VERSION", value="4.0")]

    if prop in COMPOSITE_TYPES:
        schema = STRUCTURED_FIELDS[prop]
        components = split_unescaped(value, ";")[:len(schema)]
        values = {sub: comp for sub, comp in zip(schema, components) if comp}
        return [COMPOSITE_TYPES[prop].from_components(type_value, values)]

    if prop in DATE_PROPERTIES:
        return [ScalarField(property=prop, type=type_value, value=format_vcard_date(value))]

    if VCardSupportedKey.is_supported(prop):
        return [ScalarField(property=prop, type=type_value, value=value)]

    logger.debug(f"Discarding unsupported vCard property {prop}")
    return []


def parse_section(lines: List[str]) -> ContactRecord:
    """
    Parse the lines of one vCard section into a record.

    A malformed line is logged and skipped; the other lines still count.
    """
    record = ContactRecord()
    for line in lines:
        if not line.strip():
            continue
        try:
            occurrences = parse_line(line)
        except MalformedInputError as e:
            logger.warning(f"Skipping vCard line: {e.message}")
            continue
        for occurrence in occurrences:
            record = record.with_occurrence(occurrence)
    return record


def sort_fields(record: Dict[str, str]) -> Dict[str, str]:
    """
    Order a flat record deterministically.

    Priority properties come first in PRIORITY_ORDER (ADR is placed after
    BDAY), then everything else alphabetically. Within one property the
    original occurrence order is kept.
    """
    def rank(item: Tuple[int, str]) -> Tuple[int, int, str]:
        position, key = item
        base = base_of(key)
        if base in PRIORITY_ORDER:
            return (0, PRIORITY_ORDER.index(base), f"{position:08d}")
        return (1, 0, key)

    ordered = sorted(enumerate(record), key=rank)
    return {key: record[key] for _, key in ordered}


# ==================== Public API ====================

def parse_vcard_text(text: str) -> Iterator[Tuple[Optional[str], Dict[str, str]]]:
    """
    Lazily decode vCard text into ``(slug, record)`` pairs.

    Each section is yielded as soon as it is parsed. A section that cannot
    be parsed is logged and skipped; the rest of the input is still decoded.
    """
    if not text or not text.strip():
        return

    for number, section in enumerate(split_sections(unfold_lines(text)), start=1):
        try:
            record = sort_fields(parse_section(section).to_flat())
        except (MalformedInputError, ValueError) as e:
            logger.warning(f"Skipping vCard section {number}: {e}")
            continue

        slug = create_name_slug(record)
        if slug is None:
            logger.warning(f"No name could be derived for vCard section {number}")
        yield slug, record


def parse_vcard_records(text: str) -> List[Dict[str, str]]:
    """Eagerly decode all records, dropping slugs."""
    return [record for _, record in parse_vcard_text(text)]
