"""
vCard text encoding.

generate_vcard() renders one flat record as a BEGIN:VCARD ... END:VCARD
block; to_string() encodes a batch and collects per-contact failures
instead of stopping at the first bad record.
"""

import logging
from typing import Any, Dict, List, Mapping, Iterable, Tuple, Union

from .config import get_settings
from .errors import MalformedInputError, ErrorCode
from .models import (
    ContactRecord,
    ScalarField,
    VCardToStringError,
    VCardToStringReply,
)

logger = logging.getLogger(__name__)

MAX_LINE_OCTETS = 75

RecordLike = Union[ContactRecord, Mapping[str, Any]]


def fold_line(line: str, limit: int = MAX_LINE_OCTETS) -> str:
    """
    Fold a content line so no physical line exceeds ``limit`` UTF-8 octets.

    Continuation lines start with a single space. Multi-byte characters are
    never split.
    """
    if len(line.encode("utf-8")) <= limit:
        return line

    chunks: List[str] = []
    current = ""
    size = 0
    # continuation lines lose one octet to the leading space
    budget = limit
    for ch in line:
        width = len(ch.encode("utf-8"))
        if size + width > budget:
            chunks.append(current)
            current = ""
            size = 0
            budget = limit - 1
        current += ch
        size += width
    chunks.append(current)
    return "\n ".join(chunks)


def _normalize_values(record: Mapping[str, Any]) -> Dict[str, str]:
    """Coerce frontmatter values to strings, rejecting anything structured."""
    normalized: Dict[str, str] = {}
    for key, value in record.items():
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise MalformedInputError(
                f"Field {key} has a non-text value of type {type(value).__name__}",
                code=ErrorCode.MAL_VALUE_TYPE,
                details={"key": key},
            )
        normalized[str(key)] = str(value)
    return normalized


def _as_record(record: RecordLike) -> ContactRecord:
    if isinstance(record, ContactRecord):
        return record
    return ContactRecord.from_flat(_normalize_values(record))


def _type_param(type_value) -> str:
    return f";TYPE={type_value}" if type_value else ""


def generate_vcard(record: RecordLike, display_name: str, fold: bool = False) -> str:
    """
    Render a single contact.

    VERSION is written first, then one line per N/ADR occurrence, then the
    scalar properties in record order. When the record has no FN it is
    synthesised from ``display_name``.

    Raises:
        MalformedInputError: the record is empty, has a non-text value or
            carries no name at all.
    """
    if not record:
        raise MalformedInputError("No contact fields found", code=ErrorCode.MAL_FIELD)

    contact = _as_record(record)
    if not contact.occurrences:
        raise MalformedInputError("No contact fields found", code=ErrorCode.MAL_FIELD)

    version = contact.first_value("VERSION") or get_settings().vcard_version
    composite_lines: List[str] = []
    scalar_lines: List[str] = []

    for occ in contact.occurrences:
        if occ.property == "VERSION":
            continue
        # a bare N or ADR key arrives as a scalar and is written verbatim
        if isinstance(occ, ScalarField):
            scalar_lines.append(f"{occ.property}{_type_param(occ.type)}:{occ.value}")
        else:
            composite_lines.append(f"{occ.property}{_type_param(occ.type)}:{occ.render_value()}")

    if not contact.get("FN"):
        if not display_name or not display_name.strip():
            raise MalformedInputError(
                "Contact has no FN and no display name to derive one from",
                code=ErrorCode.MAL_FIELD,
            )
        scalar_lines.append(f"FN:{display_name.strip()}")

    lines = [f"VERSION:{version}"] + composite_lines + scalar_lines
    if fold:
        lines = [fold_line(line) for line in lines]

    return "BEGIN:VCARD\n" + "\n".join(lines) + "\nEND:VCARD"


def to_string(items: Iterable[Tuple[RecordLike, str]]) -> VCardToStringReply:
    """
    Encode several contacts into one vCard text.

    Each item is ``(record, display_name)``. A failing item is reported in
    ``errors`` and the remaining items are still encoded.
    """
    vcards: List[str] = []
    errors: List[VCardToStringError] = []

    for record, display_name in items:
        try:
            vcards.append(generate_vcard(record, display_name))
        except MalformedInputError as e:
            logger.warning(f"Could not encode contact {display_name}: {e.message}")
            errors.append(VCardToStringError(name=display_name, message=e.message))
        except Exception as e:
            logger.error(f"Unexpected error encoding contact {display_name}: {e}")
            errors.append(VCardToStringError(name=display_name, message=str(e)))

    logger.info(f"Encoded {len(vcards)} contacts with {len(errors)} errors")
    return VCardToStringReply(vcards="\n".join(vcards), errors=errors)

