"""
Name helpers: filename slugs, organisation detection and new records.
"""

import re
import uuid
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Callable, Tuple, Mapping

from .config import get_settings
from .models import STRUCTURED_FIELDS, VCardKind

logger = logging.getLogger(__name__)

# (given, family)
NamePrompt = Callable[[], Tuple[str, str]]

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"\\|?*\x00-\x1F]')


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def create_name_slug(record: Mapping[str, str]) -> Optional[str]:
    """
    Derive a filesystem-safe name from a flat record.

    Uses the N components in record order, then falls back to FN, NICKNAME,
    ORG and a raw UUID field. Returns None when nothing usable is found.
    """
    parts = [_clean(record.get(f"N.{sub}")) for sub in STRUCTURED_FIELDS["N"]]
    name = " ".join(p for p in parts if p)

    if not name:
        for key in ("FN", "NICKNAME", "ORG", "UUID"):
            name = _clean(record.get(key))
            if name:
                break

    if not name:
        return None

    name = _INVALID_FILENAME_CHARS.sub("", name)
    name = re.sub(r"/+", " ", name)
    name = re.sub(r"\s+", " ", name).strip()
    name = re.sub(r"^\.+", "", name)
    name = re.sub(r"\.{2,}", ".", name)
    return name or None


def has_valid_n_fields(record: Mapping[str, str]) -> bool:
    """True when a given or family name is present."""
    return bool(_clean(record.get("N.GN")) or _clean(record.get("N.FN")))


def is_organization(record: Mapping[str, str]) -> bool:
    """
    Decide whether a record describes an organisation.

    An explicit KIND wins; otherwise a record with ORG but no usable N is
    treated as an organisation, matching common address book behaviour.
    """
    kind = _clean(record.get("KIND")).lower()
    if kind in ("org", "organization"):
        return True
    if kind == "individual":
        return False
    return not has_valid_n_fields(record) and bool(record.get("ORG"))


def generate_rev_timestamp(now: Optional[datetime] = None) -> str:
    """REV value in vCard timestamp form, e.g. 20240101T120000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def new_contact_record(prompt: NamePrompt, now: Optional[datetime] = None) -> Dict[str, str]:
    """
    Build a brand-new record for a contact that has no name yet.

    ``prompt`` is the host's name-entry dialog; a plain function returning
    ``(given, family)`` works just as well.
    """
    given, family = prompt()
    record = {
        "N.FN": family or "",
        "N.GN": given or "",
        "FN": " ".join(p for p in (given, family) if p),
        "UID": str(uuid.uuid4()),
        "KIND": VCardKind.INDIVIDUAL.value,
        "VERSION": get_settings().vcard_version,
        "REV": generate_rev_timestamp(now),
    }
    return {k: v for k, v in record.items() if v}


def ensure_has_name(
    record: Mapping[str, str],
    prompt: Optional[NamePrompt] = None
) -> Dict[str, str]:
    """
    Return a copy of ``record`` that yields a name slug.

    The prompt is only consulted when no slug can be derived. Without a
    prompt the record is returned unchanged.
    """
    updated = dict(record)
    if create_name_slug(updated) is not None or prompt is None:
        return updated

    logger.warning("No name found for record, prompting for one")
    given, family = prompt()
    updated.setdefault("N.PREFIX", "")
    updated["N.GN"] = given
    updated.setdefault("N.MN", "")
    updated["N.FN"] = family
    updated.setdefault("N.SUFFIX", "")
    updated.setdefault("KIND", VCardKind.INDIVIDUAL.value)
    return updated
