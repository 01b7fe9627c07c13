"""
Contact references inside RELATED values.

A reference names its target in exactly one namespace:

    urn:uuid:03a0e51f-d1aa-4385-8a53-e29025acd8af   UID is a canonical UUID
    uid:some-other-id                              any other non-empty UID
    name:Jane Smith                                no UID known

These prefixes are a private convention on top of vCard RELATED and are
written exactly as shown.
"""

import re
import logging
from typing import Optional, Callable, TypeVar

from contacts.errors import MalformedInputError, ErrorCode

from .models import ContactReference, ReferenceNamespace

logger = logging.getLogger(__name__)

T = TypeVar("T")

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Checked in this order; "urn:uuid:" must win over anything shorter.
_PREFIXES = (
    (ReferenceNamespace.UUID, "urn:uuid:"),
    (ReferenceNamespace.UID, "uid:"),
    (ReferenceNamespace.NAME, "name:"),
)


def is_uuid(value: Optional[str]) -> bool:
    return bool(value) and UUID_PATTERN.match(value) is not None


def encode_reference(identifier: Optional[str], name: str) -> str:
    """
    Build the stored reference for a contact.

    A UUID identifier wins, then any other non-empty identifier, then the
    contact's name.
    """
    identifier = (identifier or "").strip()
    if is_uuid(identifier):
        return ContactReference(namespace=ReferenceNamespace.UUID, value=identifier).render()
    if identifier:
        return ContactReference(namespace=ReferenceNamespace.UID, value=identifier).render()
    return ContactReference(namespace=ReferenceNamespace.NAME, value=name).render()


def decode_reference(value) -> Optional[ContactReference]:
    """
    Split a stored reference into namespace and value.

    Returns None for anything without one of the three prefixes, including
    non-string input. Never raises.
    """
    if not isinstance(value, str):
        return None
    for namespace, prefix in _PREFIXES:
        if value.startswith(prefix):
            return ContactReference(namespace=namespace, value=value[len(prefix):])
    return None


def require_reference(value) -> ContactReference:
    """Strict variant of decode_reference."""
    reference = decode_reference(value)
    if reference is None:
        raise MalformedInputError(
            f"Not a namespaced contact reference: {value!r}",
            code=ErrorCode.MAL_REFERENCE,
            details={"value": repr(value)},
        )
    return reference


def display_name(value: str) -> str:
    """The contact name for name: references, otherwise the raw value."""
    reference = decode_reference(value)
    if reference is not None and reference.namespace == ReferenceNamespace.NAME:
        return reference.value
    return value


def find_contact(
    value: str,
    by_uid: Callable[[str], Optional[T]],
    by_name: Callable[[str], Optional[T]],
) -> Optional[T]:
    """Look a reference up with the finder that matches its namespace."""
    reference = decode_reference(value)
    if reference is None:
        logger.warning(f"Cannot look up contact for unnamespaced value {value!r}")
        return None
    if reference.namespace == ReferenceNamespace.NAME:
        return by_name(reference.value)
    return by_uid(reference.value)
