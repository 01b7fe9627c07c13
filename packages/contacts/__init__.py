"""
Contacts Package

vCard codec for contact notes. Contacts are exchanged with the host as flat
records whose keys follow the ``PROP[INDEX:TYPE].SUBFIELD`` grammar:

    {"N.FN": "Smith", "N.GN": "Jane", "FN": "Jane Smith",
     "EMAIL[HOME]": "jane@example.com", "EMAIL[1:HOME]": "j@example.org"}

Internally a contact is a ContactRecord: an ordered list of typed property
occurrences. Bracket indexes only appear when a record is flattened.

This package provides:
- Field key parsing and building
- Lazy vCard decoding and batch encoding
- Name slugs and new-record helpers
- The shared error hierarchy, settings and logging setup
"""

from .errors import (
    ErrorCode,
    ContactsError,
    MalformedInputError,
    StructuralMismatchError,
    HostIOError,
    ConfigurationError,
)
from .config import ContactsSettings, get_settings, reset_settings
from .logging_config import setup_logging, get_logger
from .keys import FieldKey, parse_key, build_key, base_of, indexed_key
from .models import (
    VCardSupportedKey,
    VCardKind,
    STRUCTURED_FIELDS,
    ScalarField,
    NameComponents,
    AddressComponents,
    ContactRecord,
    VCardToStringError,
    VCardToStringReply,
)
from .names import (
    create_name_slug,
    has_valid_n_fields,
    is_organization,
    generate_rev_timestamp,
    new_contact_record,
    ensure_has_name,
)
from .parsing import parse_vcard_text, parse_vcard_records, format_vcard_date, sort_fields
from .generation import generate_vcard, to_string, fold_line

__all__ = [
    "ErrorCode",
    "ContactsError",
    "MalformedInputError",
    "StructuralMismatchError",
    "HostIOError",
    "ConfigurationError",
    "ContactsSettings",
    "get_settings",
    "reset_settings",
    "setup_logging",
    "get_logger",
    "FieldKey",
    "parse_key",
    "build_key",
    "base_of",
    "indexed_key",
    "VCardSupportedKey",
    "VCardKind",
    "STRUCTURED_FIELDS",
    "ScalarField",
    "NameComponents",
    "AddressComponents",
    "ContactRecord",
    "VCardToStringError",
    "VCardToStringReply",
    "create_name_slug",
    "has_valid_n_fields",
    "is_organization",
    "generate_rev_timestamp",
    "new_contact_record",
    "ensure_has_name",
    "parse_vcard_text",
    "parse_vcard_records",
    "format_vcard_date",
    "sort_fields",
    "generate_vcard",
    "to_string",
    "fold_line",
]
