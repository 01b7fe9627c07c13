"""Tests for name slugs and new-record helpers."""

from datetime import datetime, timezone

from contacts.names import (
    create_name_slug,
    has_valid_n_fields,
    is_organization,
    generate_rev_timestamp,
    new_contact_record,
    ensure_has_name,
)


def test_slug_from_n_components_in_schema_order():
    record = {"N.GN": "Jane", "N.FN": "Smith", "FN": "Ignored"}
    assert create_name_slug(record) == "Smith Jane"


def test_slug_fallback_order():
    assert create_name_slug({"FN": "Full", "NICKNAME": "Nick"}) == "Full"
    assert create_name_slug({"NICKNAME": "Nick", "ORG": "Org"}) == "Nick"
    assert create_name_slug({"ORG": "Org", "UUID": "u-1"}) == "Org"
    assert create_name_slug({"UUID": "u-1"}) == "u-1"


def test_slug_sanitises_filesystem_characters():
    assert create_name_slug({"FN": 'AC/DC: "Live"?'}) == "AC DC Live"
    assert create_name_slug({"FN": "...hidden"}) == "hidden"
    assert create_name_slug({"FN": "a..b   c"}) == "a.b c"


def test_no_slug_when_nothing_usable():
    assert create_name_slug({"TEL": "123"}) is None
    assert create_name_slug({"FN": "   "}) is None
    assert create_name_slug({"FN": "???"}) is None


def test_organization_detection():
    assert is_organization({"KIND": "org"})
    assert is_organization({"ORG": "Acme"})
    assert not is_organization({"ORG": "Acme", "N.GN": "Jo"})
    assert not is_organization({"KIND": "individual", "ORG": "Acme"})
    assert has_valid_n_fields({"N.FN": "Doe"})


def test_rev_timestamp_format():
    now = datetime(2024, 3, 5, 7, 8, 9, tzinfo=timezone.utc)
    assert generate_rev_timestamp(now) == "20240305T070809Z"


def test_new_contact_record_uses_prompt():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    record = new_contact_record(lambda: ("Jane", "Smith"), now=now)
    assert record["N.GN"] == "Jane"
    assert record["N.FN"] == "Smith"
    assert record["FN"] == "Jane Smith"
    assert record["VERSION"] == "4.0"
    assert record["KIND"] == "individual"
    assert record["REV"] == "20240101T000000Z"
    assert len(record["UID"]) == 36


def test_new_contact_record_respects_configured_version(settings_factory):
    settings_factory(CONTACTS_VCARD_VERSION="3.0")
    record = new_contact_record(lambda: ("A", ""))
    assert record["VERSION"] == "3.0"
    assert "N.FN" not in record


def test_ensure_has_name_only_prompts_when_needed():
    calls = []

    def prompt():
        calls.append(True)
        return ("Pat", "Lee")

    named = ensure_has_name({"FN": "Known"}, prompt)
    assert named == {"FN": "Known"}
    assert calls == []

    unnamed = ensure_has_name({"TEL": "123"}, prompt)
    assert calls == [True]
    assert unnamed["N.GN"] == "Pat"
    assert create_name_slug(unnamed) == "Lee Pat"


def test_ensure_has_name_without_prompt_returns_copy():
    record = {"TEL": "123"}
    result = ensure_has_name(record)
    assert result == record
    assert result is not record
