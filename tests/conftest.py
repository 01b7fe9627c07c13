"""Shared fixtures for the contacts and relationships tests."""

import pytest

from contacts.config import ContactsSettings, reset_settings
from relationships.context import ContactsContext
from relationships.graph import reset_graph
from relationships.store import JsonContactStore, reset_store


SAMPLE_VCARD = (
    "BEGIN:VCARD\r\n"
    "VERSION:3.0\r\n"
    "N:Smith;Jane;Q;Dr.;PhD\r\n"
    "FN:Jane Smith\r\n"
    "EMAIL;TYPE=HOME:jane@example.com\r\n"
    "EMAIL;TYPE=HOME:jane.smith@example.org\r\n"
    "TEL;TYPE=CELL:+1 555 0100\r\n"
    "ADR;TYPE=HOME:;;1 Main St;Springfield;IL;62701;USA\r\n"
    "BDAY:19850412\r\n"
    "NOTE:Met at the conference in Berlin and talked about a very long list\r\n"
    "  of things\r\n"
    "X-CUSTOM:dropped\r\n"
    "END:VCARD\r\n"
    "BEGIN:VCARD\r\n"
    "VERSION:4.0\r\n"
    "FN:Acme Corp\r\n"
    "ORG:Acme Corp\r\n"
    "KIND:org\r\n"
    "END:VCARD\r\n"
)


@pytest.fixture(autouse=True)
def clean_singletons(monkeypatch):
    """Each test sees a fresh environment and no cached singletons."""
    for var in (
        "CONTACTS_DATA_DIR",
        "CONTACTS_LOG_LEVEL",
        "CONTACTS_VCARD_VERSION",
        "CONTACTS_RELATED_HEADING",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    reset_graph()
    reset_store()
    yield
    reset_settings()
    reset_graph()
    reset_store()


@pytest.fixture
def sample_vcard() -> str:
    return SAMPLE_VCARD


@pytest.fixture
def settings_factory(monkeypatch):
    """Build settings from environment variables set for this test only."""
    def _make(**env) -> ContactsSettings:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        reset_settings()
        return ContactsSettings.from_env()
    return _make


@pytest.fixture
def store(tmp_path) -> JsonContactStore:
    return JsonContactStore(tmp_path / "contacts")


@pytest.fixture
def context(store) -> ContactsContext:
    return ContactsContext(ContactsSettings(data_dir=store.data_dir), store)
