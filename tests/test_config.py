"""Tests for settings, context and error reporting."""

from pathlib import Path

import pytest

from contacts.config import ContactsSettings, get_settings, reset_settings
from contacts.errors import (
    ConfigurationError,
    ContactsError,
    ErrorCode,
    HostIOError,
    MalformedInputError,
)
from relationships.context import ContactsContext
from relationships.store import JsonContactStore, get_store


def test_defaults():
    settings = ContactsSettings.from_env()
    assert settings.data_dir is None
    assert settings.log_level == "INFO"
    assert settings.vcard_version == "4.0"
    assert settings.related_heading == "Related"


def test_values_from_environment(settings_factory, tmp_path):
    settings = settings_factory(
        CONTACTS_DATA_DIR=str(tmp_path),
        CONTACTS_LOG_LEVEL="debug",
        CONTACTS_RELATED_HEADING="Family",
    )
    assert settings.data_dir == Path(tmp_path)
    assert settings.log_level == "DEBUG"
    assert settings.related_heading == "Family"


def test_settings_singleton(monkeypatch):
    first = get_settings()
    assert get_settings() is first
    monkeypatch.setenv("CONTACTS_VCARD_VERSION", "3.0")
    assert get_settings().vcard_version == "4.0"
    reset_settings()
    assert get_settings().vcard_version == "3.0"


def test_missing_data_dir_is_a_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        ContactsSettings().require_data_dir()
    assert exc_info.value.code == ErrorCode.CFG_MISSING
    with pytest.raises(ConfigurationError):
        JsonContactStore()


def test_store_uses_configured_data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("CONTACTS_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    store = get_store()
    assert store.data_dir == tmp_path / "data"
    assert store.data_dir.is_dir()
    assert get_store() is store


def test_context_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("CONTACTS_DATA_DIR", str(tmp_path))
    reset_settings()
    context = ContactsContext.from_env().require()
    assert isinstance(context.storage, JsonContactStore)


def test_context_require():
    with pytest.raises(ConfigurationError):
        ContactsContext().require()


def test_error_to_dict():
    error = MalformedInputError("bad value", code=ErrorCode.MAL_REFERENCE, details={"key": "RELATED"})
    assert error.to_dict() == {
        "error": "MalformedInputError",
        "code": "MAL_REFERENCE",
        "message": "bad value",
        "details": {"key": "RELATED"},
    }
    assert str(error) == "bad value"


def test_default_error_codes():
    assert HostIOError("x").code == ErrorCode.IO_WRITE
    assert ConfigurationError("x").code == ErrorCode.CFG_MISSING
    assert isinstance(HostIOError("x"), ContactsError)
