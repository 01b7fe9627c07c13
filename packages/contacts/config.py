"""
Settings for the contacts packages.

Values come from environment variables, the same way the storage and graph
constructors pick up their connection settings:

- CONTACTS_DATA_DIR: directory used by the JSON contact store
- CONTACTS_LOG_LEVEL: root log level for setup_logging()
- CONTACTS_VCARD_VERSION: VERSION written into new records
- CONTACTS_RELATED_HEADING: heading of the free-text Related section
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, field_validator

from .errors import ConfigurationError, ErrorCode


class ContactsSettings(BaseModel):
    """Runtime settings shared by the codec and the relationship engine."""
    data_dir: Optional[Path] = None
    log_level: str = "INFO"
    vcard_version: str = "4.0"
    related_heading: str = "Related"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def from_env(cls) -> "ContactsSettings":
        data_dir = os.environ.get("CONTACTS_DATA_DIR")
        return cls(
            data_dir=Path(data_dir) if data_dir else None,
            log_level=os.environ.get("CONTACTS_LOG_LEVEL", "INFO"),
            vcard_version=os.environ.get("CONTACTS_VCARD_VERSION", "4.0"),
            related_heading=os.environ.get("CONTACTS_RELATED_HEADING", "Related"),
        )

    def require_data_dir(self) -> Path:
        """Return the data directory or fail loudly if it is not configured."""
        if self.data_dir is None:
            raise ConfigurationError(
                "Contact storage requires CONTACTS_DATA_DIR to be set",
                code=ErrorCode.CFG_MISSING,
            )
        return self.data_dir


# Singleton settings instance
_settings: Optional[ContactsSettings] = None


def get_settings() -> ContactsSettings:
    """Get or create the settings singleton from the environment."""
    global _settings
    if _settings is None:
        _settings = ContactsSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
