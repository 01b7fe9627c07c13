"""
Explicit host context for storage-backed operations.

Operations that read or write contacts take a ContactsContext instead of
looking up a global app object:

    context = ContactsContext(get_settings(), JsonContactStore())
    await RelationshipSynchronizer(context).sync_contact("Jane Smith")
"""

from typing import Optional

from contacts.config import ContactsSettings, get_settings
from contacts.errors import ConfigurationError, ErrorCode

from .store import ContactStorage, JsonContactStore


class ContactsContext:
    """Settings plus the storage capability of the host."""

    def __init__(
        self,
        settings: Optional[ContactsSettings] = None,
        storage: Optional[ContactStorage] = None
    ):
        self.settings = settings
        self.storage = storage

    @classmethod
    def from_env(cls) -> "ContactsContext":
        """Context backed by CONTACTS_* settings and the JSON store."""
        settings = get_settings()
        return cls(settings, JsonContactStore(settings.require_data_dir()))

    def require(self) -> "ContactsContext":
        """
        Fail fast when the host has not initialised the context.

        Raises:
            ConfigurationError: settings or storage are missing.
        """
        if self.settings is None:
            raise ConfigurationError(
                "Contacts settings have not been initialised",
                code=ErrorCode.CFG_MISSING,
            )
        if self.storage is None:
            raise ConfigurationError(
                "No contact storage has been provided",
                code=ErrorCode.CFG_MISSING,
            )
        return self
