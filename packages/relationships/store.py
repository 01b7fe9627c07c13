"""
Contact storage - the host capability the relationship engine reads and
writes through.

ContactStorage is the interface a host implements. JsonContactStore is the
bundled file-backed implementation: one JSON document per contact under the
data directory,

    <data_dir>/Jane Smith.json
    {"frontmatter": {"FN": "Jane Smith", "RELATED[parent]": "name:Alex"},
     "content": "## Related\\n- parent [[Alex]]\\n"}
"""

import json
import os
import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List, Dict, Any, Mapping, Union

from contacts.config import get_settings
from contacts.errors import HostIOError, ErrorCode

logger = logging.getLogger(__name__)


class ContactStorage(ABC):
    """Abstract base class for host contact storage."""

    @abstractmethod
    async def read_content(self, name: str) -> str:
        """Raw note text of a contact."""
        pass

    @abstractmethod
    async def read_frontmatter(self, name: str) -> Dict[str, Any]:
        """Parsed key/value frontmatter of a contact."""
        pass

    @abstractmethod
    async def write_frontmatter(self, name: str, updates: Mapping[str, Any]) -> None:
        """Set one or more frontmatter keys in a single atomic write."""
        pass

    @abstractmethod
    async def list_contacts(self) -> List[str]:
        """Names of all contacts in storage."""
        pass

    @abstractmethod
    async def resolve_name(self, display_name: str) -> Optional[str]:
        """Storage name for a display name, or None if no contact matches."""
        pass


class JsonContactStore(ContactStorage):
    """
    File-based contact storage.

    The data directory defaults to CONTACTS_DATA_DIR; constructing a store
    without either raises ConfigurationError.
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self.data_dir = Path(data_dir) if data_dir else get_settings().require_data_dir()
        self._ensure_directories()

    def _ensure_directories(self):
        """Create the data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _is_valid_name(name: str) -> bool:
        return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name

    def _path(self, name: str) -> Path:
        """Document path for a contact; names must stay inside data_dir."""
        if not self._is_valid_name(name):
            raise HostIOError(
                f"Invalid contact name: {name!r}",
                code=ErrorCode.IO_INVALID_NAME,
                details={"contact": name},
            )
        return self.data_dir / f"{name}.json"

    def _read_json(self, name: str) -> Dict[str, Any]:
        """Read a contact document, failing if it doesn't exist."""
        filepath = self._path(name)
        if not filepath.exists():
            raise HostIOError(
                f"Contact not found: {name}",
                code=ErrorCode.IO_NOT_FOUND,
                details={"contact": name},
            )
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise HostIOError(
                f"Could not read contact {name}: {e}",
                code=ErrorCode.IO_READ,
                details={"contact": name},
            ) from e

    def _write_json(self, name: str, data: Dict[str, Any]):
        """Replace a contact document atomically."""
        filepath = self._path(name)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str, ensure_ascii=False)
            os.replace(tmp_path, filepath)
            tmp_path = None
        except OSError as e:
            raise HostIOError(
                f"Could not write contact {name}: {e}",
                code=ErrorCode.IO_WRITE,
                details={"contact": name},
            ) from e
        finally:
            # left behind only when the replace did not happen
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    # ==================== Contacts ====================

    async def save_contact(
        self,
        name: str,
        frontmatter: Optional[Mapping[str, Any]] = None,
        content: str = ""
    ) -> None:
        """Create or overwrite a contact document."""
        self._write_json(name, {
            "frontmatter": dict(frontmatter or {}),
            "content": content,
        })

    async def read_content(self, name: str) -> str:
        return self._read_json(name).get("content", "")

    async def read_frontmatter(self, name: str) -> Dict[str, Any]:
        return dict(self._read_json(name).get("frontmatter", {}))

    async def write_frontmatter(self, name: str, updates: Mapping[str, Any]) -> None:
        data = self._read_json(name)
        frontmatter = data.setdefault("frontmatter", {})
        frontmatter.update(updates)
        self._write_json(name, data)
        logger.debug(f"Wrote {sorted(updates)} to {name}")

    async def list_contacts(self) -> List[str]:
        return sorted(p.stem for p in self.data_dir.glob("*.json"))

    async def resolve_name(self, display_name: str) -> Optional[str]:
        """
        Match by storage name first, then case-insensitively, then by FN.
        """
        if self._is_valid_name(display_name) and self._path(display_name).exists():
            return display_name

        names = await self.list_contacts()
        lowered = display_name.lower()
        for name in names:
            if name.lower() == lowered:
                return name

        for name in names:
            frontmatter = await self.read_frontmatter(name)
            if frontmatter.get("FN") == display_name:
                return name
        return None


# Singleton instance for easy access
_store: Optional[JsonContactStore] = None


def get_store(data_dir: Optional[Union[str, Path]] = None) -> JsonContactStore:
    """Get or create the singleton store instance."""
    global _store
    if _store is None:
        _store = JsonContactStore(data_dir)
    return _store


def reset_store() -> None:
    global _store
    _store = None
