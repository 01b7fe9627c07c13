"""
Relationship sync between a contact's Related list and its RELATED fields.

A contact keeps its relationships twice: as a human-edited list in the note
body and as ``RELATED[kind]`` frontmatter fields. Syncing copies entries that
are only in the list into the fields:

    Parsed -> Diffed -> NoOp
                     -> Merging -> Merged (or Merged with warnings)

The merge only ever adds fields. REV is advanced once per sync that wrote
something, and a second sync over the same input changes nothing.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Mapping, Iterable, Union, Tuple, Set

from contacts.errors import ContactsError, ConfigurationError, HostIOError
from contacts.keys import parse_key, indexed_key
from contacts.names import generate_rev_timestamp

from .context import ContactsContext
from .kinds import infer_gender, parse_gender
from .markdown import parse_related_section
from .models import (
    ContactReference,
    ReferenceNamespace,
    RelatedListEntry,
    SyncState,
    SyncResult,
    SyncFailure,
    BatchSyncReport,
)
from .references import decode_reference, encode_reference

logger = logging.getLogger(__name__)

FreeText = Union[str, Iterable[Union[RelatedListEntry, Tuple[str, str]]]]


# ==================== Diffing ====================

def coerce_entries(free_text: FreeText, heading: str = "Related") -> List[RelatedListEntry]:
    """Accept note text, entries or (kind, name) pairs."""
    if isinstance(free_text, str):
        return parse_related_section(free_text, heading)
    entries = []
    for item in free_text:
        if isinstance(item, RelatedListEntry):
            entries.append(item)
        else:
            kind, name = item
            entries.append(RelatedListEntry(kind=kind, name=name))
    return entries


def structured_relationships(structured: Mapping[str, Any]) -> List[Tuple[str, ContactReference]]:
    """
    Decoded ``(kind, reference)`` pairs of the RELATED fields.

    Values that are not strings or not namespaced references are logged
    and skipped.
    """
    pairs = []
    for key, value in structured.items():
        parsed = parse_key(key)
        if parsed.base != "RELATED":
            continue
        if not isinstance(value, str):
            logger.warning(f"Skipping {key}: value of type {type(value).__name__} is not text")
            continue
        reference = decode_reference(value)
        if reference is None:
            logger.warning(f"Skipping {key}: {value!r} is not a contact reference")
            continue
        pairs.append((parsed.type or "", reference))
    return pairs


def find_missing(
    entries: Iterable[RelatedListEntry],
    structured: Mapping[str, Any]
) -> List[RelatedListEntry]:
    """
    Related list entries with no matching RELATED field.

    A field matches when its kind equals the entry's kind as written
    (ignoring case) and it is a name: reference to the same contact name.
    Repeated entries are reported once.
    """
    existing: Set[Tuple[str, str]] = {
        (kind.lower(), reference.value)
        for kind, reference in structured_relationships(structured)
        if reference.namespace == ReferenceNamespace.NAME
    }

    missing = []
    for entry in entries:
        marker = (entry.kind.lower(), entry.name)
        if marker in existing:
            continue
        existing.add(marker)
        missing.append(entry)
    return missing


def plan_additions(missing: Iterable[RelatedListEntry], structured: Mapping[str, Any]) -> Dict[str, str]:
    """New RELATED fields for the missing entries, indexed around existing keys."""
    taken = set(structured)
    additions: Dict[str, str] = {}
    for entry in missing:
        key = indexed_key(f"RELATED[{entry.kind}]", taken)
        taken.add(key)
        additions[key] = encode_reference(None, entry.name)
    return additions


def sync_relationship_representations(
    free_text: FreeText,
    structured: Mapping[str, Any],
    heading: str = "Related",
    now: Optional[datetime] = None
) -> SyncResult:
    """
    Merge a Related list into structured fields without touching storage.

    Returns the merged record; the input mapping is not modified.
    """
    entries = coerce_entries(free_text, heading)
    missing = find_missing(entries, structured)

    if not missing:
        return SyncResult(state=SyncState.NOOP, merged=dict(structured))

    additions = plan_additions(missing, structured)
    revision = generate_rev_timestamp(now)
    merged = dict(structured)
    merged.update(additions)
    merged["REV"] = revision

    return SyncResult(
        state=SyncState.MERGED,
        changed=True,
        merged=merged,
        added=additions,
        revision_bump=revision,
    )


# ==================== Storage-backed sync ====================

class RelationshipSynchronizer:
    """
    Runs the sync against host storage, one contact at a time.

    Each missing entry is written separately. A failed write is recorded
    and the writes before it are kept. With ``infer_gender`` set, a
    strictly gendered word ("mother") also fills in the GENDER of the
    target contact when it has none. Those writes touch other contacts, so
    a run that only inferred genders ends in GENDERS_INFERRED, not NOOP,
    while ``changed`` stays False for the synced contact itself.
    """

    def __init__(self, context: ContactsContext, infer_gender: bool = False):
        self.context = context
        self.infer_gender = infer_gender

    async def sync_contact(self, name: str, now: Optional[datetime] = None) -> SyncResult:
        """
        Sync one contact.

        Raises:
            ConfigurationError: the context is not initialised.
            HostIOError: the contact could not be read.
        """
        context = self.context.require()
        storage = context.storage

        content = await storage.read_content(name)
        frontmatter = await storage.read_frontmatter(name)
        entries = parse_related_section(content, context.settings.related_heading)
        result = SyncResult(contact=name, state=SyncState.PARSED, merged=dict(frontmatter))

        missing = find_missing(entries, frontmatter)
        result.state = SyncState.DIFFED

        if self.infer_gender:
            await self._infer_genders(entries, result)

        if not missing:
            if result.errors:
                result.state = SyncState.MERGED_WITH_WARNINGS
            elif result.inferred_genders:
                result.state = SyncState.GENDERS_INFERRED
            else:
                result.state = SyncState.NOOP
            logger.info(f"Relationships of {name} already in sync")
            return result

        result.state = SyncState.MERGING
        for key, value in plan_additions(missing, frontmatter).items():
            try:
                await storage.write_frontmatter(name, {key: value})
            except HostIOError as e:
                logger.error(f"Failed to write {key} for {name}: {e.message}")
                result.errors.append(e.to_dict())
                continue
            result.added[key] = value
            result.merged[key] = value

        if result.added:
            revision = generate_rev_timestamp(now)
            try:
                await storage.write_frontmatter(name, {"REV": revision})
                result.merged["REV"] = revision
                result.revision_bump = revision
            except HostIOError as e:
                logger.error(f"Failed to update REV for {name}: {e.message}")
                result.errors.append(e.to_dict())

        result.changed = bool(result.added)
        result.state = SyncState.MERGED_WITH_WARNINGS if result.errors else SyncState.MERGED
        logger.info(
            f"Synced relationships of {name}: {result.applied_count} added, "
            f"{len(result.errors)} errors"
        )
        return result

    async def _infer_genders(self, entries: List[RelatedListEntry], result: SyncResult) -> None:
        storage = self.context.storage
        for entry in entries:
            gender = infer_gender(entry.kind)
            if gender is None:
                continue
            target = entry.name
            try:
                target = await storage.resolve_name(entry.name)
                if target is None:
                    continue
                target_frontmatter = await storage.read_frontmatter(target)
                if parse_gender(target_frontmatter.get("GENDER")) is not None:
                    continue
                await storage.write_frontmatter(target, {"GENDER": gender.value})
            except HostIOError as e:
                logger.error(f"Failed to set GENDER for {target}: {e.message}")
                result.errors.append(e.to_dict())
                continue
            result.inferred_genders[target] = gender.value
            logger.info(f"Inferred GENDER {gender.value} for {target} from '{entry.kind}'")

    async def sync_contacts(self, names: Optional[Iterable[str]] = None) -> BatchSyncReport:
        """
        Sync several contacts, or every stored contact when names is None.

        One failing contact never stops the batch; ConfigurationError does.
        """
        context = self.context.require()
        if names is None:
            names = await context.storage.list_contacts()

        report = BatchSyncReport()
        for name in names:
            try:
                report.results.append(await self.sync_contact(name))
            except ConfigurationError:
                raise
            except ContactsError as e:
                logger.warning(f"Could not sync {name}: {e.message}")
                report.failures.append(SyncFailure(contact=name, error=e.to_dict()))

        logger.info(
            f"Batch sync finished: {report.success_count} synced, "
            f"{report.changed_count} changed, {len(report.failures)} failed"
        )
        return report
