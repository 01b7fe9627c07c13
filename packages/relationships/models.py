"""
Pydantic models for the relationship engine.

These models define the structure for:
- Contact references stored in RELATED values (urn:uuid:, uid:, name:)
- Nodes and directed edges of the in-memory relationship graph
- Entries of the free-text Related list
- Results of a relationship sync, single and batched
"""

from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class Gender(str, Enum):
    """GENDER values as stored in vCard."""
    MALE = "M"
    FEMALE = "F"
    NONBINARY = "NB"
    UNSPECIFIED = "U"


class ReferenceNamespace(str, Enum):
    """How a RELATED value identifies its target."""
    UUID = "urn:uuid"
    UID = "uid"
    NAME = "name"


class ContactReference(BaseModel):
    """
    A decoded RELATED value.

    Renders back to the exact stored form, e.g. ``urn:uuid:03a0e51f-...``
    or ``name:Jane Smith``.
    """
    model_config = ConfigDict(frozen=True)

    namespace: ReferenceNamespace
    value: str

    def render(self) -> str:
        return f"{self.namespace.value}:{self.value}"

    def __str__(self) -> str:
        return self.render()


# ==================== Graph ====================

class ContactNode(BaseModel):
    """A contact as seen by the relationship graph."""
    model_config = ConfigDict(frozen=True)

    full_name: str
    uid: Optional[str] = None
    gender: Optional[Gender] = None

    @property
    def id(self) -> str:
        """Reference-style id: urn:uuid, then uid, then name."""
        from .references import encode_reference
        return encode_reference(self.uid, self.full_name)


class RelationshipEdge(BaseModel):
    """
    A directed relationship from source to target.

    ``kind`` is kept as given; ``genderless_kind`` is its storage form.
    """
    model_config = ConfigDict(frozen=True)

    source_id: str
    target_id: str
    kind: str
    genderless_kind: str


class GraphStats(BaseModel):
    """Aggregate counts for a graph."""
    node_count: int = 0
    edge_count: int = 0
    unresolved_edge_count: int = 0


class ConsistencyIssue(BaseModel):
    """An edge whose reciprocal edge is missing from the graph."""
    source_id: str
    target_id: str
    kind: str
    expected_reciprocal: str


# ==================== Related list ====================

class RelatedListEntry(BaseModel):
    """One line of the free-text Related list: relationship word + contact name."""
    model_config = ConfigDict(frozen=True)

    kind: str
    name: str


# ==================== Sync ====================

class SyncState(str, Enum):
    """Stages of a single sync invocation."""
    PARSED = "parsed"
    DIFFED = "diffed"
    NOOP = "noop"
    MERGING = "merging"
    MERGED = "merged"
    MERGED_WITH_WARNINGS = "merged_with_warnings"
    # nothing to merge, but GENDER was written to related contacts
    GENDERS_INFERRED = "genders_inferred"


class SyncResult(BaseModel):
    """
    Outcome of syncing one contact's Related list into its RELATED fields.

    ``merged`` is the full structured record after the merge; existing
    entries are never removed or reordered. ``errors`` holds serialized
    ContactsError dicts for writes that failed.
    """
    contact: Optional[str] = None
    state: SyncState = SyncState.PARSED
    changed: bool = False
    merged: Dict[str, Any] = Field(default_factory=dict)
    added: Dict[str, str] = Field(default_factory=dict)
    revision_bump: Optional[str] = None
    # target contact -> GENDER written by gender inference
    inferred_genders: Dict[str, str] = Field(default_factory=dict)
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return len(self.added)

    @property
    def has_warnings(self) -> bool:
        return bool(self.errors)


class SyncFailure(BaseModel):
    """A contact that could not be synced at all."""
    contact: str
    error: Dict[str, Any]


class BatchSyncReport(BaseModel):
    """Results of syncing several contacts one after another."""
    results: List[SyncResult] = Field(default_factory=list)
    failures: List[SyncFailure] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def changed_count(self) -> int:
        return sum(1 for r in self.results if r.changed)

    @property
    def warnings(self) -> List[SyncFailure]:
        """Per-write errors from contacts that were otherwise synced."""
        return [
            SyncFailure(contact=r.contact or "", error=e)
            for r in self.results
            for e in r.errors
        ]
