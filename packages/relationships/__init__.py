"""
Relationships Package

This package keeps the relationships between contacts consistent.

A relationship is stored on the source contact as a RELATED field whose
value references the target:

    RELATED[parent]: urn:uuid:03a0e51f-d1aa-4385-8a53-e29025acd8af
    RELATED[friend]: name:Ana Lopez

This package provides:
- Kind mapping (father/mother <-> parent, reciprocals)
- Contact reference encoding and decoding
- An in-memory relationship graph with consistency checks
- Parsing and rendering of the free-text Related list
- Syncing the Related list into RELATED fields through host storage
"""

from .models import (
    Gender,
    ReferenceNamespace,
    ContactReference,
    ContactNode,
    RelationshipEdge,
    GraphStats,
    ConsistencyIssue,
    RelatedListEntry,
    SyncState,
    SyncResult,
    SyncFailure,
    BatchSyncReport,
)
from .kinds import (
    parse_gender,
    normalize_kind,
    render_kind,
    is_gendered,
    infer_gender,
    reciprocal_kind,
    should_have_reciprocal,
    supported_kinds,
    is_known_kind,
)
from .references import (
    encode_reference,
    decode_reference,
    require_reference,
    display_name,
    find_contact,
)
from .graph import (
    RelationshipGraph,
    build_graph,
    graph_from_records,
    get_graph,
    reset_graph,
)
from .markdown import parse_related_section, render_related_section
from .store import ContactStorage, JsonContactStore, get_store, reset_store
from .context import ContactsContext
from .sync import RelationshipSynchronizer, sync_relationship_representations

__all__ = [
    "Gender",
    "ReferenceNamespace",
    "ContactReference",
    "ContactNode",
    "RelationshipEdge",
    "GraphStats",
    "ConsistencyIssue",
    "RelatedListEntry",
    "SyncState",
    "SyncResult",
    "SyncFailure",
    "BatchSyncReport",
    "parse_gender",
    "normalize_kind",
    "render_kind",
    "is_gendered",
    "infer_gender",
    "reciprocal_kind",
    "should_have_reciprocal",
    "supported_kinds",
    "is_known_kind",
    "encode_reference",
    "decode_reference",
    "require_reference",
    "display_name",
    "find_contact",
    "RelationshipGraph",
    "build_graph",
    "graph_from_records",
    "get_graph",
    "reset_graph",
    "parse_related_section",
    "render_related_section",
    "ContactStorage",
    "JsonContactStore",
    "get_store",
    "reset_store",
    "ContactsContext",
    "RelationshipSynchronizer",
    "sync_relationship_representations",
]
