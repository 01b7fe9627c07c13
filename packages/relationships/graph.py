"""
In-memory relationship graph over a contact set.

This module provides the RelationshipGraph class that holds the contacts
of one session and the directed relationships between them.

Node ids are contact references (urn:uuid:..., uid:..., name:...), so an
edge target is directly usable as a RELATED value.

Features:
- Node CRUD with cascading removal
- Directed edges stored with their genderless kind
- Edges to contacts not loaded yet are kept as unresolved
- Reciprocal consistency report
- Rendering a node's edges back to RELATED Field Keys

Build a graph from a whole contact set in two phases, nodes first and
edges second, so that forward references resolve:

    graph = graph_from_records(records)
"""

import logging
from typing import Optional, List, Dict, Iterable, Mapping, Tuple, Any

from contacts.errors import StructuralMismatchError
from contacts.keys import parse_key, indexed_key
from contacts.names import create_name_slug

from .kinds import normalize_kind, reciprocal_kind, parse_gender
from .models import ContactNode, RelationshipEdge, GraphStats, ConsistencyIssue
from .references import decode_reference, find_contact, is_uuid

logger = logging.getLogger(__name__)

# (source id, target reference, kind)
EdgeSpec = Tuple[str, str, str]

# Singleton graph instance
_graph_instance: Optional["RelationshipGraph"] = None


def get_graph() -> "RelationshipGraph":
    """Get the session RelationshipGraph instance."""
    global _graph_instance
    if _graph_instance is None:
        _graph_instance = RelationshipGraph()
    return _graph_instance


def reset_graph() -> None:
    """Discard the session graph."""
    global _graph_instance
    _graph_instance = None


class RelationshipGraph:
    """
    Node table plus adjacency lists.

    Not safe for concurrent mutation; build it once per session and treat
    it as read-mostly afterwards.
    """

    def __init__(self):
        self._nodes: Dict[str, ContactNode] = {}
        self._edges: Dict[str, List[RelationshipEdge]] = {}

    # ==================== Nodes ====================

    @staticmethod
    def generate_id(node: ContactNode) -> str:
        """Reference-style id for a node: urn:uuid, then uid, then name."""
        return node.id

    def add_node(self, node: ContactNode) -> str:
        """Add or replace a node and return its id."""
        node_id = self.generate_id(node)
        replaced = node_id in self._nodes
        self._nodes[node_id] = node
        self._edges.setdefault(node_id, [])
        logger.info(f"{'Replaced' if replaced else 'Added'} contact node {node_id}")
        self._relink_pending(node_id)
        return node_id

    def get_node(self, node_id: str) -> Optional[ContactNode]:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def node_ids(self) -> List[str]:
        return list(self._nodes)

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and every edge that starts or ends at it."""
        if node_id not in self._nodes:
            return False

        del self._nodes[node_id]
        removed = len(self._edges.pop(node_id, []))
        for source_id, edges in self._edges.items():
            kept = [e for e in edges if e.target_id != node_id]
            removed += len(edges) - len(kept)
            self._edges[source_id] = kept

        logger.info(f"Removed contact node {node_id} and {removed} edges")
        return True

    # ==================== Identity lookup ====================

    def find_by_uid(self, uid: str) -> Optional[str]:
        """Id of the node with this UID (UUIDs compare case-insensitively)."""
        if not uid:
            return None
        wanted = uid.lower() if is_uuid(uid) else uid
        for node_id, node in self._nodes.items():
            if not node.uid:
                continue
            have = node.uid.lower() if is_uuid(node.uid) else node.uid
            if have == wanted:
                return node_id
        return None

    def find_by_name(self, name: str) -> Optional[str]:
        """Id of the first node whose full name matches exactly."""
        for node_id, node in self._nodes.items():
            if node.full_name == name:
                return node_id
        return None

    def resolve_reference(self, value: str) -> Optional[str]:
        """Map a stored RELATED value to a node id, or None if not loaded."""
        return find_contact(value, self.find_by_uid, self.find_by_name)

    # ==================== Edges ====================

    def add_relationship(self, source_id: str, target_id: str, kind: str) -> RelationshipEdge:
        """
        Add a directed edge.

        A target that is not in the graph yet is kept as an unresolved edge;
        it becomes resolved once a node with that id is added. Adding the
        same (source, target, genderless kind) twice keeps one edge.
        """
        genderless = normalize_kind(kind)
        edges = self._edges.setdefault(source_id, [])
        for edge in edges:
            if edge.target_id == target_id and edge.genderless_kind == genderless:
                return edge

        edge = RelationshipEdge(
            source_id=source_id,
            target_id=target_id,
            kind=kind,
            genderless_kind=genderless,
        )
        edges.append(edge)

        if target_id not in self._nodes:
            logger.warning(f"Relationship target {target_id} is not in the graph yet")
        logger.info(f"Added relationship {source_id} -[{genderless}]-> {target_id}")
        return edge

    def get_relationships(self, source_id: str) -> List[RelationshipEdge]:
        """Outgoing edges of a node, in insertion order."""
        return list(self._edges.get(source_id, []))

    def remove_relationship(self, source_id: str, target_id: str, kind: str) -> bool:
        genderless = normalize_kind(kind)
        edges = self._edges.get(source_id, [])
        kept = [
            e for e in edges
            if not (e.target_id == target_id and e.genderless_kind == genderless)
        ]
        if len(kept) == len(edges):
            return False
        self._edges[source_id] = kept
        logger.info(f"Removed relationship {source_id} -[{genderless}]-> {target_id}")
        return True

    def unresolved_relationships(self) -> List[RelationshipEdge]:
        return [
            edge
            for edges in self._edges.values()
            for edge in edges
            if edge.target_id not in self._nodes
        ]

    def unresolved_errors(self) -> List[StructuralMismatchError]:
        """One StructuralMismatchError per edge whose target is not a node."""
        return [
            StructuralMismatchError(
                f"Relationship {edge.source_id} -> {edge.target_id} has no target contact",
                details={"source_id": edge.source_id, "target_id": edge.target_id, "kind": edge.kind},
            )
            for edge in self.unresolved_relationships()
        ]

    def _relink_pending(self, node_id: str) -> None:
        """Point unresolved edges whose reference now matches node_id at it."""
        for source_id, edges in self._edges.items():
            for i, edge in enumerate(edges):
                if edge.target_id in self._nodes:
                    continue
                if self.resolve_reference(edge.target_id) == node_id:
                    edges[i] = edge.model_copy(update={"target_id": node_id})
                    logger.debug(f"Resolved pending edge {source_id} -> {node_id}")

    # ==================== Reports ====================

    def stats(self) -> GraphStats:
        return GraphStats(
            node_count=len(self._nodes),
            edge_count=sum(len(edges) for edges in self._edges.values()),
            unresolved_edge_count=len(self.unresolved_relationships()),
        )

    def check_consistency(self) -> List[ConsistencyIssue]:
        """
        List resolved edges whose reciprocal edge is missing.

        Nothing is added to the graph; callers decide whether to create the
        reciprocal.
        """
        issues = []
        for source_id, edges in self._edges.items():
            for edge in edges:
                if edge.target_id not in self._nodes:
                    continue
                expected = reciprocal_kind(edge.genderless_kind)
                if expected is None:
                    continue
                has_reciprocal = any(
                    back.target_id == source_id and back.genderless_kind == expected
                    for back in self._edges.get(edge.target_id, [])
                )
                if not has_reciprocal:
                    issues.append(ConsistencyIssue(
                        source_id=source_id,
                        target_id=edge.target_id,
                        kind=edge.genderless_kind,
                        expected_reciprocal=expected,
                    ))
        return issues

    def to_related_fields(self, node_id: str) -> Dict[str, str]:
        """
        Render a node's outgoing edges as RELATED Field Keys.

        Repeated kinds get bracket indexes: RELATED[friend],
        RELATED[1:friend], ...
        """
        fields: Dict[str, str] = {}
        for edge in self._edges.get(node_id, []):
            key = indexed_key(f"RELATED[{edge.genderless_kind}]", fields)
            fields[key] = edge.target_id
        return fields

    def clear(self) -> None:
        self._nodes.clear()
        self._edges.clear()


# ==================== Building ====================

def _strip_urn(uid: Optional[str]) -> Optional[str]:
    if isinstance(uid, str) and uid.lower().startswith("urn:uuid:"):
        return uid[len("urn:uuid:"):]
    return uid


def node_from_record(record: Mapping[str, Any]) -> Optional[ContactNode]:
    """Graph node for a flat record, or None when it has no usable name."""
    full_name = record.get("FN") or create_name_slug(record)
    if not isinstance(full_name, str) or not full_name.strip():
        return None
    uid = _strip_urn(record.get("UID"))
    return ContactNode(
        full_name=full_name.strip(),
        uid=uid if isinstance(uid, str) and uid.strip() else None,
        gender=parse_gender(record.get("GENDER")),
    )


def build_graph(nodes: Iterable[ContactNode], edge_specs: Iterable[EdgeSpec]) -> RelationshipGraph:
    """
    Build a graph from nodes and (source id, target reference, kind) specs.

    All nodes are added before any edge. Targets are resolved through the
    reference namespaces; unknown targets stay unresolved.
    """
    graph = RelationshipGraph()
    for node in nodes:
        graph.add_node(node)
    for source_id, target, kind in edge_specs:
        graph.add_relationship(source_id, graph.resolve_reference(target) or target, kind)
    logger.info(f"Built relationship graph: {graph.stats().model_dump()}")
    return graph


def graph_from_records(records: Iterable[Mapping[str, Any]]) -> RelationshipGraph:
    """
    Build a graph from decoded flat records using their RELATED[kind] fields.

    Values that are not namespaced references are logged and skipped.
    """
    nodes: List[ContactNode] = []
    edge_specs: List[EdgeSpec] = []

    for record in records:
        node = node_from_record(record)
        if node is None:
            logger.warning("Skipping contact without a name while building graph")
            continue
        nodes.append(node)
        source_id = RelationshipGraph.generate_id(node)

        for key, value in record.items():
            parsed = parse_key(key)
            if parsed.base != "RELATED":
                continue
            if decode_reference(value) is None:
                logger.warning(f"Skipping malformed {key} value {value!r} on {source_id}")
                continue
            edge_specs.append((source_id, value, parsed.type or "relative"))

    return build_graph(nodes, edge_specs)
