"""Tests for the in-memory relationship graph."""

from contacts.errors import StructuralMismatchError
from relationships.graph import (
    RelationshipGraph,
    build_graph,
    graph_from_records,
    get_graph,
    reset_graph,
)
from relationships.models import ContactNode, Gender

JANE_UID = "03a0e51f-d1aa-4385-8a53-e29025acd8af"
ALEX_UID = "5b1c6c7e-0f5a-4c1e-9a55-7d7e0a9d3c21"


def make_graph():
    graph = RelationshipGraph()
    jane = graph.add_node(ContactNode(full_name="Jane Smith", uid=JANE_UID, gender=Gender.FEMALE))
    alex = graph.add_node(ContactNode(full_name="Alex Smith", uid="alex-1"))
    sam = graph.add_node(ContactNode(full_name="Sam Lee"))
    return graph, jane, alex, sam


def test_node_ids_follow_reference_priority():
    graph, jane, alex, sam = make_graph()
    assert jane == f"urn:uuid:{JANE_UID}"
    assert alex == "uid:alex-1"
    assert sam == "name:Sam Lee"
    assert graph.get_node(jane).full_name == "Jane Smith"


def test_node_carries_its_id():
    node = ContactNode(full_name="Jane Smith", uid=JANE_UID)
    assert node.id == f"urn:uuid:{JANE_UID}"
    assert ContactNode(full_name="Sam Lee").id == RelationshipGraph.generate_id(ContactNode(full_name="Sam Lee"))
    assert "id" not in node.model_dump()


def test_add_relationship_stores_genderless_kind():
    graph, jane, alex, _ = make_graph()
    edge = graph.add_relationship(alex, jane, "mother")
    assert edge.kind == "mother"
    assert edge.genderless_kind == "parent"
    assert graph.get_relationships(alex) == [edge]


def test_duplicate_edge_is_kept_once():
    graph, jane, alex, _ = make_graph()
    graph.add_relationship(alex, jane, "mother")
    graph.add_relationship(alex, jane, "parent")
    assert graph.stats().edge_count == 1


def test_remove_node_cascades():
    graph, jane, alex, sam = make_graph()
    graph.add_relationship(alex, jane, "parent")
    graph.add_relationship(jane, alex, "child")
    graph.add_relationship(sam, alex, "friend")
    assert graph.remove_node(alex)
    stats = graph.stats()
    assert stats.node_count == 2
    assert stats.edge_count == 0
    assert not graph.remove_node(alex)


def test_remove_relationship():
    graph, jane, alex, _ = make_graph()
    graph.add_relationship(alex, jane, "parent")
    assert graph.remove_relationship(alex, jane, "mother")
    assert graph.get_relationships(alex) == []
    assert not graph.remove_relationship(alex, jane, "parent")


def test_identity_lookup():
    graph, jane, alex, sam = make_graph()
    assert graph.find_by_uid(JANE_UID.upper()) == jane
    assert graph.find_by_uid("alex-1") == alex
    assert graph.find_by_uid("missing") is None
    assert graph.find_by_name("Sam Lee") == sam
    assert graph.resolve_reference("name:Jane Smith") == jane
    assert graph.resolve_reference("uid:alex-1") == alex
    assert graph.resolve_reference("Jane Smith") is None


def test_unresolved_edge_is_kept_and_counted():
    graph, jane, _, _ = make_graph()
    graph.add_relationship(jane, "name:Nobody", "friend")
    stats = graph.stats()
    assert stats.edge_count == 1
    assert stats.unresolved_edge_count == 1


def test_unresolved_edge_resolves_when_target_arrives():
    graph = RelationshipGraph()
    jane = graph.add_node(ContactNode(full_name="Jane Smith"))
    graph.add_relationship(jane, "name:Alex Smith", "child")
    alex = graph.add_node(ContactNode(full_name="Alex Smith", uid=ALEX_UID))
    [edge] = graph.get_relationships(jane)
    assert edge.target_id == alex
    assert graph.stats().unresolved_edge_count == 0


def test_unresolved_edges_are_reported_as_errors():
    graph, jane, _, _ = make_graph()
    graph.add_relationship(jane, "name:Nobody", "friend")
    [error] = graph.unresolved_errors()
    assert isinstance(error, StructuralMismatchError)
    assert error.to_dict()["code"] == "GRF_UNRESOLVED"
    assert error.details == {"source_id": jane, "target_id": "name:Nobody", "kind": "friend"}
    graph.add_node(ContactNode(full_name="Nobody"))
    assert graph.unresolved_errors() == []


def test_check_consistency_reports_missing_reciprocals():
    graph, jane, alex, sam = make_graph()
    graph.add_relationship(alex, jane, "mother")
    graph.add_relationship(jane, alex, "son")
    graph.add_relationship(sam, jane, "friend")
    graph.add_relationship(sam, alex, "boss")
    [issue] = graph.check_consistency()
    assert issue.source_id == sam
    assert issue.target_id == jane
    assert issue.expected_reciprocal == "friend"
    assert graph.stats().edge_count == 4


def test_to_related_fields_indexes_repeated_kinds():
    graph, jane, alex, sam = make_graph()
    graph.add_relationship(jane, alex, "friend")
    graph.add_relationship(jane, sam, "friend")
    graph.add_relationship(jane, "name:Pat", "cousin")
    assert graph.to_related_fields(jane) == {
        "RELATED[friend]": "uid:alex-1",
        "RELATED[1:friend]": "name:Sam Lee",
        "RELATED[cousin]": "name:Pat",
    }


def test_build_graph_resolves_forward_references():
    nodes = [
        ContactNode(full_name="Jane Smith", uid=JANE_UID),
        ContactNode(full_name="Alex Smith", uid=ALEX_UID),
    ]
    edges = [
        (f"urn:uuid:{JANE_UID}", "name:Alex Smith", "son"),
        (f"urn:uuid:{ALEX_UID}", f"urn:uuid:{JANE_UID}", "mother"),
    ]
    graph = build_graph(nodes, edges)
    stats = graph.stats()
    assert (stats.node_count, stats.edge_count, stats.unresolved_edge_count) == (2, 2, 0)
    assert graph.get_relationships(f"urn:uuid:{JANE_UID}")[0].target_id == f"urn:uuid:{ALEX_UID}"
    assert graph.check_consistency() == []


def test_graph_from_records():
    records = [
        {
            "FN": "Jane Smith",
            "UID": f"urn:uuid:{JANE_UID}",
            "GENDER": "F",
            "RELATED[child]": f"urn:uuid:{ALEX_UID}",
            "RELATED[friend]": "Not A Reference",
        },
        {"FN": "Alex Smith", "UID": ALEX_UID, "RELATED[parent]": "name:Jane Smith"},
        {"TEL": "123"},
    ]
    graph = graph_from_records(records)
    jane = f"urn:uuid:{JANE_UID}"
    alex = f"urn:uuid:{ALEX_UID}"
    assert graph.get_node(jane).gender == Gender.FEMALE
    assert graph.get_node(jane).uid == JANE_UID
    assert [e.target_id for e in graph.get_relationships(jane)] == [alex]
    assert [e.target_id for e in graph.get_relationships(alex)] == [jane]
    assert graph.stats().node_count == 2


def test_graph_singleton():
    first = get_graph()
    assert get_graph() is first
    reset_graph()
    assert get_graph() is not first
