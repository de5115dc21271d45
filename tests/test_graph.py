"""Tests for EntityGraph: typed nodes, labeled edges, traversal and search."""

from __future__ import annotations

import logging

import pytest

from repograph.graph import (
    ClassData,
    EntityGraph,
    FileData,
    FunctionData,
    GraphStore,
    NodeType,
    Relationship,
    SupportsPersistence,
)
from repograph.records import (
    ClassRecord,
    CodeBlockRecord,
    FileRecord,
    HeadingRecord,
    PathRecord,
    RepositoryRecord,
)

# ======================================================================
# Helpers
# ======================================================================


def _names(nodes: list) -> list[str]:
    return [n.label for n in nodes]


# ======================================================================
# TestGraphInit
# ======================================================================


class TestGraphInit:
    def test_empty_graph(self) -> None:
        g = EntityGraph()
        assert g.node_count == 0
        assert g.edge_count == 0
        assert g.nodes() == []
        assert g.edges() == []

    def test_repr_empty(self) -> None:
        assert repr(EntityGraph()) == "EntityGraph(nodes=0, edges=0)"

    def test_implements_protocols(self) -> None:
        g = EntityGraph()
        assert isinstance(g, GraphStore)
        assert isinstance(g, SupportsPersistence)


# ======================================================================
# TestNodeOperations
# ======================================================================


class TestNodeOperations:
    def test_add_node_assigns_sequential_ids(self) -> None:
        g = EntityGraph()
        first = g.add_node(NodeType.FILE, FileData(path="a.py"))
        second = g.add_node(NodeType.FUNCTION, FunctionData(name="f", file="a.py", line=1))
        assert (first, second) == ("node_1", "node_2")

    def test_get_node(self) -> None:
        g = EntityGraph()
        nid = g.add_node(NodeType.FUNCTION, FunctionData(name="f", file="a.py", line=4))
        node = g.get_node(nid)
        assert node.type == NodeType.FUNCTION
        assert node.data.name == "f"
        assert node.created_at

    def test_get_node_not_found(self) -> None:
        with pytest.raises(KeyError, match="Node not found"):
            EntityGraph().get_node("node_99")

    def test_has_node(self) -> None:
        g = EntityGraph()
        nid = g.add_node(NodeType.FILE, FileData(path="a.py"))
        assert g.has_node(nid)
        assert not g.has_node("node_99")

    def test_nodes_in_insertion_order(self) -> None:
        g = EntityGraph()
        for path in ("c.py", "a.py", "b.py"):
            g.add_node(NodeType.FILE, FileData(path=path))
        assert _names(g.nodes()) == ["c.py", "a.py", "b.py"]

    def test_supplied_id_bumps_counter(self) -> None:
        g = EntityGraph()
        g.add_node(NodeType.FILE, FileData(path="a.py"), node_id="node_10")
        assert g.add_node(NodeType.FILE, FileData(path="b.py")) == "node_11"

    def test_supplied_existing_id_replaces_with_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        g = EntityGraph()
        nid = g.add_node(NodeType.FILE, FileData(path="a.py"))
        with caplog.at_level(logging.WARNING, logger="repograph.graph._rustworkx"):
            g.add_node(NodeType.FILE, FileData(path="b.py"), node_id=nid)
        assert g.node_count == 1
        assert g.get_node(nid).data.path == "b.py"
        assert "already exists" in caplog.text


# ======================================================================
# TestEdgeOperations
# ======================================================================


class TestEdgeOperations:
    def test_add_edge(self) -> None:
        g = EntityGraph()
        a = g.add_node(NodeType.FILE, FileData(path="a.py"))
        f = g.add_node(NodeType.FUNCTION, FunctionData(name="f", file="a.py", line=1))
        eid = g.add_edge(a, f, Relationship.DEFINES, {"weight": 1})
        assert eid == "edge_1"
        edge = g.edges()[0]
        assert edge.source_id == a
        assert edge.target_id == f
        assert edge.relationship == Relationship.DEFINES
        assert edge.metadata == {"weight": 1}

    def test_add_edge_missing_endpoint_raises(self) -> None:
        g = EntityGraph()
        a = g.add_node(NodeType.FILE, FileData(path="a.py"))
        with pytest.raises(KeyError, match="Node not found"):
            g.add_edge(a, "node_42", Relationship.DEFINES)
        assert g.edge_count == 0

    def test_parallel_edges_allowed(self) -> None:
        g = EntityGraph()
        a = g.add_node(NodeType.FILE, FileData(path="a.py"))
        b = g.add_node(NodeType.FILE, FileData(path="b.py"))
        g.add_edge(a, b, Relationship.IMPORTS)
        g.add_edge(a, b, Relationship.REFERENCES)
        assert g.edge_count == 2

    def test_unknown_relationship_rejected(self) -> None:
        g = EntityGraph()
        a = g.add_node(NodeType.FILE, FileData(path="a.py"))
        with pytest.raises(ValueError):
            g.add_edge(a, a, "likes")

    def test_connections_both_directions_in_order(self) -> None:
        g = EntityGraph()
        a = g.add_node(NodeType.FILE, FileData(path="a.py"))
        b = g.add_node(NodeType.FILE, FileData(path="b.py"))
        c = g.add_node(NodeType.FILE, FileData(path="c.py"))
        e1 = g.add_edge(b, a, Relationship.IMPORTS)
        e2 = g.add_edge(a, c, Relationship.IMPORTS)
        e3 = g.add_edge(a, b, Relationship.REFERENCES)
        assert [e.id for e in g.get_node_connections(a)] == [e1, e2, e3]
        assert [e.id for e in g.get_node_connections(a, Relationship.REFERENCES)] == [e3]

    def test_connections_unknown_node(self) -> None:
        assert EntityGraph().get_node_connections("node_1") == []


# ======================================================================
# TestLookup
# ======================================================================


class TestLookup:
    def test_find_nodes_by_type(self, graph: EntityGraph) -> None:
        functions = graph.find_nodes_by_type(NodeType.FUNCTION)
        assert [n.data.name for n in functions] == ["login", "logout", "get", "make_store"]

    def test_find_nodes_by_type_string(self, graph: EntityGraph) -> None:
        assert len(graph.find_nodes_by_type("file")) == 2

    def test_find_nodes_by_property(self, graph: EntityGraph) -> None:
        hits = graph.find_nodes_by_property("file", "b.py", NodeType.FUNCTION)
        assert [n.data.name for n in hits] == ["get", "make_store"]

    def test_find_nodes_by_property_exact(self, graph: EntityGraph) -> None:
        assert graph.find_nodes_by_property("name", "log") == []

    def test_find_file(self, graph: EntityGraph) -> None:
        node = graph.find_file("a.js")
        assert node is not None
        assert node.type == NodeType.FILE
        assert graph.find_file("missing.js") is None


# ======================================================================
# TestPopulation
# ======================================================================


class TestPopulation:
    def test_add_entities_structure(self, graph: EntityGraph) -> None:
        file_node = graph.find_file("a.js")
        assert file_node is not None
        rels = [str(e.relationship) for e in graph.get_node_connections(file_node.id)]
        assert rels == ["defines", "defines", "imports", "exports", "exports", "documents"]

    def test_children_carry_file_path(self, graph: EntityGraph) -> None:
        for node_type in (NodeType.FUNCTION, NodeType.IMPORT, NodeType.EXPORT):
            for node in graph.find_nodes_by_type(node_type):
                assert node.data.file in ("a.js", "b.py")

    def test_file_data_fields(self, graph: EntityGraph) -> None:
        node = graph.find_file("b.py")
        assert node is not None
        assert node.data.extension == ".py"
        assert node.data.language == "python"
        assert node.data.size == len(node.data.raw)

    def test_import_references_existing_file(self) -> None:
        g = EntityGraph()
        target = g.add_entities(FileRecord(path="lib/util.js", raw="x"))
        g.add_entities(FileRecord(path="main.js", imports=("lib/util.js", "react")))
        refs = [
            e for e in g.edges() if e.relationship == Relationship.REFERENCES
        ]
        assert len(refs) == 1
        assert refs[0].target_id == target

    def test_extends_links_existing_class(self) -> None:
        g = EntityGraph()
        g.add_entities(FileRecord(path="base.py", classes=(ClassRecord("Base", 1),)))
        g.add_entities(
            FileRecord(path="child.py", classes=(ClassRecord("Child", 1, extends="Base"),))
        )
        extends = [e for e in g.edges() if e.relationship == Relationship.EXTENDS]
        assert len(extends) == 1
        assert g.get_node(extends[0].target_id).data.name == "Base"

    def test_extends_is_not_retroactive(self) -> None:
        g = EntityGraph()
        g.add_entities(
            FileRecord(path="child.py", classes=(ClassRecord("Child", 1, extends="Base"),))
        )
        g.add_entities(FileRecord(path="base.py", classes=(ClassRecord("Base", 1),)))
        assert not [e for e in g.edges() if e.relationship == Relationship.EXTENDS]

    def test_class_does_not_extend_itself(self) -> None:
        g = EntityGraph()
        g.add_entities(
            FileRecord(path="a.py", classes=(ClassRecord("Node", 1, extends="Node"),))
        )
        assert not [e for e in g.edges() if e.relationship == Relationship.EXTENDS]

    def test_headings_and_code_blocks(self) -> None:
        g = EntityGraph()
        file_id = g.add_entities(
            FileRecord(
                path="README.md",
                language="markdown",
                headings=(HeadingRecord("Install", 2, 1),),
                code_blocks=(CodeBlockRecord("bash", "pip install x", 3),),
            )
        )
        contained = [
            g.get_node(e.target_id).type
            for e in g.get_node_connections(file_id, Relationship.CONTAINS)
        ]
        assert contained == [NodeType.HEADING, NodeType.CODEBLOCK]

    def test_no_documentation_without_comments(self) -> None:
        g = EntityGraph()
        g.add_entities(FileRecord(path="a.py", raw="x = 1\n"))
        assert g.find_nodes_by_type(NodeType.DOCUMENTATION) == []

    def test_parent_contains_edge(self) -> None:
        g = EntityGraph()
        path_id = g.add_path(PathRecord(path="src", repository="r"))
        file_id = g.add_entities(FileRecord(path="src/a.py"), path_id)
        edge = g.get_node_connections(path_id)[0]
        assert (edge.source_id, edge.target_id) == (path_id, file_id)
        assert edge.relationship == Relationship.CONTAINS

    def test_add_repository(self) -> None:
        g = EntityGraph()
        repo_id = g.add_repository(
            RepositoryRecord(
                url="https://example.com/acme/app",
                owner="acme",
                name="app",
                files=(FileRecord(path="a.py"), FileRecord(path="b.py")),
            )
        )
        assert g.repository_id("https://example.com/acme/app") == repo_id
        assert g.repository_count == 1
        assert len(g.get_node_connections(repo_id, Relationship.CONTAINS)) == 2

    def test_add_path_with_files(self) -> None:
        g = EntityGraph()
        path_id = g.add_path(PathRecord(path="lib", files=(FileRecord(path="lib/x.js"),)))
        assert g.get_node(path_id).type == NodeType.PATH
        assert g.find_file("lib/x.js") is not None


# ======================================================================
# TestTraverse
# ======================================================================


class TestTraverse:
    def test_includes_start_first(self, graph: EntityGraph) -> None:
        start = graph.find_file("a.js")
        assert start is not None
        result = graph.traverse(start.id, 1)
        assert [n.id for n in result] == [start.id]

    def test_depth_two_reaches_children(self, graph: EntityGraph) -> None:
        start = graph.find_file("a.js")
        assert start is not None
        labels = _names(graph.traverse(start.id, 2))
        assert labels[0] == "a.js"
        assert {"login", "logout", "./crypto"} <= set(labels)

    def test_undirected(self, graph: EntityGraph) -> None:
        login = graph.find_nodes_by_property("name", "login", NodeType.FUNCTION)[0]
        labels = _names(graph.traverse(login.id, 2))
        assert "a.js" in labels

    def test_zero_depth(self, graph: EntityGraph) -> None:
        assert graph.traverse("node_1", 0) == []

    def test_missing_start(self, graph: EntityGraph) -> None:
        assert graph.traverse("node_999") == []

    def test_already_visited_start(self, graph: EntityGraph) -> None:
        assert graph.traverse("node_1", 3, visited={"node_1"}) == []

    def test_cycle_terminates_without_duplicates(self) -> None:
        g = EntityGraph()
        ids = [g.add_node(NodeType.FILE, FileData(path=f"{i}.py")) for i in range(4)]
        for a, b in zip(ids, ids[1:] + ids[:1], strict=True):
            g.add_edge(a, b, Relationship.IMPORTS)
        result = g.traverse(ids[0], 10)
        assert sorted(n.id for n in result) == sorted(ids)


# ======================================================================
# TestSearchNodes
# ======================================================================


class TestSearchNodes:
    def test_empty_query(self, graph: EntityGraph) -> None:
        assert graph.search_nodes("") == []

    def test_no_match(self, graph: EntityGraph) -> None:
        assert graph.search_nodes("zzzqqq") == []

    def test_whole_word_matches_rank_higher(self) -> None:
        g = EntityGraph()
        g.add_node(NodeType.FUNCTION, FunctionData(name="loginHelper", file="x.js", line=1))
        g.add_node(NodeType.FUNCTION, FunctionData(name="login", file="y.js", line=1))
        assert _names(g.search_nodes("login")) == ["login", "loginHelper"]

    def test_type_match_counts(self) -> None:
        g = EntityGraph()
        g.add_node(NodeType.CLASS, ClassData(name="Thing", file="a.py", line=1))
        assert _names(g.search_nodes("class")) == ["Thing"]

    def test_idempotent(self, graph: EntityGraph) -> None:
        first = graph.search_nodes("session")
        assert first
        assert graph.search_nodes("session") == first

    def test_case_insensitive(self, graph: EntityGraph) -> None:
        assert graph.search_nodes("SESSIONSTORE") == graph.search_nodes("sessionstore")


# ======================================================================
# TestGraphLevel
# ======================================================================


class TestGraphLevel:
    def test_statistics(self, graph: EntityGraph) -> None:
        stats = graph.get_statistics()
        assert stats.total_nodes == graph.node_count
        assert stats.total_edges == graph.edge_count
        assert stats.node_types["function"] == 4
        assert stats.node_types["file"] == 2
        assert stats.relationship_types["defines"] == 5
        assert stats.repositories == 0

    def test_clear_resets_counters(self, graph: EntityGraph) -> None:
        graph.clear()
        assert graph.node_count == 0
        assert graph.edge_count == 0
        assert graph.add_node(NodeType.FILE, FileData(path="a.py")) == "node_1"

    def test_repr(self, graph: EntityGraph) -> None:
        assert repr(graph) == f"EntityGraph(nodes={graph.node_count}, edges={graph.edge_count})"
