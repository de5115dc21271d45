"""EntityGraph: rustworkx-backed entity graph implementing the GraphStore protocol."""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import rustworkx

from repograph.exceptions import SnapshotError
from repograph.graph.types import (
    ClassData,
    CodeBlockData,
    DocumentationData,
    Edge,
    ExportData,
    FileData,
    FunctionData,
    GraphStatistics,
    HeadingData,
    ImportData,
    Node,
    NodeData,
    NodeType,
    PathData,
    Relationship,
    RepositoryData,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from repograph.records import FileRecord, PathRecord, RepositoryRecord

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

_NODE_ID_RE = re.compile(r"^node_(\d+)$")
_EDGE_ID_RE = re.compile(r"^edge_(\d+)$")


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _id_number(pattern: re.Pattern[str], value: str) -> int:
    match = pattern.match(value)
    return int(match.group(1)) if match else 0


class EntityGraph:
    """Directed multigraph of code entities.

    Wraps a ``rustworkx.PyDiGraph`` whose node payloads are :class:`Node`
    objects and whose edge payloads are :class:`Edge` objects.  Nodes and
    edges are only ever added; the sole destructive operation is
    :meth:`clear` (also performed by :meth:`import_`).

    Implements the ``GraphStore`` and ``SupportsPersistence`` protocols.
    """

    def __init__(self) -> None:
        self._graph: rustworkx.PyDiGraph = rustworkx.PyDiGraph(multigraph=True)
        self._id_to_idx: dict[str, int] = {}
        self._edge_order: dict[str, int] = {}
        self._repositories: dict[str, str] = {}
        self._node_counter = 0
        self._edge_counter = 0

    # ------------------------------------------------------------------
    # Node operations
    # ------------------------------------------------------------------

    def add_node(
        self,
        node_type: NodeType | str,
        data: NodeData,
        *,
        node_id: str | None = None,
    ) -> str:
        """Add a node and return its id.

        A fresh ``node_<n>`` id is assigned unless *node_id* is given.  A
        caller-supplied id that already exists replaces the existing node.
        """
        if node_id is None:
            self._node_counter += 1
            node_id = f"node_{self._node_counter}"
        else:
            self._node_counter = max(self._node_counter, _id_number(_NODE_ID_RE, node_id))

        node = Node(id=node_id, type=NodeType(node_type), data=data, created_at=_now())
        existing = self._id_to_idx.get(node_id)
        if existing is not None:
            logger.warning("Node id %r already exists; replacing it", node_id)
            self._graph[existing] = node
        else:
            self._id_to_idx[node_id] = self._graph.add_node(node)
        return node_id

    def get_node(self, node_id: str) -> Node:
        """Return the node.  Raises ``KeyError`` if missing."""
        return self._graph[self._require_node(node_id)]

    def has_node(self, node_id: str) -> bool:
        """Return whether *node_id* is in the graph."""
        return node_id in self._id_to_idx

    def nodes(self) -> list[Node]:
        """Return all nodes in insertion order."""
        return [self._graph[idx] for idx in self._id_to_idx.values()]

    # ------------------------------------------------------------------
    # Edge operations
    # ------------------------------------------------------------------

    def add_edge(
        self,
        source_id: str,
        target_id: str,
        relationship: Relationship | str,
        metadata: Mapping[str, Any] | None = None,
        *,
        edge_id: str | None = None,
    ) -> str:
        """Add a directed edge and return its id.

        Both endpoints must already exist; a missing endpoint raises
        ``KeyError`` rather than leaving a dangling edge.
        """
        src_idx = self._require_node(source_id)
        tgt_idx = self._require_node(target_id)

        if edge_id is None:
            self._edge_counter += 1
            edge_id = f"edge_{self._edge_counter}"
        else:
            self._edge_counter = max(self._edge_counter, _id_number(_EDGE_ID_RE, edge_id))

        edge = Edge(
            id=edge_id,
            source_id=source_id,
            target_id=target_id,
            relationship=Relationship(relationship),
            metadata=dict(metadata or {}),
            created_at=_now(),
        )
        self._graph.add_edge(src_idx, tgt_idx, edge)
        self._edge_order[edge_id] = len(self._edge_order)
        return edge_id

    def edges(self) -> list[Edge]:
        """Return all edges in insertion order."""
        return sorted(self._graph.edges(), key=self._edge_position)

    def get_node_connections(
        self,
        node_id: str,
        relationship: Relationship | str | None = None,
    ) -> list[Edge]:
        """Edges incident to *node_id* in either direction, in insertion order.

        Returns ``[]`` for an unknown node.
        """
        idx = self._id_to_idx.get(node_id)
        if idx is None:
            return []
        seen: set[str] = set()
        incident: list[Edge] = []
        for _src, _tgt, edge in [*self._graph.out_edges(idx), *self._graph.in_edges(idx)]:
            if edge.id in seen:
                continue
            if relationship is not None and edge.relationship != relationship:
                continue
            seen.add(edge.id)
            incident.append(edge)
        incident.sort(key=self._edge_position)
        return incident

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_nodes_by_type(self, node_type: NodeType | str) -> list[Node]:
        """All nodes of *node_type*, in insertion order."""
        return [node for node in self.nodes() if node.type == node_type]

    def find_nodes_by_property(
        self,
        key: str,
        value: Any,
        node_type: NodeType | str | None = None,
    ) -> list[Node]:
        """Nodes whose ``data.<key>`` equals *value* exactly."""
        _missing = object()
        result: list[Node] = []
        for node in self.nodes():
            if node_type is not None and node.type != node_type:
                continue
            if getattr(node.data, key, _missing) == value:
                result.append(node)
        return result

    def find_file(self, path: str) -> Node | None:
        """Return the first file node whose path is *path*, or ``None``."""
        matches = self.find_nodes_by_property("path", path, NodeType.FILE)
        return matches[0] if matches else None

    # ------------------------------------------------------------------
    # Traversal and search
    # ------------------------------------------------------------------

    def traverse(
        self,
        start_id: str,
        max_depth: int = 3,
        visited: set[str] | None = None,
    ) -> list[Node]:
        """Depth-first walk treating edges as undirected.

        Each node appears at most once per call (cycle-safe).  Returns ``[]``
        when *max_depth* is 0, when *start_id* was already visited, or when it
        does not exist.
        """
        if visited is None:
            visited = set()
        if max_depth <= 0 or start_id in visited:
            return []
        visited.add(start_id)
        idx = self._id_to_idx.get(start_id)
        if idx is None:
            return []

        result: list[Node] = [self._graph[idx]]
        for edge in self.get_node_connections(start_id):
            next_id = edge.target_id if edge.source_id == start_id else edge.source_id
            result.extend(self.traverse(next_id, max_depth - 1, visited))
        return result

    def search_nodes(self, query: str) -> list[Node]:
        """Rank nodes by a simple textual relevance to *query*.

        Relevance is 2 if the node type contains the query, plus 1 if the
        serialized data contains it, plus 3 per whole-word occurrence.  Only
        nodes with a positive relevance are returned, best first; ties keep
        insertion order.
        """
        needle = query.lower()
        if not needle:
            return []
        word = re.compile(rf"\b{re.escape(needle)}\b")

        scored: list[tuple[int, Node]] = []
        for node in self.nodes():
            relevance = 0
            if needle in str(node.type):
                relevance += 2
            data_str = json.dumps(
                node.to_dict()["data"], separators=(",", ":"), ensure_ascii=False
            ).lower()
            if needle in data_str:
                relevance += 1
                relevance += 3 * len(word.findall(data_str))
            if relevance > 0:
                scored.append((relevance, node))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [node for _, node in scored]

    # ------------------------------------------------------------------
    # Population from entity records
    # ------------------------------------------------------------------

    def add_entities(self, record: FileRecord, parent_id: str | None = None) -> str:
        """Populate the graph from one parsed file and return the file node id."""
        path = record.path
        file_id = self.add_node(
            NodeType.FILE,
            FileData(
                path=path,
                extension=record.extension,
                size=record.size,
                language=record.language,
                raw=record.raw,
                functions=record.functions,
                classes=record.classes,
                imports=record.imports,
                exports=record.exports,
                comments=record.comments,
            ),
        )
        if parent_id is not None:
            self.add_edge(parent_id, file_id, Relationship.CONTAINS)

        for func in record.functions:
            func_id = self.add_node(
                NodeType.FUNCTION,
                FunctionData(name=func.name, file=path, line=func.line, kind=func.kind),
            )
            self.add_edge(file_id, func_id, Relationship.DEFINES)

        for cls in record.classes:
            class_id = self.add_node(
                NodeType.CLASS,
                ClassData(
                    name=cls.name,
                    file=path,
                    line=cls.line,
                    extends=cls.extends,
                    implements=cls.implements,
                ),
            )
            self.add_edge(file_id, class_id, Relationship.DEFINES)
            if cls.extends:
                # Only classes already in the graph are linked.
                for parent in self.find_nodes_by_property("name", cls.extends, NodeType.CLASS):
                    if parent.id != class_id:
                        self.add_edge(class_id, parent.id, Relationship.EXTENDS)

        for module in record.imports:
            import_id = self.add_node(NodeType.IMPORT, ImportData(module=module, file=path))
            self.add_edge(file_id, import_id, Relationship.IMPORTS)
            for module_file in self.find_nodes_by_property("path", module, NodeType.FILE):
                self.add_edge(import_id, module_file.id, Relationship.REFERENCES)

        for name in record.exports:
            export_id = self.add_node(NodeType.EXPORT, ExportData(name=name, file=path))
            self.add_edge(file_id, export_id, Relationship.EXPORTS)

        if record.comments:
            doc_id = self.add_node(
                NodeType.DOCUMENTATION,
                DocumentationData(file=path, comments=record.comments),
            )
            self.add_edge(file_id, doc_id, Relationship.DOCUMENTS)

        for heading in record.headings:
            heading_id = self.add_node(
                NodeType.HEADING,
                HeadingData(text=heading.text, level=heading.level, file=path, line=heading.line),
            )
            self.add_edge(file_id, heading_id, Relationship.CONTAINS)

        for block in record.code_blocks:
            block_id = self.add_node(
                NodeType.CODEBLOCK,
                CodeBlockData(language=block.language, file=path, line=block.line, code=block.code),
            )
            self.add_edge(file_id, block_id, Relationship.CONTAINS)

        logger.debug(
            "Added %s: %d functions, %d classes, %d imports",
            path,
            len(record.functions),
            len(record.classes),
            len(record.imports),
        )
        return file_id

    def add_file(self, record: FileRecord) -> str:
        """Add a standalone file (no parent group)."""
        return self.add_entities(record, None)

    def add_repository(self, record: RepositoryRecord) -> str:
        """Add a repository node and all of its files."""
        repo_id = self.add_node(
            NodeType.REPOSITORY,
            RepositoryData(
                url=record.url,
                owner=record.owner,
                name=record.name,
                branch=record.branch,
                metadata=dict(record.metadata),
            ),
        )
        self._repositories[record.url] = repo_id
        for file_record in record.files:
            self.add_entities(file_record, repo_id)
        return repo_id

    def add_path(self, record: PathRecord) -> str:
        """Add a path node and all of its files."""
        path_id = self.add_node(
            NodeType.PATH,
            PathData(path=record.path, repository=record.repository, kind=record.kind),
        )
        for file_record in record.files:
            self.add_entities(file_record, path_id)
        return path_id

    def repository_id(self, url: str) -> str | None:
        """Return the node id of the repository added under *url*."""
        return self._repositories.get(url)

    # ------------------------------------------------------------------
    # Graph-level
    # ------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return self._graph.num_nodes()

    @property
    def edge_count(self) -> int:
        """Number of edges in the graph."""
        return self._graph.num_edges()

    @property
    def repository_count(self) -> int:
        """Number of repositories added."""
        return len(self._repositories)

    def get_statistics(self) -> GraphStatistics:
        """Totals plus per-type and per-relationship counts."""
        node_types = Counter(str(node.type) for node in self.nodes())
        relationship_types = Counter(str(edge.relationship) for edge in self.edges())
        return GraphStatistics(
            total_nodes=self.node_count,
            total_edges=self.edge_count,
            node_types=dict(node_types),
            relationship_types=dict(relationship_types),
            repositories=self.repository_count,
        )

    def clear(self) -> None:
        """Drop every node, edge, and repository mapping and reset id counters."""
        self._graph = rustworkx.PyDiGraph(multigraph=True)
        self._id_to_idx = {}
        self._edge_order = {}
        self._repositories = {}
        self._node_counter = 0
        self._edge_counter = 0

    def __repr__(self) -> str:
        return f"EntityGraph(nodes={self.node_count}, edges={self.edge_count})"

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def export(self) -> dict[str, Any]:
        """Return a JSON-serializable snapshot of the whole graph."""
        return {
            "version": SNAPSHOT_VERSION,
            "nodes": [node.to_dict() for node in self.nodes()],
            "edges": [edge.to_dict() for edge in self.edges()],
            "repositories": [[url, node_id] for url, node_id in self._repositories.items()],
            "metadata": {
                "node_count": self.node_count,
                "edge_count": self.edge_count,
                "repository_count": self.repository_count,
                "timestamp": _now(),
            },
        }

    def import_(self, blob: Mapping[str, Any]) -> None:
        """Replace the graph with the snapshot in *blob*.

        Id counters are restored so that ids created afterwards never collide
        with restored ones.  Edges with a missing endpoint are skipped.
        """
        if not isinstance(blob, Mapping):
            msg = f"Snapshot must be a mapping, got {type(blob).__name__}"
            raise SnapshotError(msg)

        self.clear()
        for raw in blob.get("nodes") or []:
            try:
                node = Node.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                msg = f"Invalid node in snapshot: {raw!r}"
                raise SnapshotError(msg) from exc
            self._restore_node(node)

        for raw in blob.get("edges") or []:
            try:
                edge = Edge.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                msg = f"Invalid edge in snapshot: {raw!r}"
                raise SnapshotError(msg) from exc
            self._restore_edge(edge)

        repositories = blob.get("repositories")
        if repositories:
            for url, node_id in repositories:
                self._repositories[str(url)] = str(node_id)
        else:
            self._reindex_repositories()

    def save(self, file_path: str | Path) -> Path:
        """Write the snapshot as JSON to *file_path*."""
        target = Path(file_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.export(), indent=2, ensure_ascii=False), encoding="utf-8")
        return target

    def load(self, file_path: str | Path) -> dict[str, Any]:
        """Replace the graph with the JSON snapshot at *file_path*; return its metadata."""
        try:
            blob = json.loads(Path(file_path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"Snapshot {file_path} is not valid JSON"
            raise SnapshotError(msg) from exc
        self.import_(blob)
        return dict(blob.get("metadata") or {})

    # ------------------------------------------------------------------
    # Persistence (SupportsPersistence)
    # ------------------------------------------------------------------

    async def to_sql(self, session: AsyncSession) -> None:
        """Persist the graph to ``repograph_nodes`` / ``repograph_edges``.

        Full-sync strategy: upsert all current rows, delete rows that are no
        longer present in memory.  Caller manages the transaction.
        """
        from sqlalchemy import select

        from repograph.models import GraphEdgeRow, GraphNodeRow

        node_rows = {
            node.id: GraphNodeRow(
                id=node.id,
                position=position,
                type=str(node.type),
                data_json=json.dumps(node.to_dict()["data"], ensure_ascii=False),
                created_at=node.created_at,
            )
            for position, node in enumerate(self.nodes())
        }
        edge_rows = {
            edge.id: GraphEdgeRow(
                id=edge.id,
                position=position,
                source_id=edge.source_id,
                target_id=edge.target_id,
                relationship=str(edge.relationship),
                metadata_json=json.dumps(edge.metadata, ensure_ascii=False),
                created_at=edge.created_at,
            )
            for position, edge in enumerate(self.edges())
        }

        for model, rows in ((GraphEdgeRow, edge_rows), (GraphNodeRow, node_rows)):
            result = await session.execute(select(model.id))
            stale_ids = {row[0] for row in result.all()} - set(rows)
            for stale_id in stale_ids:
                existing = await session.get(model, stale_id)
                if existing:
                    await session.delete(existing)

        for row in [*node_rows.values(), *edge_rows.values()]:
            await session.merge(row)
        await session.flush()

    async def from_sql(self, session: AsyncSession) -> None:
        """Load graph state from the database, replacing in-memory state."""
        from sqlalchemy import select

        from repograph.models import GraphEdgeRow, GraphNodeRow

        self.clear()
        result = await session.execute(select(GraphNodeRow).order_by(GraphNodeRow.position))
        for row in result.scalars().all():
            self._restore_node(
                Node.from_dict(
                    {
                        "id": row.id,
                        "type": row.type,
                        "data": json.loads(row.data_json),
                        "created_at": row.created_at,
                    }
                )
            )

        result = await session.execute(select(GraphEdgeRow).order_by(GraphEdgeRow.position))
        for row in result.scalars().all():
            self._restore_edge(
                Edge(
                    id=row.id,
                    source_id=row.source_id,
                    target_id=row.target_id,
                    relationship=Relationship(row.relationship),
                    metadata=json.loads(row.metadata_json),
                    created_at=row.created_at,
                )
            )
        self._reindex_repositories()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_node(self, node_id: str) -> int:
        """Return the rustworkx index for *node_id*, or raise ``KeyError``."""
        try:
            return self._id_to_idx[node_id]
        except KeyError:
            msg = f"Node not found: {node_id!r}"
            raise KeyError(msg) from None

    def _edge_position(self, edge: Edge) -> int:
        return self._edge_order.get(edge.id, len(self._edge_order))

    def _restore_node(self, node: Node) -> None:
        existing = self._id_to_idx.get(node.id)
        if existing is not None:
            self._graph[existing] = node
        else:
            self._id_to_idx[node.id] = self._graph.add_node(node)
        self._node_counter = max(self._node_counter, _id_number(_NODE_ID_RE, node.id))

    def _restore_edge(self, edge: Edge) -> None:
        src_idx = self._id_to_idx.get(edge.source_id)
        tgt_idx = self._id_to_idx.get(edge.target_id)
        if src_idx is None or tgt_idx is None:
            logger.warning(
                "Skipping edge %s: endpoint %s or %s not found",
                edge.id,
                edge.source_id,
                edge.target_id,
            )
            return
        self._graph.add_edge(src_idx, tgt_idx, edge)
        self._edge_order[edge.id] = len(self._edge_order)
        self._edge_counter = max(self._edge_counter, _id_number(_EDGE_ID_RE, edge.id))

    def _reindex_repositories(self) -> None:
        self._repositories = {
            node.data.url: node.id for node in self.find_nodes_by_type(NodeType.REPOSITORY)
        }
