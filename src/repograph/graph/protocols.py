"""Graph protocols: runtime-checkable interfaces for entity graph backends.

Split into a core protocol and an opt-in persistence protocol so that
alternative backends can implement just the core.  Capability protocols are
detected via ``isinstance()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

    from repograph.graph.types import Edge, Node, NodeData, NodeType, Relationship
    from repograph.records import FileRecord


@runtime_checkable
class GraphStore(Protocol):
    """Core entity graph interface: insertion, lookup, traversal, snapshots."""

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def add_node(
        self, node_type: NodeType | str, data: NodeData, *, node_id: str | None = None
    ) -> str: ...
    def add_edge(
        self,
        source_id: str,
        target_id: str,
        relationship: Relationship | str,
        metadata: Mapping[str, Any] | None = None,
        *,
        edge_id: str | None = None,
    ) -> str: ...
    def add_entities(self, record: FileRecord, parent_id: str | None = None) -> str: ...

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> Node: ...
    def has_node(self, node_id: str) -> bool: ...
    def nodes(self) -> list[Node]: ...
    def edges(self) -> list[Edge]: ...
    def find_nodes_by_type(self, node_type: NodeType | str) -> list[Node]: ...
    def find_nodes_by_property(
        self, key: str, value: Any, node_type: NodeType | str | None = None
    ) -> list[Node]: ...
    def find_file(self, path: str) -> Node | None: ...
    def get_node_connections(
        self, node_id: str, relationship: Relationship | str | None = None
    ) -> list[Edge]: ...

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def traverse(
        self, start_id: str, max_depth: int = 3, visited: set[str] | None = None
    ) -> list[Node]: ...
    def search_nodes(self, query: str) -> list[Node]: ...

    # ------------------------------------------------------------------
    # Graph-level
    # ------------------------------------------------------------------

    @property
    def node_count(self) -> int: ...
    @property
    def edge_count(self) -> int: ...
    def clear(self) -> None: ...
    def export(self) -> dict[str, Any]: ...
    def import_(self, blob: Mapping[str, Any]) -> None: ...


@runtime_checkable
class SupportsPersistence(Protocol):
    """Opt-in: SQL persistence."""

    async def to_sql(self, session: AsyncSession) -> None: ...
    async def from_sql(self, session: AsyncSession) -> None: ...
