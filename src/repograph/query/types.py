"""Query layer data types: ranked results and their graph context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repograph.graph.types import Edge, Node
    from repograph.query.classifier import QueryType
    from repograph.query.keywords import Keyword


@dataclass(frozen=True, slots=True)
class NodeContext:
    """A node with its traversal neighbourhood.

    Attributes:
        primary: The node itself.
        related: Nodes reached by traversal, excluding *primary*.
        connections: Edges incident to *primary*, in insertion order.
    """

    primary: Node
    related: tuple[Node, ...] = ()
    connections: tuple[Edge, ...] = ()


@dataclass(frozen=True, slots=True)
class RankedResult:
    """A single scored hit from :meth:`QueryEngine.query`.

    Attributes:
        node: The matched node.  For relationship searches this is the
            edge's source.
        relevance: Score from the ranker (higher is more relevant).
        context: Traversal neighbourhood of *node*.
        code_snippet: Source text for the hit, when its file is known.
        methods: Functions a class defines (class searches).
        contains: Entities a file defines (file searches).
        references: Files an import or export resolves to (import searches).
        pattern_type: Pattern family of the query (pattern searches).
        edge: The relationship found (relationship searches).
        target: The edge's target node (relationship searches).
    """

    node: Node
    relevance: int
    context: NodeContext | None = None
    code_snippet: str | None = None
    methods: tuple[Node, ...] = ()
    contains: tuple[Node, ...] = ()
    references: tuple[Node, ...] = ()
    pattern_type: str | None = None
    edge: Edge | None = None
    target: Node | None = None

    @property
    def id(self) -> str:
        return self.node.id


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Outcome of a natural-language query."""

    query: str
    query_type: QueryType
    keywords: tuple[Keyword, ...]
    results: tuple[RankedResult, ...]
    created_at: str = ""

    def __len__(self) -> int:
        return len(self.results)

    @property
    def nodes(self) -> list[Node]:
        return [r.node for r in self.results]
