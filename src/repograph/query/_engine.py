"""QueryEngine: natural-language queries routed to per-intent graph searches."""

from __future__ import annotations

import dataclasses
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from repograph.context.excerpt import build_excerpt, extract_unit_code
from repograph.graph.types import FileData, NodeType, Relationship
from repograph.query.classifier import IntentClassifier, QueryType
from repograph.query.keywords import extract_keywords
from repograph.query.ranker import (
    calculate_pattern_relevance,
    calculate_relevance,
    identify_pattern_type,
)
from repograph.query.types import NodeContext, QueryResult, RankedResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repograph.graph.protocols import GraphStore
    from repograph.graph.types import Node
    from repograph.query.keywords import Keyword

logger = logging.getLogger(__name__)

MAX_RESULTS = 50
MAX_SNIPPET_LENGTH = 2000
MAX_SUGGESTIONS = 10
GENERAL_SEARCH_LIMIT = 20
RELATIONSHIP_SEED_LIMIT = 10
CONTEXT_DEPTH = 2
PATTERN_CONTEXT_DEPTH = 3


class QueryEngine:
    """Answers natural-language queries against an entity graph.

    A query is classified into a :class:`QueryType`, reduced to stemmed
    keywords, and dispatched to the matching ``search_*`` method.  Every
    hit carries its traversal context and, where the owning file is known,
    a code snippet.  Results are ranked by relevance (stable for ties) and
    capped at :data:`MAX_RESULTS`.

    The engine holds no state of its own beyond the trained classifier; it
    reads the graph on every call.
    """

    def __init__(self, graph: GraphStore, *, classifier: IntentClassifier | None = None) -> None:
        self._graph = graph
        self._classifier = classifier or IntentClassifier()

    @property
    def graph(self) -> GraphStore:
        return self._graph

    @property
    def classifier(self) -> IntentClassifier:
        return self._classifier

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def query(self, text: str) -> QueryResult:
        """Classify, search, attach code context, and rank."""
        query_type = self._classifier.classify(text)
        keywords = extract_keywords(text)
        logger.debug("Query %r classified as %s with %d keywords", text, query_type, len(keywords))

        if query_type == QueryType.FUNCTION_SEARCH:
            results = self.search_functions(keywords)
        elif query_type == QueryType.CLASS_SEARCH:
            results = self.search_classes(keywords)
        elif query_type == QueryType.FILE_SEARCH:
            results = self.search_files(keywords)
        elif query_type == QueryType.PATTERN_SEARCH:
            results = self.search_patterns(text, keywords)
        elif query_type == QueryType.RELATIONSHIP_SEARCH:
            results = self.search_relationships(keywords)
        elif query_type == QueryType.DOCUMENTATION_SEARCH:
            results = self.search_documentation(keywords)
        elif query_type == QueryType.IMPORT_SEARCH:
            results = self.search_imports(keywords)
        else:
            results = self.general_search(keywords)

        results = self.enhance_with_code_context(results)
        return QueryResult(
            query=text,
            query_type=query_type,
            keywords=tuple(keywords),
            results=tuple(rank_results(results)),
            created_at=datetime.now(UTC).isoformat(),
        )

    # ------------------------------------------------------------------
    # Per-intent searches
    # ------------------------------------------------------------------

    def search_functions(self, keywords: Sequence[Keyword]) -> list[RankedResult]:
        return self._score_nodes(self._graph.find_nodes_by_type(NodeType.FUNCTION), keywords)

    def search_classes(self, keywords: Sequence[Keyword]) -> list[RankedResult]:
        """Matching classes, each with the functions it defines."""
        return [
            dataclasses.replace(
                result,
                methods=tuple(
                    n for n in self._targets(result.node.id, Relationship.DEFINES)
                    if n.type == NodeType.FUNCTION
                ),
            )
            for result in self._score_nodes(self._graph.find_nodes_by_type(NodeType.CLASS), keywords)
        ]

    def search_files(self, keywords: Sequence[Keyword]) -> list[RankedResult]:
        """Matching files, each with the entities it defines."""
        return [
            dataclasses.replace(
                result, contains=tuple(self._targets(result.node.id, Relationship.DEFINES))
            )
            for result in self._score_nodes(self._graph.find_nodes_by_type(NodeType.FILE), keywords)
        ]

    def search_documentation(self, keywords: Sequence[Keyword]) -> list[RankedResult]:
        candidates = [
            *self._graph.find_nodes_by_type(NodeType.DOCUMENTATION),
            *self._graph.find_nodes_by_type(NodeType.HEADING),
        ]
        return self._score_nodes(candidates, keywords)

    def search_imports(self, keywords: Sequence[Keyword]) -> list[RankedResult]:
        """Matching imports and exports, each with the files it references."""
        candidates = [
            *self._graph.find_nodes_by_type(NodeType.IMPORT),
            *self._graph.find_nodes_by_type(NodeType.EXPORT),
        ]
        return [
            dataclasses.replace(
                result, references=tuple(self._targets(result.node.id, Relationship.REFERENCES))
            )
            for result in self._score_nodes(candidates, keywords)
        ]

    def search_patterns(self, query: str, keywords: Sequence[Keyword]) -> list[RankedResult]:
        """Functions, classes and files scored with pattern indicators.

        Each hit carries the code that implements it and the pattern family
        the query asks about.
        """
        candidates = [
            *self._graph.find_nodes_by_type(NodeType.FUNCTION),
            *self._graph.find_nodes_by_type(NodeType.CLASS),
            *self._graph.find_nodes_by_type(NodeType.FILE),
        ]
        pattern_type = identify_pattern_type(query)
        results: list[RankedResult] = []
        for node in candidates:
            relevance = calculate_pattern_relevance(node, query, keywords)
            if relevance <= 0:
                continue
            if isinstance(node.data, FileData):
                snippet = build_excerpt(node.data, keywords, MAX_SNIPPET_LENGTH) or None
            else:
                snippet = self._unit_snippet(node)
            results.append(
                RankedResult(
                    node=node,
                    relevance=relevance,
                    context=self.get_node_context(node.id, PATTERN_CONTEXT_DEPTH),
                    code_snippet=snippet,
                    pattern_type=pattern_type,
                )
            )
        return results

    def search_relationships(self, keywords: Sequence[Keyword]) -> list[RankedResult]:
        """Edges around the best :meth:`search_nodes` hits.

        One result per edge: ``node`` is the edge source, ``target`` its
        target, and ``relevance`` that of the hit the edge was found from.
        """
        phrase = " ".join(k.original for k in keywords)
        results: list[RankedResult] = []
        for hit in self._graph.search_nodes(phrase)[:RELATIONSHIP_SEED_LIMIT]:
            relevance = calculate_relevance(hit, keywords)
            for edge in self._graph.get_node_connections(hit.id):
                if not (self._graph.has_node(edge.source_id) and self._graph.has_node(edge.target_id)):
                    continue
                results.append(
                    RankedResult(
                        node=self._graph.get_node(edge.source_id),
                        relevance=relevance,
                        edge=edge,
                        target=self._graph.get_node(edge.target_id),
                    )
                )
        return results

    def general_search(self, keywords: Sequence[Keyword]) -> list[RankedResult]:
        """Top :meth:`search_nodes` hits for the keyword phrase."""
        phrase = " ".join(k.original for k in keywords)
        return [
            RankedResult(
                node=node,
                relevance=calculate_relevance(node, keywords),
                context=self.get_node_context(node.id),
            )
            for node in self._graph.search_nodes(phrase)[:GENERAL_SEARCH_LIMIT]
        ]

    # ------------------------------------------------------------------
    # Context and code
    # ------------------------------------------------------------------

    def get_node_context(self, node_id: str, depth: int = CONTEXT_DEPTH) -> NodeContext:
        """The node, what a depth-limited traversal reaches, and its edges."""
        primary = self._graph.get_node(node_id)
        related = [n for n in self._graph.traverse(node_id, depth) if n.id != node_id]
        return NodeContext(
            primary=primary,
            related=tuple(related),
            connections=tuple(self._graph.get_node_connections(node_id)),
        )

    def enhance_with_code_context(self, results: Sequence[RankedResult]) -> list[RankedResult]:
        """Attach a code snippet to every result that lacks one.

        Files get the head of their content; other nodes get the whole
        function or class body from their owning file.
        """
        enhanced: list[RankedResult] = []
        for result in results:
            if result.code_snippet is None:
                node = result.node
                if isinstance(node.data, FileData):
                    snippet = node.data.raw[:MAX_SNIPPET_LENGTH] or None
                else:
                    snippet = self._unit_snippet(node)
                if snippet is not None:
                    result = dataclasses.replace(result, code_snippet=snippet)
            enhanced.append(result)
        return enhanced

    def get_suggestions(self, prefix: str) -> list[str]:
        """Up to ten names starting with *prefix* or paths containing it."""
        lowered = prefix.lower()
        suggestions: dict[str, None] = {}
        for node in self._graph.nodes():
            name = getattr(node.data, "name", None)
            if name and name.lower().startswith(lowered):
                suggestions[name] = None
            path = getattr(node.data, "path", None)
            if path and lowered in path.lower():
                suggestions[path] = None
        return list(suggestions)[:MAX_SUGGESTIONS]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _score_nodes(self, nodes: Sequence[Node], keywords: Sequence[Keyword]) -> list[RankedResult]:
        results: list[RankedResult] = []
        for node in nodes:
            relevance = calculate_relevance(node, keywords)
            if relevance > 0:
                results.append(
                    RankedResult(
                        node=node, relevance=relevance, context=self.get_node_context(node.id)
                    )
                )
        return results

    def _targets(self, node_id: str, relationship: Relationship) -> list[Node]:
        """Existing targets of *node_id*'s outgoing *relationship* edges."""
        return [
            self._graph.get_node(edge.target_id)
            for edge in self._graph.get_node_connections(node_id, relationship)
            if edge.source_id == node_id and self._graph.has_node(edge.target_id)
        ]

    def _unit_snippet(self, node: Node) -> str | None:
        """Body of a function or class, cut from its owning file."""
        file_path = getattr(node.data, "file", None)
        line = getattr(node.data, "line", None)
        if not file_path:
            return None
        file_node = self._graph.find_file(file_path)
        if file_node is None or not isinstance(file_node.data, FileData) or not file_node.data.raw:
            logger.debug("No file content for %s (%s)", node.id, file_path)
            return None
        if line is None:
            return None
        return extract_unit_code(file_node.data, line) or None


def rank_results(results: Sequence[RankedResult], limit: int = MAX_RESULTS) -> list[RankedResult]:
    """Best first (ties keep their order), at most *limit*."""
    return sorted(results, key=lambda r: r.relevance, reverse=True)[:limit]
