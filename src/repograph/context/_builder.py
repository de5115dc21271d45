"""ContextBuilder: select graph nodes for a query and assemble a bounded bundle."""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from repograph.context.excerpt import build_excerpt
from repograph.context.formatters import format_markdown, format_text
from repograph.context.types import (
    CodeSnippet,
    ContextBundle,
    ContextFormat,
    ContextOptions,
    ContextSummary,
    EntityLocation,
    FileExcerpt,
    RelationshipTriple,
    SnippetElement,
)
from repograph.graph.types import (
    ClassData,
    CodeBlockData,
    FileData,
    FunctionData,
    NodeType,
)
from repograph.query.keywords import extract_keywords

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repograph.graph.protocols import GraphStore
    from repograph.graph.types import Node
    from repograph.query import QueryEngine
    from repograph.query.keywords import Keyword

logger = logging.getLogger(__name__)

NEIGHBOURS_PER_SEED = 5
NEIGHBOUR_DEPTH = 2
RELATED_IN_EXPLANATION = 5

_OVERVIEW_TERMS = ("overview", "module")


def is_overview_query(query: str) -> bool:
    """Empty queries and ones asking for an overview get a structural sample."""
    lowered = query.strip().lower()
    return not lowered or any(term in lowered for term in _OVERVIEW_TERMS)


class ContextBuilder:
    """Builds LLM-ready context bundles from an entity graph.

    Node selection uses the query engine's ranked results as seeds and
    widens each by a short traversal; empty or overview queries instead
    sample files, functions, classes and exports.  Selected nodes are
    resolved to their owning files, and each file contributes a bounded
    excerpt built from whole code units.
    """

    def __init__(
        self,
        graph: GraphStore,
        engine: QueryEngine | None = None,
        *,
        options: ContextOptions | None = None,
    ) -> None:
        if engine is None:
            from repograph.query import QueryEngine

            engine = QueryEngine(graph)
        self._graph = graph
        self._engine = engine
        self._options = options or ContextOptions()

    @property
    def options(self) -> ContextOptions:
        return self._options

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def build_context(
        self, query: str, options: ContextOptions | None = None
    ) -> ContextBundle | str:
        """Assemble the context bundle for *query*.

        Returns a :class:`ContextBundle` for the ``structured`` format and a
        rendered string for ``text`` and ``markdown``.  A query that matches
        nothing yields an empty bundle, never an exception.
        """
        opts = options or self._options
        keywords = extract_keywords(query)

        if not keywords or is_overview_query(query):
            nodes = self.repository_overview(opts.max_nodes)
            relevance: dict[str, int] = {}
        else:
            nodes, relevance = self._select_nodes(query, opts.max_nodes)

        bundle = ContextBundle(
            query=query,
            nodes=tuple(nodes),
            summary=self.generate_summary(nodes),
            files=tuple(self.select_files(nodes, keywords, opts, relevance)),
            relationships=(
                tuple(self.extract_relationships(nodes)) if opts.include_relationships else ()
            ),
            snippets=tuple(self.extract_code_snippets(nodes)) if opts.include_code else (),
            created_at=datetime.now(UTC).isoformat(),
        )
        logger.debug(
            "Context for %r: %d nodes, %d files", query, len(bundle.nodes), len(bundle.files)
        )

        if opts.format == ContextFormat.TEXT:
            return format_text(bundle)
        if opts.format == ContextFormat.MARKDOWN:
            return format_markdown(bundle)
        return bundle

    # ------------------------------------------------------------------
    # Node selection
    # ------------------------------------------------------------------

    def find_relevant_nodes(self, query: str, max_nodes: int) -> list[Node]:
        """Seeds for *query* plus up to five traversal neighbours each."""
        nodes, _ = self._select_nodes(query, max_nodes)
        return nodes

    def repository_overview(self, max_nodes: int) -> list[Node]:
        """A structural sample: files, functions and classes, then exports.

        Each of the first three kinds gets a third of *max_nodes* (at least
        one); exports fill whatever budget remains.
        """
        share = max(1, max_nodes // 3)
        selected: dict[str, Node] = {}
        for node_type in (NodeType.FILE, NodeType.FUNCTION, NodeType.CLASS):
            for node in self._graph.find_nodes_by_type(node_type)[:share]:
                if len(selected) >= max_nodes:
                    break
                selected.setdefault(node.id, node)
        for node in self._graph.find_nodes_by_type(NodeType.EXPORT):
            if len(selected) >= max_nodes:
                break
            selected.setdefault(node.id, node)
        return list(selected.values())

    def _select_nodes(self, query: str, max_nodes: int) -> tuple[list[Node], dict[str, int]]:
        """Selected nodes and, per node id, the relevance of the seed that chose it."""
        seeds: list[tuple[Node, int]] = [
            (result.node, result.relevance) for result in self._engine.query(query).results
        ]
        if not seeds:
            seeds = [(node, 0) for node in self._graph.search_nodes(query)]

        selected: dict[str, Node] = {}
        relevance: dict[str, int] = {}
        for seed, score in seeds:
            if len(selected) >= max_nodes:
                break
            if seed.id in selected:
                continue
            selected[seed.id] = seed
            relevance[seed.id] = score
            neighbours = self._graph.traverse(seed.id, NEIGHBOUR_DEPTH)[:NEIGHBOURS_PER_SEED]
            for node in neighbours:
                if len(selected) >= max_nodes:
                    break
                if node.id not in selected:
                    selected[node.id] = node
                    relevance[node.id] = score
        return list(selected.values()), relevance

    # ------------------------------------------------------------------
    # Files and excerpts
    # ------------------------------------------------------------------

    def select_files(
        self,
        nodes: Sequence[Node],
        keywords: Sequence[Keyword],
        options: ContextOptions,
        relevance: dict[str, int] | None = None,
    ) -> list[FileExcerpt]:
        """Resolve *nodes* to owning files and excerpt each one.

        Files come first, then functions and classes, then exports, then
        everything else; the result is stably sorted by relevance.
        """
        relevance = relevance or {}
        excerpts: list[FileExcerpt] = []
        seen: set[str] = set()
        for node in prioritize_nodes(nodes):
            if len(excerpts) >= options.max_files:
                break
            path = node.data.path if node.type == NodeType.FILE else getattr(node.data, "file", None)
            if not path or path in seen:
                continue
            file_node = self._graph.find_file(path)
            if file_node is None or not isinstance(file_node.data, FileData):
                logger.debug("Skipping %s: no file node for %s", node.id, path)
                continue
            seen.add(path)
            data = file_node.data
            if not data.raw:
                continue
            if options.include_full_content:
                content = data.raw
            else:
                content = build_excerpt(data, keywords, options.max_code_length)
            excerpts.append(
                FileExcerpt(
                    path=path,
                    content=content,
                    full_length=len(data.raw),
                    language=data.language,
                    functions=data.functions,
                    classes=data.classes,
                    exports=data.exports,
                    imports=data.imports,
                    relevance=relevance.get(node.id, 0),
                )
            )
        excerpts.sort(key=lambda e: e.relevance, reverse=True)
        return excerpts

    # ------------------------------------------------------------------
    # Summary, relationships, snippets
    # ------------------------------------------------------------------

    def generate_summary(self, nodes: Sequence[Node]) -> ContextSummary:
        node_types: dict[str, int] = {}
        files: dict[str, None] = {}
        functions: list[EntityLocation] = []
        classes: list[EntityLocation] = []
        for node in nodes:
            node_types[str(node.type)] = node_types.get(str(node.type), 0) + 1
            data = node.data
            if isinstance(data, FileData) and data.path:
                files[data.path] = None
            elif isinstance(data, FunctionData) and data.name:
                functions.append(EntityLocation(data.name, data.file, data.line))
            elif isinstance(data, ClassData) and data.name:
                classes.append(EntityLocation(data.name, data.file, data.line))
        return ContextSummary(
            total_nodes=len(nodes),
            node_types=node_types,
            files=tuple(files),
            functions=tuple(functions),
            classes=tuple(classes),
        )

    def extract_relationships(self, nodes: Sequence[Node]) -> list[RelationshipTriple]:
        """Labeled triples for every edge touching a selected node (each edge once)."""
        triples: list[RelationshipTriple] = []
        seen: set[str] = set()
        for node in nodes:
            for edge in self._graph.get_node_connections(node.id):
                if edge.id in seen:
                    continue
                seen.add(edge.id)
                if not (self._graph.has_node(edge.source_id) and self._graph.has_node(edge.target_id)):
                    continue
                triples.append(
                    RelationshipTriple(
                        source=self._graph.get_node(edge.source_id).label,
                        relationship=str(edge.relationship),
                        target=self._graph.get_node(edge.target_id).label,
                    )
                )
        return triples

    def extract_code_snippets(self, nodes: Sequence[Node]) -> list[CodeSnippet]:
        """Per selected file, the selected elements it owns; plus selected code blocks."""
        snippets: list[CodeSnippet] = []
        seen: set[str] = set()
        for node in nodes:
            data = node.data
            if isinstance(data, FileData) and data.path and data.path not in seen:
                seen.add(data.path)
                elements = [
                    SnippetElement(
                        type=str(n.type),
                        name=getattr(n.data, "name", None) or getattr(n.data, "text", None) or "unnamed",
                        line=getattr(n.data, "line", None),
                    )
                    for n in nodes
                    if getattr(n.data, "file", None) == data.path
                ]
                if elements:
                    snippets.append(CodeSnippet(file=data.path, elements=tuple(elements)))
            elif isinstance(data, CodeBlockData) and data.code:
                snippets.append(
                    CodeSnippet(
                        file=data.file, code=data.code, language=data.language, line=data.line
                    )
                )
        return snippets

    # ------------------------------------------------------------------
    # Single-node explanation
    # ------------------------------------------------------------------

    def explain_node(self, node_id: str) -> str:
        """Describe a node's attributes and up to five related elements.

        Raises ``KeyError`` if *node_id* does not exist.
        """
        node = self._graph.get_node(node_id)
        lines = [f"Type: {node.type}"]
        for key, value in dataclasses.asdict(node.data).items():
            if key == "raw" or value is None:
                continue
            if isinstance(value, list | tuple | dict):
                lines.append(f"{key}: {json.dumps(value, indent=2, ensure_ascii=False)}")
            else:
                lines.append(f"{key}: {value}")

        related = [n for n in self._graph.traverse(node_id, NEIGHBOUR_DEPTH) if n.id != node_id]
        if related:
            lines.append("")
            lines.append("Related elements:")
            lines.extend(f"- {n.type}: {n.label}" for n in related[:RELATED_IN_EXPLANATION])
        return "\n".join(lines) + "\n"


def prioritize_nodes(nodes: Sequence[Node]) -> list[Node]:
    """Files, then functions and classes, then exports, then the rest."""

    def tier(node: Node) -> int:
        if node.type == NodeType.FILE:
            return 0
        if node.type in (NodeType.FUNCTION, NodeType.CLASS):
            return 1
        if node.type == NodeType.EXPORT:
            return 2
        return 3

    return sorted(nodes, key=tier)
