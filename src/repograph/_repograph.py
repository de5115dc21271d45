"""Main RepoGraph class: graph lifecycle, ingestion, query and context."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from repograph.analyzers import AnalyzerRegistry
from repograph.context import ContextBuilder, ContextBundle, ContextOptions
from repograph.graph import EntityGraph, GraphStatistics
from repograph.query import QueryEngine, QueryResult
from repograph.records import FileRecord, PathRecord, RepositoryRecord

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class RepoGraph:
    """Facade wiring the entity graph, analyzers, query engine and context builder.

    Owns one :class:`EntityGraph` for its whole lifetime: populate it from
    entity records or raw sources, query it, build context bundles from it,
    and snapshot or reload it.

    Usage::

        rg = RepoGraph()
        rg.add_source("src/auth.js", source_text)
        result = rg.query("find login function")
        prompt = rg.build_context("how does login work", format="markdown")
    """

    def __init__(
        self,
        *,
        graph: EntityGraph | None = None,
        analyzers: AnalyzerRegistry | None = None,
        context_options: ContextOptions | None = None,
    ) -> None:
        self._graph = graph if graph is not None else EntityGraph()
        self._analyzers = analyzers or AnalyzerRegistry()
        self._engine = QueryEngine(self._graph)
        self._builder = ContextBuilder(self._graph, self._engine, options=context_options)

    @property
    def graph(self) -> EntityGraph:
        return self._graph

    @property
    def engine(self) -> QueryEngine:
        return self._engine

    @property
    def analyzers(self) -> AnalyzerRegistry:
        return self._analyzers

    @property
    def context_builder(self) -> ContextBuilder:
        return self._builder

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def add_entities(
        self, record: FileRecord | Mapping[str, Any], parent_id: str | None = None
    ) -> str:
        """Add one file's entities; loose mappings are validated into a :class:`FileRecord`."""
        if isinstance(record, Mapping):
            record = FileRecord.from_dict(record)
        return self._graph.add_entities(record, parent_id)

    def add_file(self, record: FileRecord | Mapping[str, Any]) -> str:
        return self.add_entities(record)

    def add_repository(self, record: RepositoryRecord | Mapping[str, Any]) -> str:
        if isinstance(record, Mapping):
            record = RepositoryRecord.from_dict(record)
        return self._graph.add_repository(record)

    def add_path(self, record: PathRecord | Mapping[str, Any]) -> str:
        if isinstance(record, Mapping):
            record = PathRecord.from_dict(record)
        return self._graph.add_path(record)

    def add_source(self, path: str, content: str, parent_id: str | None = None) -> str:
        """Analyze raw *content* with the analyzer for *path* and add it."""
        record = self._analyzers.analyze_file(path, content)
        return self._graph.add_entities(record, parent_id)

    def add_sources(
        self, sources: Iterable[tuple[str, str]], parent_id: str | None = None
    ) -> list[str]:
        """Analyze and add ``(path, content)`` pairs; returns the file node ids."""
        ids = [self.add_source(path, content, parent_id) for path, content in sources]
        logger.debug("Added %d sources", len(ids))
        return ids

    # ------------------------------------------------------------------
    # Query and context
    # ------------------------------------------------------------------

    def query(self, text: str) -> QueryResult:
        return self._engine.query(text)

    def build_context(
        self,
        text: str,
        options: ContextOptions | None = None,
        **overrides: Any,
    ) -> ContextBundle | str:
        """Build context for *text*.

        Keyword *overrides* (e.g. ``max_files=2, format="markdown"``) are
        applied on top of *options* or the instance defaults and validated
        the same way.
        """
        opts = options or self._builder.options
        if overrides:
            opts = dataclasses.replace(opts, **overrides)
        return self._builder.build_context(text, opts)

    def explain(self, node_id: str) -> str:
        return self._builder.explain_node(node_id)

    def suggestions(self, prefix: str) -> list[str]:
        return self._engine.get_suggestions(prefix)

    # ------------------------------------------------------------------
    # Snapshots and persistence
    # ------------------------------------------------------------------

    def export(self) -> dict[str, Any]:
        return self._graph.export()

    def import_(self, blob: Mapping[str, Any]) -> None:
        self._graph.import_(blob)

    def save(self, file_path: str | Path) -> Path:
        return self._graph.save(file_path)

    def load(self, file_path: str | Path) -> dict[str, Any]:
        return self._graph.load(file_path)

    async def to_sql(self, session: AsyncSession) -> None:
        await self._graph.to_sql(session)

    async def from_sql(self, session: AsyncSession) -> None:
        await self._graph.from_sql(session)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self) -> None:
        self._graph.clear()

    def stats(self) -> GraphStatistics:
        return self._graph.get_statistics()

    def __repr__(self) -> str:
        return f"RepoGraph(nodes={self._graph.node_count}, edges={self._graph.edge_count})"
