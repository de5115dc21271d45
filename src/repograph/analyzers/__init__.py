"""Analyzers: extract entity records from source files."""

from __future__ import annotations

import logging

from repograph.analyzers._base import Analyzer, GenericAnalyzer, extension_of, line_of
from repograph.analyzers.markdown import MarkdownAnalyzer
from repograph.analyzers.python import PythonAnalyzer
from repograph.records import FileRecord

logger = logging.getLogger(__name__)


class AnalyzerRegistry:
    """Maps file extensions to language-specific analyzers."""

    def __init__(self) -> None:
        self._ext_map: dict[str, Analyzer] = {}
        self._fallback: Analyzer = GenericAnalyzer()
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Auto-register built-in analyzers."""
        # Python and Markdown: always available (stdlib)
        self.register(PythonAnalyzer())
        self.register(MarkdownAnalyzer())

        # JS/TS: depends on tree-sitter
        try:
            from repograph.analyzers.javascript import (
                JavaScriptAnalyzer,
                TypeScriptAnalyzer,
            )

            self.register(JavaScriptAnalyzer())
            self.register(TypeScriptAnalyzer())
        except Exception:
            logger.debug("JavaScript/TypeScript analyzers not available")

    def register(self, analyzer: Analyzer) -> None:
        """Register an analyzer for each of its extensions."""
        for ext in analyzer.extensions:
            self._ext_map[ext.lower()] = analyzer

    def get(self, path: str) -> Analyzer | None:
        """Look up an analyzer by file path extension (case-insensitive)."""
        return self._ext_map.get(extension_of(path))

    def supported_extensions(self) -> frozenset[str]:
        """Return all registered extensions."""
        return frozenset(self._ext_map.keys())

    def analyze_file(self, path: str, content: str) -> FileRecord:
        """Look up the analyzer for *path* and run it.

        Unsupported extensions fall back to :class:`GenericAnalyzer`, so the
        file still enters the graph with its raw content.
        """
        analyzer = self.get(path) or self._fallback
        return analyzer.analyze_file(path, content)


_default_registry = AnalyzerRegistry()


def get_analyzer(path: str) -> Analyzer | None:
    """Get the analyzer for *path* from the default registry."""
    return _default_registry.get(path)


def analyze_file(path: str, content: str) -> FileRecord:
    """Analyze *content* with the default registry."""
    return _default_registry.analyze_file(path, content)


__all__ = [
    "Analyzer",
    "AnalyzerRegistry",
    "GenericAnalyzer",
    "MarkdownAnalyzer",
    "PythonAnalyzer",
    "analyze_file",
    "get_analyzer",
    "line_of",
]
