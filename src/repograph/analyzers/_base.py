"""Analyzer protocol and shared helpers."""

from __future__ import annotations

import posixpath
from typing import Protocol, runtime_checkable

from repograph.records import FileRecord


@runtime_checkable
class Analyzer(Protocol):
    """Protocol for language-specific entity extractors.

    Analyzers are pure functions: they receive a file path and its content,
    and return a :class:`FileRecord` without mutating any state.
    """

    @property
    def language(self) -> str:
        """Language tag stamped on produced records (e.g. ``"python"``)."""
        ...

    @property
    def extensions(self) -> frozenset[str]:
        """File extensions this analyzer handles (e.g. ``{".py"}``)."""
        ...

    def analyze_file(self, path: str, content: str) -> FileRecord:
        """Analyze *content* of the file at *path*.

        Never raises on malformed input; unparsable content yields a record
        with no entities.
        """
        ...


class GenericAnalyzer:
    """Fallback for unsupported extensions: keeps the raw content only."""

    @property
    def language(self) -> str:
        return "generic"

    @property
    def extensions(self) -> frozenset[str]:
        return frozenset()

    def analyze_file(self, path: str, content: str) -> FileRecord:
        return FileRecord(path=path, language=self.language, raw=content)


def line_of(content: str, offset: int) -> int:
    """Return the 1-indexed line number of character *offset* in *content*."""
    return content.count("\n", 0, offset) + 1


def extension_of(path: str) -> str:
    """Lowercased extension of *path*, including the dot."""
    return posixpath.splitext(path)[1].lower()
