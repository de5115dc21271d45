"""Entity records: the extraction boundary consumed by the graph.

Analyzers produce these records; :meth:`EntityGraph.add_entities` turns them
into nodes and edges.  Loose mappings (e.g. decoded JSON) are accepted via the
``from_dict`` constructors, which degrade instead of failing: missing lists
become empty, missing scalars take their defaults.
"""

from __future__ import annotations

import posixpath
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _as_optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _items(value: Any) -> list[Any]:
    """Return *value* as a list, treating ``None`` and scalars as empty."""
    if isinstance(value, list | tuple):
        return list(value)
    return []


@dataclass(frozen=True, slots=True)
class FunctionRecord:
    """A function or method defined in a file (1-indexed ``line``)."""

    name: str
    line: int
    kind: str = "regular"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> FunctionRecord:
        return cls(
            name=_as_str(raw.get("name")),
            line=_as_int(raw.get("line"), 1),
            kind=_as_str(raw.get("kind", raw.get("type")), "regular"),
        )


@dataclass(frozen=True, slots=True)
class ClassRecord:
    """A class defined in a file, with its optional supertype name."""

    name: str
    line: int
    extends: str | None = None
    implements: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ClassRecord:
        return cls(
            name=_as_str(raw.get("name")),
            line=_as_int(raw.get("line"), 1),
            extends=_as_optional_str(raw.get("extends")),
            implements=tuple(str(i) for i in _items(raw.get("implements"))),
        )


@dataclass(frozen=True, slots=True)
class CommentRecord:
    """A comment or docstring block."""

    text: str
    line: int
    kind: str = "single"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> CommentRecord:
        return cls(
            text=_as_str(raw.get("text")),
            line=_as_int(raw.get("line"), 1),
            kind=_as_str(raw.get("kind", raw.get("type")), "single"),
        )


@dataclass(frozen=True, slots=True)
class HeadingRecord:
    """A markdown heading."""

    text: str
    level: int
    line: int

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> HeadingRecord:
        return cls(
            text=_as_str(raw.get("text")),
            level=_as_int(raw.get("level"), 1),
            line=_as_int(raw.get("line"), 1),
        )


@dataclass(frozen=True, slots=True)
class CodeBlockRecord:
    """A fenced code block inside a markdown document."""

    language: str
    code: str
    line: int

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> CodeBlockRecord:
        return cls(
            language=_as_str(raw.get("language"), "plain") or "plain",
            code=_as_str(raw.get("code")),
            line=_as_int(raw.get("line"), 1),
        )


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Everything extracted from one source file.

    Attributes:
        path: File path, used as the identity of the file in the graph.
        language: Language tag (``"python"``, ``"javascript"``, ...).
        raw: Full file content.
        functions: Functions and methods with their start lines.
        classes: Classes with start lines and supertype names.
        imports: Imported module specifiers.
        exports: Exported names.
        comments: Comments and docstrings.
        headings: Markdown headings.
        code_blocks: Markdown fenced code blocks.
    """

    path: str
    language: str = "generic"
    raw: str = ""
    functions: tuple[FunctionRecord, ...] = ()
    classes: tuple[ClassRecord, ...] = ()
    imports: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()
    comments: tuple[CommentRecord, ...] = ()
    headings: tuple[HeadingRecord, ...] = ()
    code_blocks: tuple[CodeBlockRecord, ...] = ()

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.path)[1].lower()

    @property
    def size(self) -> int:
        return len(self.raw)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> FileRecord:
        """Build a record from a loose mapping, tolerating missing fields."""
        content = raw.get("raw", raw.get("content"))
        return cls(
            path=_as_str(raw.get("path")),
            language=_as_str(raw.get("language", raw.get("type")), "generic") or "generic",
            raw=_as_str(content),
            functions=tuple(
                FunctionRecord.from_dict(f) for f in _items(raw.get("functions"))
                if isinstance(f, Mapping)
            ),
            classes=tuple(
                ClassRecord.from_dict(c) for c in _items(raw.get("classes"))
                if isinstance(c, Mapping)
            ),
            imports=tuple(str(i) for i in _items(raw.get("imports")) if i),
            exports=tuple(str(e) for e in _items(raw.get("exports")) if e),
            comments=tuple(
                CommentRecord.from_dict(c) for c in _items(raw.get("comments"))
                if isinstance(c, Mapping)
            ),
            headings=tuple(
                HeadingRecord.from_dict(h) for h in _items(raw.get("headings"))
                if isinstance(h, Mapping)
            ),
            code_blocks=tuple(
                CodeBlockRecord.from_dict(b)
                for b in _items(raw.get("code_blocks", raw.get("codeBlocks")))
                if isinstance(b, Mapping)
            ),
        )


@dataclass(frozen=True, slots=True)
class RepositoryRecord:
    """A repository grouping a set of files."""

    url: str
    owner: str = ""
    name: str = ""
    branch: str = "main"
    files: tuple[FileRecord, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> RepositoryRecord:
        return cls(
            url=_as_str(raw.get("url", raw.get("repository"))),
            owner=_as_str(raw.get("owner")),
            name=_as_str(raw.get("name", raw.get("repo"))),
            branch=_as_str(raw.get("branch"), "main") or "main",
            files=tuple(
                FileRecord.from_dict(f) for f in _items(raw.get("files"))
                if isinstance(f, Mapping)
            ),
            metadata=dict(raw.get("metadata") or {}),
        )


@dataclass(frozen=True, slots=True)
class PathRecord:
    """A directory or single-file path inside a repository."""

    path: str
    repository: str = ""
    kind: str = "dir"
    files: tuple[FileRecord, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PathRecord:
        return cls(
            path=_as_str(raw.get("path")),
            repository=_as_str(raw.get("repository")),
            kind=_as_str(raw.get("kind", raw.get("type")), "dir") or "dir",
            files=tuple(
                FileRecord.from_dict(f) for f in _items(raw.get("files"))
                if isinstance(f, Mapping)
            ),
        )
