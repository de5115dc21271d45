"""Context layer data types: options, excerpts, and the assembled bundle."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from repograph.exceptions import ConfigurationError

if TYPE_CHECKING:
    from repograph.graph.types import Node
    from repograph.records import ClassRecord, FunctionRecord


class ContextFormat(StrEnum):
    """Output shape of :meth:`ContextBuilder.build_context`."""

    STRUCTURED = "structured"
    TEXT = "text"
    MARKDOWN = "markdown"


# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ContextOptions:
    """Budgets and switches for context construction.

    Attributes:
        max_nodes: Upper bound on selected graph nodes.
        max_files: Upper bound on files with source excerpts.
        max_code_length: Character budget per file excerpt.
        include_full_content: Emit whole files instead of excerpts.
        include_relationships: Collect relationship triples.
        include_code: Collect code snippets.
        format: ``structured`` (a :class:`ContextBundle`), ``text`` or
            ``markdown`` (a string).

    Raises:
        ConfigurationError: On a negative budget or an unknown format.
    """

    max_nodes: int = 50
    max_files: int = 10
    max_code_length: int = 5000
    include_full_content: bool = False
    include_relationships: bool = True
    include_code: bool = True
    format: ContextFormat = ContextFormat.STRUCTURED

    def __post_init__(self) -> None:
        for name in ("max_nodes", "max_files", "max_code_length"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                msg = f"{name} must be a non-negative integer, got {value!r}"
                raise ConfigurationError(msg)
        try:
            object.__setattr__(self, "format", ContextFormat(self.format))
        except ValueError:
            valid = ", ".join(f.value for f in ContextFormat)
            msg = f"Unknown context format {self.format!r} (expected one of: {valid})"
            raise ConfigurationError(msg) from None


# ------------------------------------------------------------------
# Bundle parts
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileExcerpt:
    """Source excerpt of one selected file.

    Attributes:
        path: File path.
        content: Excerpt (or full content).
        full_length: Length of the file's full stored content.
        language: Language tag of the file.
        functions: Functions defined in the file.
        classes: Classes defined in the file.
        exports: Exported names.
        imports: Imported module specifiers.
        relevance: Relevance of the node that selected this file.
    """

    path: str
    content: str
    full_length: int
    language: str = "generic"
    functions: tuple[FunctionRecord, ...] = ()
    classes: tuple[ClassRecord, ...] = ()
    exports: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    relevance: int = 0

    @property
    def truncated(self) -> bool:
        return len(self.content) < self.full_length


@dataclass(frozen=True, slots=True)
class EntityLocation:
    name: str
    file: str
    line: int


@dataclass(frozen=True, slots=True)
class ContextSummary:
    """Counts and listings over the selected nodes."""

    total_nodes: int = 0
    node_types: dict[str, int] = field(default_factory=dict)
    files: tuple[str, ...] = ()
    functions: tuple[EntityLocation, ...] = ()
    classes: tuple[EntityLocation, ...] = ()


@dataclass(frozen=True, slots=True)
class RelationshipTriple:
    source: str
    relationship: str
    target: str


@dataclass(frozen=True, slots=True)
class SnippetElement:
    type: str
    name: str
    line: int | None = None


@dataclass(frozen=True, slots=True)
class CodeSnippet:
    """Either a file's selected elements or a markdown code block."""

    file: str
    elements: tuple[SnippetElement, ...] = ()
    code: str | None = None
    language: str | None = None
    line: int | None = None


# ------------------------------------------------------------------
# Bundle
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ContextBundle:
    """Everything :class:`ContextBuilder` assembled for one query."""

    query: str
    nodes: tuple[Node, ...] = ()
    summary: ContextSummary = field(default_factory=ContextSummary)
    files: tuple[FileExcerpt, ...] = ()
    relationships: tuple[RelationshipTriple, ...] = ()
    snippets: tuple[CodeSnippet, ...] = ()
    created_at: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.files

    @property
    def excerpt(self) -> str:
        """Concatenated file excerpts, each headed by its path."""
        return "\n\n".join(f"// File: {f.path}\n{f.content}" for f in self.files)
