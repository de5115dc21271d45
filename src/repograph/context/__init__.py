"""Context layer: bounded, LLM-ready bundles of graph entities and source."""

from repograph.context._builder import ContextBuilder, is_overview_query, prioritize_nodes
from repograph.context.boundaries import (
    BoundaryResolver,
    BraceBoundaryResolver,
    IndentBoundaryResolver,
    resolver_for,
)
from repograph.context.excerpt import build_excerpt, elision_marker, extract_unit_code
from repograph.context.formatters import format_markdown, format_text
from repograph.context.ranges import MERGE_SLACK, LineRange, merge_ranges
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

__all__ = [
    "MERGE_SLACK",
    "BoundaryResolver",
    "BraceBoundaryResolver",
    "CodeSnippet",
    "ContextBuilder",
    "ContextBundle",
    "ContextFormat",
    "ContextOptions",
    "ContextSummary",
    "EntityLocation",
    "FileExcerpt",
    "IndentBoundaryResolver",
    "LineRange",
    "RelationshipTriple",
    "SnippetElement",
    "build_excerpt",
    "elision_marker",
    "extract_unit_code",
    "format_markdown",
    "format_text",
    "is_overview_query",
    "merge_ranges",
    "prioritize_nodes",
    "resolver_for",
]
