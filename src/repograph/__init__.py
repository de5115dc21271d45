"""repograph: code entity graphs, natural-language queries, LLM-ready context.

Ingest source files as typed entities, rank them against a question, and
emit a bounded excerpt of the code that answers it.
"""

__version__ = "0.1.0"

from repograph._repograph import RepoGraph
from repograph.analyzers import Analyzer, AnalyzerRegistry
from repograph.context import (
    ContextBuilder,
    ContextBundle,
    ContextFormat,
    ContextOptions,
    FileExcerpt,
    format_markdown,
    format_text,
)
from repograph.exceptions import ConfigurationError, RepoGraphError, SnapshotError
from repograph.graph import (
    Edge,
    EntityGraph,
    GraphStatistics,
    GraphStore,
    Node,
    NodeType,
    Relationship,
    SupportsPersistence,
)
from repograph.query import Keyword, QueryEngine, QueryResult, QueryType, RankedResult
from repograph.records import (
    ClassRecord,
    CodeBlockRecord,
    CommentRecord,
    FileRecord,
    FunctionRecord,
    HeadingRecord,
    PathRecord,
    RepositoryRecord,
)

__all__ = [
    "Analyzer",
    "AnalyzerRegistry",
    "ClassRecord",
    "CodeBlockRecord",
    "CommentRecord",
    "ConfigurationError",
    "ContextBuilder",
    "ContextBundle",
    "ContextFormat",
    "ContextOptions",
    "Edge",
    "EntityGraph",
    "FileExcerpt",
    "FileRecord",
    "FunctionRecord",
    "GraphStatistics",
    "GraphStore",
    "HeadingRecord",
    "Keyword",
    "Node",
    "NodeType",
    "PathRecord",
    "QueryEngine",
    "QueryResult",
    "QueryType",
    "RankedResult",
    "Relationship",
    "RepoGraph",
    "RepoGraphError",
    "RepositoryRecord",
    "SnapshotError",
    "SupportsPersistence",
    "__version__",
    "format_markdown",
    "format_text",
]
