"""Entity graph layer: typed nodes, labeled edges, traversal and search."""

from repograph.graph._rustworkx import EntityGraph
from repograph.graph.protocols import GraphStore, SupportsPersistence
from repograph.graph.types import (
    ClassData,
    CodeBlockData,
    DocumentationData,
    Edge,
    ExportData,
    FileData,
    FunctionData,
    GraphStatistics,
    HeadingData,
    ImportData,
    Node,
    NodeType,
    PathData,
    Relationship,
    RepositoryData,
)

__all__ = [
    "ClassData",
    "CodeBlockData",
    "DocumentationData",
    "Edge",
    "EntityGraph",
    "ExportData",
    "FileData",
    "FunctionData",
    "GraphStatistics",
    "GraphStore",
    "HeadingData",
    "ImportData",
    "Node",
    "NodeType",
    "PathData",
    "Relationship",
    "RepositoryData",
    "SupportsPersistence",
]
