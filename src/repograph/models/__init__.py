"""SQLModel database models for repograph."""

from repograph.models.edges import GraphEdgeRow
from repograph.models.nodes import GraphNodeRow

__all__ = [
    "GraphEdgeRow",
    "GraphNodeRow",
]
