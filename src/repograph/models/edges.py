"""GraphEdgeRow model: single table for all graph edges."""

from __future__ import annotations

from sqlmodel import Field, SQLModel


class GraphEdgeRow(SQLModel, table=True):
    """A directed, labeled edge in the entity graph.

    Relationships are the :class:`~repograph.graph.types.Relationship`
    values, e.g. ``"defines"``, ``"imports"``, ``"extends"``.
    """

    __tablename__ = "repograph_edges"

    id: str = Field(primary_key=True)
    position: int = Field(default=0, index=True)
    source_id: str = Field(index=True)
    target_id: str = Field(index=True)
    relationship: str = Field(default="")
    metadata_json: str = Field(default="{}")
    created_at: str = Field(default="")
