"""GraphNodeRow model: one row per entity node."""

from __future__ import annotations

from sqlmodel import Field, SQLModel


class GraphNodeRow(SQLModel, table=True):
    """A persisted graph node.

    ``data_json`` holds the node's kind-specific data as JSON; ``position``
    preserves insertion order across a save/load cycle.
    """

    __tablename__ = "repograph_nodes"

    id: str = Field(primary_key=True)
    position: int = Field(default=0, index=True)
    type: str = Field(default="", index=True)
    data_json: str = Field(default="{}")
    created_at: str = Field(default="")
