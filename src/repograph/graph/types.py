"""Graph value types: node kinds, relationships, and per-kind node data."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any, ClassVar, TypeAlias

from repograph.records import ClassRecord, CommentRecord, FunctionRecord


class NodeType(StrEnum):
    """Kinds of entity stored in the graph."""

    REPOSITORY = "repository"
    FILE = "file"
    FUNCTION = "function"
    CLASS = "class"
    IMPORT = "import"
    EXPORT = "export"
    DOCUMENTATION = "documentation"
    HEADING = "heading"
    CODEBLOCK = "codeblock"
    PATH = "path"


class Relationship(StrEnum):
    """Directed edge labels."""

    CONTAINS = "contains"
    DEFINES = "defines"
    IMPORTS = "imports"
    EXPORTS = "exports"
    EXTENDS = "extends"
    REFERENCES = "references"
    DOCUMENTS = "documents"


# ------------------------------------------------------------------
# Node data variants
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RepositoryData:
    node_type: ClassVar[NodeType] = NodeType.REPOSITORY

    url: str
    owner: str = ""
    name: str = ""
    branch: str = "main"
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> RepositoryData:
        return cls(
            url=str(raw.get("url", "")),
            owner=str(raw.get("owner", "")),
            name=str(raw.get("name", "")),
            branch=str(raw.get("branch", "main")),
            metadata=dict(raw.get("metadata") or {}),
        )


@dataclass(frozen=True, slots=True)
class PathData:
    node_type: ClassVar[NodeType] = NodeType.PATH

    path: str
    repository: str = ""
    kind: str = "dir"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PathData:
        return cls(
            path=str(raw.get("path", "")),
            repository=str(raw.get("repository", "")),
            kind=str(raw.get("kind", "dir")),
        )


@dataclass(frozen=True, slots=True)
class FileData:
    """A source file, including its raw content and entity summaries."""

    node_type: ClassVar[NodeType] = NodeType.FILE

    path: str
    extension: str = ""
    size: int = 0
    language: str = "generic"
    raw: str = ""
    functions: tuple[FunctionRecord, ...] = ()
    classes: tuple[ClassRecord, ...] = ()
    imports: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()
    comments: tuple[CommentRecord, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> FileData:
        return cls(
            path=str(raw.get("path", "")),
            extension=str(raw.get("extension", "")),
            size=int(raw.get("size") or 0),
            language=str(raw.get("language", "generic")),
            raw=str(raw.get("raw") or ""),
            functions=tuple(FunctionRecord.from_dict(f) for f in raw.get("functions") or ()),
            classes=tuple(ClassRecord.from_dict(c) for c in raw.get("classes") or ()),
            imports=tuple(raw.get("imports") or ()),
            exports=tuple(raw.get("exports") or ()),
            comments=tuple(CommentRecord.from_dict(c) for c in raw.get("comments") or ()),
        )


@dataclass(frozen=True, slots=True)
class FunctionData:
    node_type: ClassVar[NodeType] = NodeType.FUNCTION

    name: str
    file: str
    line: int
    kind: str = "regular"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> FunctionData:
        return cls(
            name=str(raw.get("name", "")),
            file=str(raw.get("file", "")),
            line=int(raw.get("line") or 1),
            kind=str(raw.get("kind", "regular")),
        )


@dataclass(frozen=True, slots=True)
class ClassData:
    node_type: ClassVar[NodeType] = NodeType.CLASS

    name: str
    file: str
    line: int
    extends: str | None = None
    implements: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ClassData:
        return cls(
            name=str(raw.get("name", "")),
            file=str(raw.get("file", "")),
            line=int(raw.get("line") or 1),
            extends=raw.get("extends"),
            implements=tuple(raw.get("implements") or ()),
        )


@dataclass(frozen=True, slots=True)
class ImportData:
    node_type: ClassVar[NodeType] = NodeType.IMPORT

    module: str
    file: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ImportData:
        return cls(module=str(raw.get("module", "")), file=str(raw.get("file", "")))


@dataclass(frozen=True, slots=True)
class ExportData:
    node_type: ClassVar[NodeType] = NodeType.EXPORT

    name: str
    file: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ExportData:
        return cls(name=str(raw.get("name", "")), file=str(raw.get("file", "")))


@dataclass(frozen=True, slots=True)
class DocumentationData:
    node_type: ClassVar[NodeType] = NodeType.DOCUMENTATION

    file: str
    comments: tuple[CommentRecord, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> DocumentationData:
        return cls(
            file=str(raw.get("file", "")),
            comments=tuple(CommentRecord.from_dict(c) for c in raw.get("comments") or ()),
        )


@dataclass(frozen=True, slots=True)
class HeadingData:
    node_type: ClassVar[NodeType] = NodeType.HEADING

    text: str
    level: int
    file: str
    line: int

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> HeadingData:
        return cls(
            text=str(raw.get("text", "")),
            level=int(raw.get("level") or 1),
            file=str(raw.get("file", "")),
            line=int(raw.get("line") or 1),
        )


@dataclass(frozen=True, slots=True)
class CodeBlockData:
    node_type: ClassVar[NodeType] = NodeType.CODEBLOCK

    language: str
    file: str
    line: int
    code: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> CodeBlockData:
        return cls(
            language=str(raw.get("language", "plain")),
            file=str(raw.get("file", "")),
            line=int(raw.get("line") or 1),
            code=str(raw.get("code", "")),
        )


NodeData: TypeAlias = (
    RepositoryData
    | PathData
    | FileData
    | FunctionData
    | ClassData
    | ImportData
    | ExportData
    | DocumentationData
    | HeadingData
    | CodeBlockData
)

NODE_DATA_TYPES: dict[NodeType, type[Any]] = {
    cls.node_type: cls
    for cls in (
        RepositoryData,
        PathData,
        FileData,
        FunctionData,
        ClassData,
        ImportData,
        ExportData,
        DocumentationData,
        HeadingData,
        CodeBlockData,
    )
}


def node_data_from_dict(node_type: NodeType | str, raw: Mapping[str, Any]) -> NodeData:
    """Rebuild the data variant for *node_type* from a decoded mapping.

    Raises ``ValueError`` for an unknown node type.
    """
    return NODE_DATA_TYPES[NodeType(node_type)].from_dict(raw)


# ------------------------------------------------------------------
# Nodes and edges
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Node:
    """A typed entity in the graph.

    Attributes:
        id: Graph-unique identifier (``node_<n>``).
        type: The node kind.
        data: Kind-specific attributes.
        created_at: ISO-8601 creation timestamp.
    """

    id: str
    type: NodeType
    data: NodeData
    created_at: str

    @property
    def name(self) -> str | None:
        """The entity name, for kinds that have one."""
        return getattr(self.data, "name", None)

    @property
    def label(self) -> str:
        """Human-readable label: name, path, text, module, or the node type."""
        for attr in ("name", "path", "text", "module"):
            value = getattr(self.data, attr, None)
            if value:
                return str(value)
        return str(self.type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": str(self.type),
            "data": asdict(self.data),
            "created_at": self.created_at,
        }

    def serialized(self) -> str:
        """Compact, lowercased JSON of id, type, and data, used for text matching."""
        payload = {"id": self.id, "type": str(self.type), "data": asdict(self.data)}
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).lower()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Node:
        node_type = NodeType(raw["type"])
        return cls(
            id=str(raw["id"]),
            type=node_type,
            data=node_data_from_dict(node_type, raw.get("data") or {}),
            created_at=str(raw.get("created_at", "")),
        )


@dataclass(frozen=True, slots=True)
class Edge:
    """A directed, labeled relationship between two nodes."""

    id: str
    source_id: str
    target_id: str
    relationship: Relationship
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "relationship": str(self.relationship),
            "metadata": dict(self.metadata),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Edge:
        return cls(
            id=str(raw["id"]),
            source_id=str(raw["source_id"]),
            target_id=str(raw["target_id"]),
            relationship=Relationship(raw["relationship"]),
            metadata=dict(raw.get("metadata") or {}),
            created_at=str(raw.get("created_at", "")),
        )


@dataclass(frozen=True, slots=True)
class GraphStatistics:
    """Aggregate counts over the graph."""

    total_nodes: int
    total_edges: int
    node_types: dict[str, int]
    relationship_types: dict[str, int]
    repositories: int
