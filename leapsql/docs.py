"""Documentation catalog records: model metadata, lineage and JSON output."""

from __future__ import annotations

import dataclasses
import json
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

SOURCE_PREFIX = "source:"
_PRAGMA_PREFIXES = ("@config", "@import", "#if", "#endif")
_COMMENT_PREFIX = "-- "


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SourceRef:
    """A source column that a column is derived from."""

    table: str
    column: str

    def to_dict(self) -> dict[str, Any]:
        return {"table": self.table, "column": self.column}


@dataclass
class ColumnDoc:
    """Column lineage information of a model."""

    name: str
    index: int = 0
    transform_type: str = ""
    function: str = ""
    sources: list[SourceRef] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "index": self.index}
        if self.transform_type:
            data["transform_type"] = self.transform_type
        if self.function:
            data["function"] = self.function
        data["sources"] = [src.to_dict() for src in self.sources]
        return data


@dataclass
class ModelDoc:
    """A model as presented in the documentation."""

    id: str
    name: str
    path: str
    materialized: str = ""
    unique_key: str = ""
    sql: str = ""
    file_path: str = ""
    sources: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)
    columns: list[ColumnDoc] = field(default_factory=list)
    description: str = ""
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "materialized": self.materialized,
        }
        if self.unique_key:
            data["unique_key"] = self.unique_key
        data.update(
            {
                "sql": self.sql,
                "file_path": self.file_path,
                "sources": list(self.sources),
                "dependencies": list(self.dependencies),
                "dependents": list(self.dependents),
                "columns": [col.to_dict() for col in self.columns],
            }
        )
        if self.description:
            data["description"] = self.description
        data["updated_at"] = _format_time(self.updated_at)
        return data


@dataclass
class LineageEdge:
    """An edge of the model dependency graph."""

    source: str
    target: str

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target}


@dataclass
class LineageDoc:
    """The model-level lineage graph."""

    nodes: list[str] = field(default_factory=list)
    edges: list[LineageEdge] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"nodes": list(self.nodes), "edges": [e.to_dict() for e in self.edges]}


@dataclass
class ColumnLineageNode:
    """A column in the column lineage graph, identified as "model.column"."""

    id: str
    model: str
    column: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "model": self.model, "column": self.column}


@dataclass
class ColumnLineageEdge:
    """An edge between two "model.column" identifiers."""

    source: str
    target: str

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target}


@dataclass
class ColumnLineageDoc:
    """The column-level lineage graph."""

    nodes: list[ColumnLineageNode] = field(default_factory=list)
    edges: list[ColumnLineageEdge] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass
class SourceDoc:
    """An external table that models read from."""

    name: str
    referenced_by: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "referenced_by": list(self.referenced_by)}


def _is_blank(text: str) -> bool:
    return all(ch in " \t\r" for ch in text)


def extract_description(content: str) -> str:
    """Join the leading "-- " comment lines of a model, skipping pragmas."""
    desc = ""
    for line in content.split("\n"):
        if line.startswith(_COMMENT_PREFIX):
            text = line[len(_COMMENT_PREFIX):]
            if text.startswith(_PRAGMA_PREFIXES):
                continue
            desc = f"{desc} {text}" if desc else text
        elif not _is_blank(line):
            break
    return desc


def build_lineage(
    model_docs: Mapping[str, ModelDoc], sources: Iterable[SourceDoc]
) -> LineageDoc:
    """Build the lineage graph of models and the external sources they read."""
    sources = list(sources)
    lineage = LineageDoc()
    lineage.nodes.extend(model_docs)
    lineage.nodes.extend(SOURCE_PREFIX + src.name for src in sources)
    for doc in model_docs.values():
        lineage.edges.extend(LineageEdge(dep, doc.path) for dep in doc.dependencies)
    for src in sources:
        lineage.edges.extend(
            LineageEdge(SOURCE_PREFIX + src.name, model) for model in src.referenced_by
        )
    return lineage


def _json_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, datetime):
        return _format_time(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def write_json(path: str | Path, data: Any) -> None:
    """Write data as indented JSON followed by a newline."""
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, ensure_ascii=False, default=_json_default)
        handle.write("\n")


def copy_file(src: str | Path, dst: str | Path) -> None:
    """Copy the contents of one file to another."""
    shutil.copyfile(src, dst)