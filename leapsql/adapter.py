"""Database adapter for executing SQL and loading seed data.

Backed by the standard library's SQLite driver; ":memory:" or an empty
path gives an in-memory database.
"""

from __future__ import annotations

import csv
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

MEMORY = ":memory:"
DEFAULT_SCHEMA = "main"


class AdapterError(RuntimeError):
    """Raised when a database operation fails."""


@dataclass
class ConnectionConfig:
    """Settings for connecting to a database."""

    type: str = ""
    path: str = ""
    host: str = ""
    port: int = 0
    database: str = ""
    username: str = ""
    password: str = ""
    schema: str = ""
    options: dict[str, str] = field(default_factory=dict)


@dataclass
class Column:
    """A column of a database table."""

    name: str
    type: str
    nullable: bool = True
    primary_key: bool = False
    position: int = 0


@dataclass
class Metadata:
    """Metadata of a database table."""

    schema: str
    name: str
    columns: list[Column] = field(default_factory=list)
    row_count: int = 0
    size_bytes: int = 0


def split_table_name(table: str, default_schema: str = DEFAULT_SCHEMA) -> tuple[str, str]:
    """Split "schema.table" into its parts; other names get the default schema."""
    parts = table.split(".")
    if len(parts) == 2:
        return parts[0], parts[1]
    return default_schema, table


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _qualified(table: str) -> str:
    schema, name = split_table_name(table)
    return f"{_quote(schema)}.{_quote(name)}"


def _is_int(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True


def _is_float(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def _infer_type(values: list[str]) -> str:
    present = [v for v in values if v != ""]
    if present and all(_is_int(v) for v in present):
        return "INTEGER"
    if present and all(_is_float(v) for v in present):
        return "REAL"
    return "TEXT"


def _convert(value: str, column_type: str) -> Any:
    if value == "":
        return None
    if column_type == "INTEGER":
        return int(value)
    if column_type == "REAL":
        return float(value)
    return value


class Adapter:
    """A connection to a database that runs SQL and reports table metadata."""

    def __init__(self) -> None:
        self._conn: sqlite3.Connection | None = None
        self.config = ConnectionConfig()

    def __enter__(self) -> Adapter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise AdapterError("database connection not established")
        return self._conn

    def connect(self, config: ConnectionConfig | None = None) -> None:
        """Open the database named by the config's path."""
        config = config or ConnectionConfig()
        path = config.path or MEMORY
        try:
            conn = sqlite3.connect(path, isolation_level=None)
        except sqlite3.Error as exc:
            raise AdapterError(f"failed to open database connection: {exc}") from exc
        try:
            conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as exc:
            conn.close()
            raise AdapterError(f"failed to ping database: {exc}") from exc
        self._conn = conn
        self.config = config

    def close(self) -> None:
        """Close the connection; closing an unconnected adapter does nothing."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def execute(self, sql: str) -> None:
        """Run SQL statements that return no rows."""
        conn = self._connection()
        try:
            conn.executescript(sql)
        except sqlite3.Error as exc:
            raise AdapterError(f"failed to execute SQL: {exc}") from exc

    def query(self, sql: str) -> list[tuple[Any, ...]]:
        """Run a query and return all of its rows."""
        conn = self._connection()
        try:
            return conn.execute(sql).fetchall()
        except sqlite3.Error as exc:
            raise AdapterError(f"failed to execute query: {exc}") from exc

    def table_metadata(self, table: str) -> Metadata:
        """Return the columns and row count of a table, optionally "schema.table"."""
        conn = self._connection()
        schema, name = split_table_name(table)
        try:
            info = conn.execute(
                f"PRAGMA {_quote(schema)}.table_info({_quote(name)})"
            ).fetchall()
        except sqlite3.Error as exc:
            raise AdapterError(f"failed to query column metadata: {exc}") from exc

        columns = [
            Column(
                name=col_name,
                type=col_type,
                nullable=not notnull,
                primary_key=pk > 0,
                position=cid + 1,
            )
            for cid, col_name, col_type, notnull, _default, pk in info
        ]
        if not columns:
            raise AdapterError(f"table {table} not found")

        try:
            (row_count,) = conn.execute(
                f"SELECT COUNT(*) FROM {_quote(schema)}.{_quote(name)}"
            ).fetchone()
        except sqlite3.Error:
            row_count = 0

        return Metadata(schema=schema, name=name, columns=columns, row_count=row_count)

    def load_csv(self, table_name: str, file_path: str | Path) -> None:
        """Create or replace a table from a CSV file with a header row."""
        conn = self._connection()
        path = Path(file_path).resolve()
        try:
            with path.open(newline="", encoding="utf-8") as handle:
                reader = csv.reader(handle)
                header = next(reader, None)
                rows = [row for row in reader if row]
        except OSError as exc:
            raise AdapterError(f"failed to load CSV: {exc}") from exc
        if not header:
            raise AdapterError(f"failed to load CSV: {path} has no header")

        width = len(header)
        padded = [(row + [""] * width)[:width] for row in rows]
        types = [_infer_type([row[i] for row in padded]) for i in range(width)]
        target = _qualified(table_name)
        column_defs = ", ".join(f"{_quote(n)} {t}" for n, t in zip(header, types))
        placeholders = ", ".join("?" for _ in header)
        values = [tuple(_convert(v, t) for v, t in zip(row, types)) for row in padded]

        try:
            conn.execute("BEGIN")
            conn.execute(f"DROP TABLE IF EXISTS {target}")
            conn.execute(f"CREATE TABLE {target} ({column_defs})")
            conn.executemany(f"INSERT INTO {target} VALUES ({placeholders})", values)
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise AdapterError(f"failed to load CSV: {exc}") from exc