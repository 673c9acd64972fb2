from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sqlalchemy import inspect
from sqlalchemy.engine import Inspector
from sqlalchemy.exc import SQLAlchemyError

from chat2sql.db.session import Database
from chat2sql.errors import IntrospectionError

logger = logging.getLogger(__name__)


class KeyRole(str, Enum):
    NONE = "none"
    PRIMARY = "primary"
    UNIQUE = "unique"
    FOREIGN = "foreign"


_KEY_LABELS = {
    KeyRole.PRIMARY: "PRIMARY KEY",
    KeyRole.UNIQUE: "UNIQUE",
    KeyRole.FOREIGN: "FOREIGN KEY",
}


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str
    nullable: bool
    key_role: KeyRole = KeyRole.NONE
    references: Optional[str] = None

    def render(self) -> str:
        line = f"  - {self.name}: {self.data_type} {'NULL' if self.nullable else 'NOT NULL'}"
        if self.key_role is KeyRole.FOREIGN and self.references:
            return f"{line} (FOREIGN KEY -> {self.references})"
        if self.key_role is not KeyRole.NONE:
            return f"{line} ({_KEY_LABELS[self.key_role]})"
        return line


@dataclass(frozen=True)
class TableInfo:
    name: str
    columns: Tuple[ColumnInfo, ...]


@dataclass(frozen=True)
class SchemaDescription:
    tables: Tuple[TableInfo, ...]

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def render(self) -> str:
        if not self.tables:
            return "No tables were found in the database."
        blocks = []
        for table in self.tables:
            lines = [f"Table: {table.name}", "Columns:"]
            lines.extend(col.render() for col in table.columns)
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)


def _unique_columns(inspector: Inspector, table: str, schema: Optional[str]) -> set[str]:
    """단일 컬럼 UNIQUE 제약/인덱스에 속한 컬럼"""
    names: set[str] = set()
    for uq in inspector.get_unique_constraints(table, schema=schema):
        if len(uq["column_names"]) == 1:
            names.add(uq["column_names"][0])
    for idx in inspector.get_indexes(table, schema=schema):
        cols = idx.get("column_names") or []
        if idx.get("unique") and len(cols) == 1 and cols[0]:
            names.add(cols[0])
    return names


def _foreign_columns(inspector: Inspector, table: str, schema: Optional[str]) -> Dict[str, str]:
    refs: Dict[str, str] = {}
    for fk in inspector.get_foreign_keys(table, schema=schema):
        for local, remote in zip(fk["constrained_columns"], fk["referred_columns"]):
            refs.setdefault(local, f"{fk['referred_table']}.{remote}")
    return refs


def _describe_table(inspector: Inspector, table: str, schema: Optional[str]) -> TableInfo:
    primary = set(inspector.get_pk_constraint(table, schema=schema).get("constrained_columns") or [])
    unique = _unique_columns(inspector, table, schema)
    foreign = _foreign_columns(inspector, table, schema)

    columns = []
    # get_columns 는 ordinal position 순서로 반환
    for col in inspector.get_columns(table, schema=schema):
        name = col["name"]
        if name in primary:
            role = KeyRole.PRIMARY
        elif name in unique:
            role = KeyRole.UNIQUE
        elif name in foreign:
            role = KeyRole.FOREIGN
        else:
            role = KeyRole.NONE
        columns.append(
            ColumnInfo(
                name=name,
                data_type=str(col["type"]),
                nullable=bool(col.get("nullable", True)),
                key_role=role,
                references=foreign.get(name),
            )
        )
    return TableInfo(name=table, columns=tuple(columns))


def introspect_schema(database: Database, schema: Optional[str] = None) -> SchemaDescription:
    """Describe every table of `schema` (the connection's default when None)."""
    try:
        with database.connect() as conn:
            inspector = inspect(conn)
            tables = [
                _describe_table(inspector, name, schema)
                for name in inspector.get_table_names(schema=schema)
            ]
    except SQLAlchemyError as e:
        logger.error("Error getting database schema: %s", e)
        raise IntrospectionError(str(e)) from e

    logger.debug("Introspected %d tables", len(tables))
    return SchemaDescription(tables=tuple(tables))
