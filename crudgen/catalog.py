# File: crudgen/catalog.py
"""
crudgen - Schema Catalog Accessor
==================================
Reads table descriptors from a live database (through SQLAlchemy's
inspector) or from a catalog dump that was loaded from JSON/YAML.

Key roles mirror MySQL's ``SHOW COLUMNS`` output:
    ``PRI``  part of the primary key
    ``UNI``  single-column unique constraint
    ``MUL``  first column of a non-unique index
    ``""``   anything else
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Set

from pydantic import ValidationError
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine

from crudgen.models import FieldSpec, TableDescriptor

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.catalog")

KEY_PRIMARY: str = "PRI"
KEY_UNIQUE: str = "UNI"
KEY_MULTIPLE: str = "MUL"


def _key_role(
    column: str,
    primary: Set[str],
    unique: Set[str],
    indexed: Set[str],
) -> str:
    if column in primary:
        return KEY_PRIMARY
    if column in unique:
        return KEY_UNIQUE
    if column in indexed:
        return KEY_MULTIPLE
    return ""


def get_tables(engine: Engine, schema: Optional[str] = None) -> List[TableDescriptor]:
    """
    Describe every table of *schema* (the default schema when None).

    Tables come back in the order the inspector lists them.
    """
    inspector = inspect(engine)
    tables: List[TableDescriptor] = []

    for table_name in inspector.get_table_names(schema=schema):
        columns: List[Dict[str, Any]] = inspector.get_columns(table_name, schema=schema)

        pk: Mapping[str, Any] = inspector.get_pk_constraint(table_name, schema=schema)
        primary: Set[str] = set(pk.get("constrained_columns") or [])

        unique: Set[str] = set()
        for constraint in inspector.get_unique_constraints(table_name, schema=schema):
            names: List[str] = constraint.get("column_names") or []
            if len(names) == 1:
                unique.add(names[0])

        indexed: Set[str] = set()
        for index in inspector.get_indexes(table_name, schema=schema):
            names = [n for n in index.get("column_names") or [] if n]
            if not names:
                continue
            if index.get("unique") and len(names) == 1:
                unique.add(names[0])
            else:
                indexed.add(names[0])

        fields: List[FieldSpec] = [
            FieldSpec(
                name=col["name"],
                type=str(col["type"]),
                key_role=_key_role(col["name"], primary, unique, indexed),
            )
            for col in columns
        ]
        tables.append(TableDescriptor(name=table_name, fields=tuple(fields) or None))

    logger.info(
        "Read %d table(s) from catalog%s.",
        len(tables),
        f" (schema '{schema}')" if schema else "",
    )
    return tables


def load_tables(database_url: str, schema: Optional[str] = None) -> List[TableDescriptor]:
    """Open *database_url*, read its tables, and dispose of the engine."""
    engine: Engine = create_engine(database_url)
    try:
        return get_tables(engine, schema=schema)
    finally:
        engine.dispose()


def tables_from_raw(raw: Any) -> List[TableDescriptor]:
    """
    Build descriptors from a catalog dump.

    *raw* is either a list of table mappings or a mapping with a ``tables``
    key.  Table entries without ``fields`` are kept; the orchestrator skips
    them.

    Raises:
        ValueError: If the structure is not recognised or an entry is invalid.
    """
    entries: Any = raw
    if isinstance(raw, Mapping):
        if "tables" not in raw:
            raise ValueError("Catalog mapping has no 'tables' key.")
        entries = raw["tables"]

    if not isinstance(entries, list):
        raise ValueError(
            f"Expected a list of tables, got {type(entries).__name__}."
        )

    tables: List[TableDescriptor] = []
    for position, entry in enumerate(entries):
        try:
            tables.append(TableDescriptor.model_validate(entry))
        except ValidationError as exc:
            raise ValueError(f"Invalid table entry #{position}: {exc}") from exc
    return tables


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "KEY_MULTIPLE",
    "KEY_PRIMARY",
    "KEY_UNIQUE",
    "get_tables",
    "load_tables",
    "tables_from_raw",
]

logger.debug("crudgen.catalog loaded.")
