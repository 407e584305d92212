# File: crudgen/statements.py
"""
crudgen - Statement Template Builder
=====================================
Pure functions producing the four statement templates for a table.

The templates are not executable SQL: they carry symbolic placeholder tokens
that the query executor resolves from the request payload at call time.

Tokens (kept verbatim, the executor depends on them):
    ``:C``          column list of a read
    ``:OU``         filter of a read
    ``:OR``         filter of a delete
    ``:OF``         filter of an update
    ``:V_<field>``  value bound to ``<field>`` (insert values, update SET)
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from crudgen.models import StatementSet

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.statements")

# ---------------------------------------------------------------------------
# Placeholder tokens
# ---------------------------------------------------------------------------

COLUMNS_TOKEN: str = ":C"
READ_FILTER_TOKEN: str = ":OU"
DELETE_FILTER_TOKEN: str = ":OR"
UPDATE_FILTER_TOKEN: str = ":OF"
VALUE_PREFIX: str = ":V_"

_SEPARATOR: str = ", "


def value_placeholder(field_name: str) -> str:
    """Return the value placeholder for *field_name*, e.g. ``:V_email``."""
    return f"{VALUE_PREFIX}{field_name}"


def select_statement(table_name: str) -> str:
    return f"SELECT {COLUMNS_TOKEN} FROM {table_name} WHERE {READ_FILTER_TOKEN}"


def insert_statement(table_name: str, fields: Sequence[str]) -> str:
    """
    Build the insert template.

    Every field is listed once, in order, both as a column and as a value
    placeholder.

        >>> insert_statement("users", ["a", "b"])
        'INSERT INTO users (a, b) VALUES (:V_a, :V_b)'
    """
    columns: str = _SEPARATOR.join(fields)
    values: str = _SEPARATOR.join(value_placeholder(f) for f in fields)
    return f"INSERT INTO {table_name} ({columns}) VALUES ({values})"


def delete_statement(table_name: str) -> str:
    return f"DELETE FROM {table_name} WHERE {DELETE_FILTER_TOKEN}"


def update_statement(table_name: str, fields: Sequence[str]) -> str:
    """
    Build the update template with one ``field = :V_field`` assignment per
    field.

        >>> update_statement("users", ["a", "b"])
        'UPDATE users SET a = :V_a, b = :V_b WHERE :OF'
    """
    assignments: str = _SEPARATOR.join(
        f"{f} = {value_placeholder(f)}" for f in fields
    )
    return f"UPDATE {table_name} SET {assignments} WHERE {UPDATE_FILTER_TOKEN}"


def build_statement_set(table_name: str, fields: Sequence[str]) -> StatementSet:
    """Build all four templates for one table."""
    statements: StatementSet = StatementSet(
        select=select_statement(table_name),
        insert=insert_statement(table_name, fields),
        delete=delete_statement(table_name),
        update=update_statement(table_name, fields),
    )
    logger.debug(
        "Built statements for '%s' (%d fields).", table_name, len(fields)
    )
    return statements


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "COLUMNS_TOKEN",
    "DELETE_FILTER_TOKEN",
    "READ_FILTER_TOKEN",
    "UPDATE_FILTER_TOKEN",
    "VALUE_PREFIX",
    "build_statement_set",
    "delete_statement",
    "insert_statement",
    "select_statement",
    "update_statement",
    "value_placeholder",
]

logger.debug("crudgen.statements loaded.")
