"""
tests/test_catalog.py
Tests for crudgen.catalog: live catalog reads through SQLAlchemy on a
temporary SQLite file, and catalog dumps loaded from plain data.
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict

import pytest
from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, create_engine

from crudgen.catalog import (
    KEY_MULTIPLE,
    KEY_PRIMARY,
    KEY_UNIQUE,
    get_tables,
    load_tables,
    tables_from_raw,
)
from crudgen.models import FieldSpec


@pytest.fixture()
def sqlite_url(tmp_path: pathlib.Path) -> str:
    """A SQLite file holding a small two-table schema."""
    url = f"sqlite:///{tmp_path / 'shop.db'}"
    metadata = MetaData()
    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("email", String(255), unique=True),
        Column("group_id", Integer, index=True),
        Column("name", String(100)),
    )
    Table(
        "orders",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("user_id", Integer, ForeignKey("users.id")),
    )
    engine = create_engine(url)
    metadata.create_all(engine)
    engine.dispose()
    return url


class TestLiveCatalog:
    def test_reads_every_table(self, sqlite_url: str) -> None:
        tables = load_tables(sqlite_url)
        assert sorted(t.name for t in tables) == ["orders", "users"]

    def test_columns_in_declaration_order(self, sqlite_url: str) -> None:
        users = {t.name: t for t in load_tables(sqlite_url)}["users"]
        assert users.field_names == ["id", "email", "group_id", "name"]

    def test_key_roles(self, sqlite_url: str) -> None:
        users = {t.name: t for t in load_tables(sqlite_url)}["users"]
        assert users.key_roles == [KEY_PRIMARY, KEY_UNIQUE, KEY_MULTIPLE, ""]

    def test_types_are_strings(self, sqlite_url: str) -> None:
        users = {t.name: t for t in load_tables(sqlite_url)}["users"]
        assert users.field_types[0] == "INTEGER"
        assert users.field_types[1] == "VARCHAR(255)"

    def test_get_tables_with_open_engine(self, sqlite_url: str) -> None:
        engine = create_engine(sqlite_url)
        try:
            tables = get_tables(engine)
        finally:
            engine.dispose()
        assert all(t.has_fields for t in tables)

    def test_empty_database(self, tmp_path: pathlib.Path) -> None:
        assert load_tables(f"sqlite:///{tmp_path / 'empty.db'}") == []


class TestRawCatalog:
    def test_mapping_with_tables_key(self, raw_catalog: Dict[str, Any]) -> None:
        tables = tables_from_raw(raw_catalog)
        assert [t.name for t in tables] == ["users", "orders", "broken_view", "sessions"]
        assert tables[2].fields is None

    def test_plain_list(self, raw_catalog: Dict[str, Any]) -> None:
        assert len(tables_from_raw(raw_catalog["tables"])) == 4

    def test_mapping_without_tables_key(self) -> None:
        with pytest.raises(ValueError, match="tables"):
            tables_from_raw({"views": []})

    def test_scalar_rejected(self) -> None:
        with pytest.raises(ValueError):
            tables_from_raw("users")

    def test_bad_entry_reports_position(self) -> None:
        with pytest.raises(ValueError, match="#1"):
            tables_from_raw([{"name": "ok"}, {"fields": []}])

    def test_columns_alias(self) -> None:
        tables = tables_from_raw([{"table_name": "t", "columns": [{"name": "a"}]}])
        assert tables[0].name == "t"
        assert tables[0].field_names == ["a"]


class TestFieldSpecAliases:
    def test_show_columns_spelling(self) -> None:
        spec = FieldSpec.model_validate({"Field": "id", "Type": "int(11)", "Key": "PRI"})
        assert (spec.name, spec.type, spec.key_role) == ("id", "int(11)", "PRI")

    def test_null_type_and_key(self) -> None:
        spec = FieldSpec.model_validate({"name": "x", "type": None, "key": None})
        assert spec.type == ""
        assert spec.key_role == ""

    def test_name_required(self) -> None:
        with pytest.raises(ValueError):
            FieldSpec.model_validate({"Type": "int"})
