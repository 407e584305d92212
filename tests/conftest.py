"""
tests/conftest.py
Shared fixtures for the crudgen test suite.

Real file I/O is performed inside temporary directories managed by pytest's
tmp_path fixture.  Generated modules are imported from disk and mounted on a
FastAPI app with a recording connection in place of a real query executor.
"""

from __future__ import annotations

import copy
import importlib.util
import pathlib
from types import ModuleType
from typing import Any, Callable, Dict, List, Tuple

import pytest
import yaml

from crudgen.models import FieldSpec, TableDescriptor


# ---------------------------------------------------------------------------
# Raw catalog data
# ---------------------------------------------------------------------------

_RAW_CATALOG: Dict[str, Any] = {
    "tables": [
        {
            "name": "users",
            "fields": [
                {"Field": "id", "Type": "int(11)", "Key": "PRI"},
                {"Field": "email", "Type": "varchar(255)", "Key": "UNI"},
                {"Field": "name", "Type": "varchar(100)", "Key": ""},
            ],
        },
        {
            "name": "orders",
            "fields": [
                {"Field": "id", "Type": "int(11)", "Key": "PRI"},
                {"Field": "user_id", "Type": "int(11)", "Key": "MUL"},
                {"Field": "total", "Type": "decimal(10,2)", "Key": None},
            ],
        },
        {"name": "broken_view"},
        {
            "name": "sessions",
            "fields": [
                {"Field": "token", "Type": "char(64)", "Key": "PRI"},
            ],
        },
    ]
}


@pytest.fixture()
def raw_catalog() -> Dict[str, Any]:
    """A catalog dump in SHOW COLUMNS shape; deep-copied per test."""
    return copy.deepcopy(_RAW_CATALOG)


@pytest.fixture()
def catalog_yaml_path(raw_catalog: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the catalog dump to a temporary YAML file and return its path."""
    path = tmp_path / "tables.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(raw_catalog, fh, default_flow_style=False)
    return path


# ---------------------------------------------------------------------------
# Table descriptors
# ---------------------------------------------------------------------------


@pytest.fixture()
def users_table() -> TableDescriptor:
    return TableDescriptor(
        name="users",
        fields=(
            FieldSpec(name="id", type="int(11)", key_role="PRI"),
            FieldSpec(name="email", type="varchar(255)", key_role="UNI"),
            FieldSpec(name="name", type="varchar(100)"),
        ),
    )


@pytest.fixture()
def orders_table() -> TableDescriptor:
    return TableDescriptor(
        name="orders",
        fields=(
            FieldSpec(name="id", type="int(11)", key_role="PRI"),
            FieldSpec(name="user_id", type="int(11)", key_role="MUL"),
            FieldSpec(name="total", type="decimal(10,2)"),
        ),
    )


@pytest.fixture()
def fieldless_table() -> TableDescriptor:
    return TableDescriptor(name="broken_view")


# ---------------------------------------------------------------------------
# Output directory
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """A not-yet-existing nested output directory inside tmp_path."""
    return tmp_path / "api" / "routes" / "gen" / "crud"


# ---------------------------------------------------------------------------
# Completion callback recorder
# ---------------------------------------------------------------------------


class CallbackRecorder:
    """Callable that records every invocation and optional side checks."""

    def __init__(self, check: Callable[[Any], None] = lambda report: None) -> None:
        self.calls: List[Any] = []
        self._check = check

    def __call__(self, report: Any) -> None:
        self._check(report)
        self.calls.append(report)


@pytest.fixture()
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


# ---------------------------------------------------------------------------
# Generated module helpers
# ---------------------------------------------------------------------------


class RecordingConnection:
    """Stands in for the query executor used by generated modules."""

    def __init__(self) -> None:
        self.queries: List[Tuple[str, Dict[str, Any]]] = []

    def query(self, statement: str, params: Dict[str, Any]) -> Dict[str, Any]:
        self.queries.append((statement, params))
        return {"statement": statement, "params": params}


@pytest.fixture()
def connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture()
def load_module() -> Callable[[pathlib.Path], ModuleType]:
    """Import a generated module straight from its file."""

    def _load(path: pathlib.Path) -> ModuleType:
        spec = importlib.util.spec_from_file_location(f"generated_{path.stem}", path)
        assert spec is not None and spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    return _load
