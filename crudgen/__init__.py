# File: crudgen/__init__.py
"""
crudgen — Schema-driven CRUD Route Generator
=============================================

Reads table descriptors from a relational catalog and writes one FastAPI
routing module per table.  Each module exposes four ``POST`` handlers
(``/add``, ``/get``, ``/update``, ``/delete``) wired to parameterized
statement templates that a query executor resolves at request time.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ CRUDGenerator │────▶│  RouteTemplate   │
    │   (cli.py)   │     │ (generator.py)│     │  (templates.py)  │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
                    ┌────────────┼────────────┐
                    ▼            ▼            ▼
             ┌──────────┐ ┌────────────┐ ┌───────────┐
             │ catalog  │ │ statements │ │ exporters │
             │  (.py)   │ │   (.py)    │ │  (.py)    │
             └──────────┘ └────────────┘ └───────────┘

Usage::

    # As a library
    from crudgen import GenerationConfig, generate, load_tables
    tables = load_tables("sqlite:///shop.db")
    generate(tables, GenerationConfig(output_directory=Path("routes")))

    # From the command line
    python -m crudgen --catalog tables.yaml --output ./routes -v
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from crudgen.models import (
    FieldSpec,
    GenerationConfig,
    GeneratorSettings,
    StatementSet,
    TableDescriptor,
)
from crudgen.statements import (
    build_statement_set,
    delete_statement,
    insert_statement,
    select_statement,
    update_statement,
)
from crudgen.templates import RouteTemplate, render_route_module
from crudgen.exporters import (
    FileRecord,
    FileSystemError,
    ModuleEmitter,
    WriteTracker,
    ensure_directory,
)
from crudgen.catalog import get_tables, load_tables, tables_from_raw
from crudgen.generator import (
    CRUDGenerator,
    GenerationReport,
    generate,
    is_candidate,
    load_catalog_file,
    load_settings_file,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "CRUDGenerator",
    "GenerationReport",
    "generate",
    "is_candidate",
    "load_catalog_file",
    "load_settings_file",
    # Models
    "FieldSpec",
    "GenerationConfig",
    "GeneratorSettings",
    "StatementSet",
    "TableDescriptor",
    # Statements
    "build_statement_set",
    "delete_statement",
    "insert_statement",
    "select_statement",
    "update_statement",
    # Rendering
    "RouteTemplate",
    "render_route_module",
    # Emitter
    "FileRecord",
    "FileSystemError",
    "ModuleEmitter",
    "WriteTracker",
    "ensure_directory",
    # Catalog
    "get_tables",
    "load_tables",
    "tables_from_raw",
]
