# File: crudgen/generator.py
"""
crudgen - Generation Orchestrator
==================================

Connects every phase together:

    Catalog → Filter → Statements → Route Module → File

Workflow::

    1. Ensure the output directory exists (fatal on failure).
    2. Walk the tables in catalog order; skip those that are not candidates
       (no fields, or named in ``exception_names``) and repeated names.
    3. For each candidate, build its ``StatementSet``, render its module and
       schedule the write on the ``ModuleEmitter``.
    4. Seal the ``WriteTracker``; it fires ``config.on_complete`` exactly once
       after the last scheduled write has landed, or right away when nothing
       was scheduled.
    5. Return a ``GenerationReport``.

Error handling strategy:
    - Directory creation errors are raised as ``FileSystemError``; no
      callback fires.
    - A failed write is recorded in the report and logged; the other tables
      are still written and the callback still fires.
    - Tables without fields are skipped silently.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set

import yaml
from pydantic import ValidationError

from crudgen.catalog import load_tables, tables_from_raw
from crudgen.exporters import (
    FileRecord,
    ModuleEmitter,
    WriteTracker,
    ensure_directory,
)
from crudgen.models import (
    GenerationConfig,
    GeneratorSettings,
    StatementSet,
    TableDescriptor,
)
from crudgen.statements import build_statement_set
from crudgen.templates import RouteTemplate
from crudgen.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Outcome of one ``generate()`` run.

    Handed to ``on_complete`` and returned to the caller.  ``success`` is
    False when any write failed.
    """

    success: bool = False
    output_directory: str = ""
    total_tables: int = 0
    total_elapsed_seconds: float = 0.0

    files: List[FileRecord] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)
    write_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def generated_tables(self) -> List[str]:
        return [record.table_name for record in self.files]

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_bytes(self) -> int:
        return sum(record.size_bytes for record in self.files)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  crudgen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Tables in catalog:{self.total_tables:>5d}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")

        if self.skipped_tables:
            lines.append(f"{'─'*60}")
            lines.append(f"  Skipped Tables ({len(self.skipped_tables)}):")
            for name in self.skipped_tables:
                lines.append(f"    ⊘ {name}")

        if self.write_errors:
            lines.append(f"{'─'*60}")
            lines.append(f"  Write Errors ({len(self.write_errors)}):")
            for name, err in self.write_errors.items():
                lines.append(f"    ✗ {name}: {err}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# File loaders
# ---------------------------------------------------------------------------


def load_data_file(path: Path) -> Any:
    """
    Load a JSON or YAML file, dispatching on the extension.

    Unknown extensions are parsed as YAML, which also accepts JSON.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    text: str = path.read_text(encoding="utf-8")

    if path.suffix.lower() == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc


def load_catalog_file(path: Path) -> List[TableDescriptor]:
    """Load a catalog dump (JSON/YAML) into table descriptors."""
    return tables_from_raw(load_data_file(path))


def parse_raw_settings(raw: Any) -> GeneratorSettings:
    """
    Parse settings from a raw mapping.

    Accepts a flat mapping or the nested layout::

        generator:
          crud:
            exceptions: [sessions]
            output_directory: routes/gen/crud
        mysql:
          database: shop

    Raises:
        ValueError: If the structure or any value is invalid.
    """
    if raw is None:
        return GeneratorSettings()
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a mapping at top level, got {type(raw).__name__}."
        )

    data: Dict[str, Any] = dict(raw)
    generator_section: Any = raw.get("generator")
    if isinstance(generator_section, dict):
        crud_section: Any = generator_section.get("crud", generator_section)
        if isinstance(crud_section, dict):
            data.update(crud_section)

    for key in ("mysql", "db", "database"):
        section: Any = raw.get(key)
        if not isinstance(section, dict):
            continue
        data.pop(key, None)
        name: Any = section.get("database", section.get("name"))
        if name is not None:
            data["database"] = name
        if section.get("url") is not None:
            data.setdefault("database_url", section["url"])

    try:
        return GeneratorSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Settings validation failed: {exc}") from exc


def load_settings_file(path: Path) -> GeneratorSettings:
    """Load generator settings from a JSON/YAML file."""
    return parse_raw_settings(load_data_file(path))


# ---------------------------------------------------------------------------
# Candidate predicate
# ---------------------------------------------------------------------------


def is_candidate(table: TableDescriptor, exception_names: FrozenSet[str]) -> bool:
    """A table is generated iff it has fields and is not excepted."""
    return table.has_fields and table.name not in exception_names


# ---------------------------------------------------------------------------
# CRUDGenerator - orchestrator
# ---------------------------------------------------------------------------


class CRUDGenerator:
    """
    Generation pipeline orchestrator.

    Usage::

        generator = CRUDGenerator(max_workers=4)
        report = generator.generate(tables, GenerationConfig(
            output_directory=Path("./routes/gen/crud"),
            exception_names=frozenset({"sessions"}),
            on_complete=lambda report: print(report.summary()),
        ))

    The generator holds no per-run state; create once, call ``generate()``
    any number of times.
    """

    def __init__(
        self,
        *,
        max_workers: int = 0,
        atomic_writes: bool = True,
        template: Optional[RouteTemplate] = None,
    ) -> None:
        """
        Initialise the generator.

        Args:
            max_workers: Thread-pool size for file writes (0 = synchronous).
            atomic_writes: Write through a temporary file and rename.
            template: Route module renderer to use.
        """
        if max_workers < 0:
            raise ValueError(f"max_workers must be >= 0, got {max_workers}.")
        self._max_workers: int = max_workers
        self._atomic_writes: bool = atomic_writes
        self._template: RouteTemplate = template or RouteTemplate()

        logger.debug(
            "CRUDGenerator initialised: workers=%d, atomic=%s.",
            max_workers,
            atomic_writes,
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate(
        self,
        tables: Sequence[TableDescriptor],
        config: GenerationConfig,
    ) -> GenerationReport:
        """
        Generate one routing module per candidate table.

        Blocks until every write has finished and ``config.on_complete`` has
        run.

        Raises:
            FileSystemError: If the output directory cannot be created.
        """
        started: float = time.perf_counter()
        output_dir: Path = Path(config.output_directory)
        report: GenerationReport = GenerationReport(
            output_directory=str(output_dir),
            total_tables=len(tables),
        )

        ensure_directory(output_dir)

        tracker: WriteTracker = WriteTracker(
            partial(self._complete, config, report, started)
        )
        seen: Set[str] = set()

        with ModuleEmitter(
            output_dir,
            max_workers=self._max_workers,
            atomic_writes=self._atomic_writes,
        ) as emitter:
            for table in tables:
                if not is_candidate(table, config.exception_names):
                    self._skip(table, config, report)
                    continue
                if table.name in seen:
                    logger.warning(
                        "Table '%s' appears more than once in the catalog; "
                        "keeping the first definition.",
                        table.name,
                    )
                    report.skipped_tables.append(table.name)
                    continue
                seen.add(table.name)

                text: str = self.render_table(table)
                path: Path = emitter.module_path(table.name, config.module_extension)
                tracker.track(
                    emitter.write_module(path, text, table.name),
                    partial(self._record, report, table.name),
                )

            tracker.seal()
            tracker.wait()

        return report

    def generate_from_file(
        self,
        catalog_path: Path,
        config: GenerationConfig,
    ) -> GenerationReport:
        """Load a catalog dump and generate from it."""
        with Timer("load_catalog"):
            tables: List[TableDescriptor] = load_catalog_file(Path(catalog_path))
        logger.info("Loaded %d table(s) from %s.", len(tables), catalog_path)
        return self.generate(tables, config)

    def generate_from_database(
        self,
        database_url: str,
        config: GenerationConfig,
        *,
        schema: Optional[str] = None,
    ) -> GenerationReport:
        """Read the live catalog of *database_url* and generate from it."""
        with Timer("read_catalog"):
            tables: List[TableDescriptor] = load_tables(database_url, schema=schema)
        return self.generate(tables, config)

    def render_table(self, table: TableDescriptor) -> str:
        """Build the statements for *table* and render its module text."""
        names: List[str] = table.field_names
        statements: StatementSet = build_statement_set(table.name, names)
        return self._template.render(
            table.name,
            names,
            table.field_types,
            table.key_roles,
            statements,
        )

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    @staticmethod
    def _skip(
        table: TableDescriptor,
        config: GenerationConfig,
        report: GenerationReport,
    ) -> None:
        report.skipped_tables.append(table.name)
        if not table.has_fields:
            logger.debug("Skipping '%s': no fields.", table.name)
        else:
            logger.info("Skipping '%s': listed in exceptions.", table.name)

    @staticmethod
    def _record(report: GenerationReport, table_name: str, future: Any) -> None:
        exc: Optional[BaseException] = future.exception()
        if exc is None:
            report.files.append(future.result())
            return
        report.write_errors[table_name] = str(exc)
        logger.error("Failed to write module for '%s': %s", table_name, exc)

    @staticmethod
    def _complete(
        config: GenerationConfig,
        report: GenerationReport,
        started: float,
    ) -> None:
        report.total_elapsed_seconds = time.perf_counter() - started
        report.success = not report.write_errors
        logger.info(
            "CRUD generation done: %d module(s), %d skipped, %d failed in %.3fs.",
            report.total_files,
            len(report.skipped_tables),
            len(report.write_errors),
            report.total_elapsed_seconds,
        )
        if config.on_complete is not None:
            config.on_complete(report)


def generate(
    tables: Sequence[TableDescriptor],
    config: GenerationConfig,
    *,
    max_workers: int = 0,
) -> GenerationReport:
    """Module-level shortcut for ``CRUDGenerator().generate()``."""
    return CRUDGenerator(max_workers=max_workers).generate(tables, config)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CRUDGenerator",
    "GenerationReport",
    "generate",
    "is_candidate",
    "load_catalog_file",
    "load_data_file",
    "load_settings_file",
    "parse_raw_settings",
]

logger.debug("crudgen.generator loaded.")
