# File: crudgen/models.py
"""
crudgen - Core Data Models
===========================
Pydantic V2 models for the catalog entries and generation settings that flow
through the pipeline: Catalog → Statements → Route Module → File.

Every model here is frozen.  A ``GenerationConfig`` is built once per run and
passed explicitly to every step; nothing is kept in module-level state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.models")

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)

DEFAULT_OUTPUT_DIRECTORY: str = "routes/gen/crud"
DEFAULT_MODULE_EXTENSION: str = "py"


def _normalise_extension(value: str) -> str:
    """Strip leading dots; an extension made only of dots is rejected."""
    stripped: str = value.lstrip(".")
    if not stripped:
        raise ValueError("module_extension must not be empty.")
    return stripped


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------


class FieldSpec(BaseModel):
    """
    A single column as reported by the schema catalog.

    Accepts both the ``name`` / ``type`` / ``key_role`` spelling and the
    ``Field`` / ``Type`` / ``Key`` rows produced by MySQL's ``SHOW COLUMNS``.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("name", "Field", "column_name"),
        description="Column name.",
    )
    type: str = Field(
        default="",
        validation_alias=AliasChoices("type", "Type", "column_type"),
        description="Declared SQL type, e.g. 'int(11)'.",
    )
    key_role: str = Field(
        default="",
        validation_alias=AliasChoices("key_role", "keyRole", "key", "Key"),
        description="Key role ('PRI', 'UNI', 'MUL') or empty.",
    )

    @field_validator("type", "key_role", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def __repr__(self) -> str:
        key: str = f" [{self.key_role}]" if self.key_role else ""
        return f"<Field {self.name} {self.type}{key}>"


class TableDescriptor(BaseModel):
    """
    One table from the catalog.

    ``fields`` may be absent; such a descriptor is never generated.  An empty
    field list is normalised to ``None``.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("name", "table_name", "Name"),
        description="Table name.",
    )
    fields: Optional[Tuple[FieldSpec, ...]] = Field(
        default=None,
        validation_alias=AliasChoices("fields", "columns"),
        description="Ordered columns, or None when the catalog gave none.",
    )

    @field_validator("fields", mode="after")
    @classmethod
    def _empty_to_none(
        cls, v: Optional[Tuple[FieldSpec, ...]]
    ) -> Optional[Tuple[FieldSpec, ...]]:
        if v is not None and len(v) == 0:
            return None
        return v

    @property
    def has_fields(self) -> bool:
        return self.fields is not None

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields or ()]

    @property
    def field_types(self) -> List[str]:
        return [f.type for f in self.fields or ()]

    @property
    def key_roles(self) -> List[str]:
        return [f.key_role for f in self.fields or ()]

    def __repr__(self) -> str:
        count: str = str(len(self.fields)) if self.fields else "no"
        return f"<Table {self.name} ({count} fields)>"


# ---------------------------------------------------------------------------
# Statement set
# ---------------------------------------------------------------------------


class StatementSet(BaseModel):
    """The four statement templates for one table."""

    model_config = _FROZEN_CONFIG

    select: str
    insert: str
    delete: str
    update: str


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    Settings for a single generation run.

    ``on_complete`` is called exactly once with the run's
    ``GenerationReport`` after every scheduled write has finished.
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    output_directory: Path = Field(
        default=Path(DEFAULT_OUTPUT_DIRECTORY),
        description="Directory receiving one module per table.",
    )
    exception_names: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Table names that are never generated.",
    )
    on_complete: Optional[Callable[..., Any]] = Field(
        default=None,
        description="Completion callback, receives the GenerationReport.",
    )
    module_extension: str = Field(
        default=DEFAULT_MODULE_EXTENSION,
        min_length=1,
        description="File extension of generated modules (without dot).",
    )

    @field_validator("module_extension")
    @classmethod
    def _strip_dot(cls, v: str) -> str:
        return _normalise_extension(v)


class GeneratorSettings(BaseModel):
    """
    User-facing configuration surface, loaded from a settings file or built
    from CLI arguments.

    ``database`` is the target database (schema) identifier handed to the
    catalog accessor; the generator itself never reads it.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    output_directory: Path = Field(
        default=Path(DEFAULT_OUTPUT_DIRECTORY),
        validation_alias=AliasChoices("output_directory", "output", "dir"),
    )
    exceptions: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("exceptions", "exception_names", "exclude"),
    )
    database_url: Optional[str] = Field(default=None)
    database: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("database", "schema"),
    )
    module_extension: str = Field(default=DEFAULT_MODULE_EXTENSION, min_length=1)

    @field_validator("module_extension")
    @classmethod
    def _strip_dot(cls, v: str) -> str:
        return _normalise_extension(v)

    @field_validator("exceptions", mode="before")
    @classmethod
    def _coerce_exceptions(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    def to_generation_config(
        self,
        on_complete: Optional[Callable[..., Any]] = None,
    ) -> GenerationConfig:
        """Build the immutable per-run config from these settings."""
        return GenerationConfig(
            output_directory=self.output_directory,
            exception_names=frozenset(self.exceptions),
            on_complete=on_complete,
            module_extension=self.module_extension,
        )

    def merged(self, overrides: Dict[str, Any]) -> "GeneratorSettings":
        """Return a copy with the non-None *overrides* applied."""
        data: Dict[str, Any] = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return GeneratorSettings.model_validate(data)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_MODULE_EXTENSION",
    "DEFAULT_OUTPUT_DIRECTORY",
    "FieldSpec",
    "GenerationConfig",
    "GeneratorSettings",
    "StatementSet",
    "TableDescriptor",
]

logger.debug("crudgen.models loaded.")
