# File: crudgen/templates.py
"""
crudgen - Route Module Renderer
================================
Turns one table's name, field list and ``StatementSet`` into the source text
of a FastAPI routing module.

Shape of a rendered module::

    \"\"\"
    CRUD routes for table ``users``.

    Fields:
        {int(11)} id - Key: PRI
        {varchar(255)} email
    ...
    \"\"\"

    from typing import Any, Dict, Optional

    from fastapi import APIRouter, Body

    INSERT_STATEMENT = "INSERT INTO users (id, email) VALUES (:V_id, :V_email)"
    ...

    def router(connection: Any) -> APIRouter:
        routes = APIRouter(prefix="/users", tags=["users"])

        @routes.post("/add")
        def create_row(body: Optional[Dict[str, Any]] = Body(default=None)) -> Any:
            return connection.query(INSERT_STATEMENT, body or {})
        ...
        return routes

**Contracts:**
    - Inputs are trusted; the orchestrator already filtered them.
    - Output is deterministic: identical inputs give byte-identical text.
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from crudgen.models import StatementSet
from crudgen.utils import escape_docstring_text, indent_lines, wrap_in_quotes

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "

FACTORY_NAME: str = "router"

# (path, handler name, statement constant, StatementSet attribute)
_ROUTES: Tuple[Tuple[str, str, str, str], ...] = (
    ("/add", "create_row", "INSERT_STATEMENT", "insert"),
    ("/get", "read_rows", "SELECT_STATEMENT", "select"),
    ("/update", "update_rows", "UPDATE_STATEMENT", "update"),
    ("/delete", "delete_rows", "DELETE_STATEMENT", "delete"),
)


def field_doc_line(field_name: str, field_type: str, key_role: str) -> str:
    """Return ``{type} name`` with a `` - Key: role`` suffix when keyed."""
    line: str = f"{{{field_type}}} {field_name}"
    if key_role:
        line += f" - Key: {key_role}"
    return escape_docstring_text(line)


class RouteTemplate:
    """
    Renders routing modules.

    Stateless apart from the indent unit, so one instance can be shared by
    any number of tables and threads.
    """

    def __init__(self, indent: str = _INDENT) -> None:
        self._indent: str = indent

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def render(
        self,
        table_name: str,
        fields: Sequence[str],
        field_types: Sequence[str],
        key_roles: Sequence[str],
        statements: StatementSet,
    ) -> str:
        """Render the complete module text for one table."""
        lines: List[str] = []
        lines.extend(self._header(table_name, fields, field_types, key_roles))
        lines.append("")
        lines.append("from typing import Any, Dict, Optional")
        lines.append("")
        lines.append("from fastapi import APIRouter, Body")
        lines.append("")
        lines.append(f"TABLE_NAME = {wrap_in_quotes(table_name)}")
        lines.append("")
        for _, _, constant, attr in _ROUTES:
            statement: str = getattr(statements, attr)
            lines.append(f"{constant} = {wrap_in_quotes(statement)}")
        lines.append("")
        lines.append("")
        lines.extend(self._factory(table_name))
        lines.append("")

        content: str = "\n".join(lines)
        logger.debug(
            "Rendered route module for '%s': %d lines.",
            table_name,
            content.count("\n"),
        )
        return content

    # -----------------------------------------------------------------
    # Internal: sections
    # -----------------------------------------------------------------

    def _header(
        self,
        table_name: str,
        fields: Sequence[str],
        field_types: Sequence[str],
        key_roles: Sequence[str],
    ) -> List[str]:
        lines: List[str] = ['"""']
        lines.append(
            f"CRUD routes for table ``{escape_docstring_text(table_name)}``."
        )
        lines.append("")
        lines.append("Fields:")
        for name, field_type, key_role in zip(fields, field_types, key_roles):
            lines.append(
                f"{self._indent}{field_doc_line(name, field_type, key_role)}"
            )
        lines.append("")
        lines.append("Auto-generated by crudgen. Do not edit.")
        lines.append('"""')
        return lines

    def _factory(self, table_name: str) -> List[str]:
        prefix: str = wrap_in_quotes(f"/{table_name}")
        tag: str = wrap_in_quotes(table_name)

        body: List[str] = []
        body.append(
            f'"""Return the ``/{escape_docstring_text(table_name)}`` '
            f'CRUD router bound to *connection*."""'
        )
        body.append(f"routes = APIRouter(prefix={prefix}, tags=[{tag}])")
        body.append("")
        for path, handler, constant, _ in _ROUTES:
            body.extend(self._handler(path, handler, constant))
            body.append("")
        body.append("return routes")

        lines: List[str] = [f"def {FACTORY_NAME}(connection: Any) -> APIRouter:"]
        lines.extend(indent_lines(body, size=len(self._indent)))
        return lines

    def _handler(self, path: str, handler: str, constant: str) -> List[str]:
        return [
            f"@routes.post({wrap_in_quotes(path)})",
            f"def {handler}(body: Optional[Dict[str, Any]] = Body(default=None)) -> Any:",
            f"{self._indent}return connection.query({constant}, body or {{}})",
        ]


_DEFAULT_TEMPLATE: RouteTemplate = RouteTemplate()


def render_route_module(
    table_name: str,
    fields: Sequence[str],
    field_types: Sequence[str],
    key_roles: Sequence[str],
    statements: StatementSet,
) -> str:
    """Render one table's routing module with the default template."""
    return _DEFAULT_TEMPLATE.render(
        table_name, fields, field_types, key_roles, statements
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FACTORY_NAME",
    "RouteTemplate",
    "field_doc_line",
    "render_route_module",
]

logger.debug("crudgen.templates loaded.")
