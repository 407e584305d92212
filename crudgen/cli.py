# File: crudgen/cli.py
"""
crudgen - Command-Line Interface
=================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # From a catalog dump
    python -m crudgen --catalog tables.yaml --output ./routes/gen/crud

    # From a live database, skipping two tables
    python -m crudgen --database-url mysql+pymysql://u:p@localhost/shop \\
        -x sessions -x migrations -v

    # Settings file, with a CLI override
    python -m crudgen --settings crudgen.yaml --catalog tables.json -o ./out

Exit codes:
    0 — success
    1 — one or more modules could not be written
    2 — filesystem error (output directory)
    3 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from pydantic import ValidationError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_WRITE_ERROR: int = 1
EXIT_FILESYSTEM_ERROR: int = 2
EXIT_INPUT_ERROR: int = 3


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root crudgen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("crudgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from crudgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="crudgen",
        description=(
            "crudgen — CRUD route generator.\n\n"
            "Reads table descriptors from a database catalog and writes one "
            "FastAPI routing module per table."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -c tables.yaml -o ./routes/gen/crud\n"
            "  %(prog)s --database-url sqlite:///shop.db -x sessions -v\n"
            "  %(prog)s --settings crudgen.yaml -c tables.json\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"crudgen v{__version__}",
    )

    # --- Catalog source ---
    source_group = parser.add_argument_group("catalog source")
    source = source_group.add_mutually_exclusive_group()
    source.add_argument(
        "-c", "--catalog",
        type=str,
        default=None,
        metavar="PATH",
        help="Catalog dump (JSON or YAML) listing tables and their fields.",
    )
    source.add_argument(
        "--database-url",
        type=str,
        default=None,
        metavar="URL",
        help="SQLAlchemy database URL to read the live catalog from.",
    )
    source_group.add_argument(
        "--schema",
        type=str,
        default=None,
        metavar="NAME",
        help="Database (schema) to read; defaults to the connection's own.",
    )

    # --- Config ---
    config_group = parser.add_argument_group("configuration")
    config_group.add_argument(
        "--settings",
        type=str,
        default=None,
        metavar="PATH",
        help="Settings file (JSON or YAML). CLI flags take precedence.",
    )
    config_group.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory receiving the generated modules.",
    )
    config_group.add_argument(
        "-x", "--exclude",
        action="append",
        default=None,
        metavar="TABLE",
        help="Table to skip; may be given several times.",
    )
    config_group.add_argument(
        "--extension",
        type=str,
        default=None,
        metavar="EXT",
        help="File extension for generated modules (default: py).",
    )
    config_group.add_argument(
        "-j", "--workers",
        type=int,
        default=0,
        metavar="N",
        help="Write modules on N threads (default: 0, synchronous).",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Settings resolution
# ---------------------------------------------------------------------------


def _build_settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Build a settings override dictionary from CLI arguments."""
    overrides: Dict[str, Any] = {}

    if args.output is not None:
        overrides["output_directory"] = args.output
    if args.exclude:
        overrides["exceptions"] = list(args.exclude)
    if args.database_url is not None:
        overrides["database_url"] = args.database_url
    if args.schema is not None:
        overrides["database"] = args.schema
    if args.extension is not None:
        overrides["module_extension"] = args.extension

    return overrides


def _resolve_settings(args: argparse.Namespace) -> "GeneratorSettings":
    from crudgen.generator import load_settings_file
    from crudgen.models import GeneratorSettings

    settings: GeneratorSettings = GeneratorSettings()
    if args.settings is not None:
        settings = load_settings_file(Path(args.settings).resolve())
        logger.info("Loaded settings from %s.", args.settings)

    return settings.merged(_build_settings_overrides(args))


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(args: argparse.Namespace) -> int:
    """
    Run the full generation pipeline.

    Returns the appropriate exit code.
    """
    from crudgen.exporters import FileSystemError
    from crudgen.generator import CRUDGenerator, GenerationReport
    from crudgen.models import GenerationConfig, GeneratorSettings

    try:
        settings: GeneratorSettings = _resolve_settings(args)
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        logger.error("Invalid settings: %s", exc)
        return EXIT_INPUT_ERROR

    if args.catalog is None and settings.database_url is None:
        logger.error(
            "No catalog source. Use -c/--catalog, --database-url, "
            "or set database_url in the settings file."
        )
        return EXIT_INPUT_ERROR

    config: GenerationConfig = settings.to_generation_config()
    generator: CRUDGenerator = CRUDGenerator(max_workers=args.workers)

    logger.info("Output:     %s", settings.output_directory)
    logger.info("Exceptions: %s", ", ".join(settings.exceptions) or "-")

    try:
        if args.catalog is not None:
            report: GenerationReport = generator.generate_from_file(
                Path(args.catalog).resolve(), config
            )
        else:
            report = generator.generate_from_database(
                settings.database_url, config, schema=settings.database
            )
    except FileSystemError as exc:
        logger.error("%s", exc)
        return EXIT_FILESYSTEM_ERROR
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to read catalog: %s", exc)
        return EXIT_INPUT_ERROR

    print(report.summary())
    return EXIT_SUCCESS if report.success else EXIT_WRITE_ERROR


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)
    if args.quiet:
        logging.getLogger("crudgen").setLevel(logging.ERROR)

    if args.workers < 0:
        logger.error("--workers must be >= 0.")
        sys.exit(EXIT_INPUT_ERROR)

    exit_code: int = _run_generation(args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


def main() -> None:
    """Console-script entry point."""
    cli_main()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "main",
    "EXIT_SUCCESS",
    "EXIT_WRITE_ERROR",
    "EXIT_FILESYSTEM_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("crudgen.cli loaded.")
