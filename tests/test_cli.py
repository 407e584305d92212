"""
tests/test_cli.py
Tests for the crudgen command-line interface (exit codes and options).
"""

from __future__ import annotations

import logging
import pathlib
from typing import Iterator, List

import pytest
import yaml

from crudgen.cli import (
    EXIT_FILESYSTEM_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_WRITE_ERROR,
    cli_main,
)


@pytest.fixture(autouse=True)
def restore_crudgen_logger() -> Iterator[None]:
    """cli_main reconfigures the 'crudgen' logger; put it back afterwards."""
    crudgen_logger = logging.getLogger("crudgen")
    handlers = list(crudgen_logger.handlers)
    level = crudgen_logger.level
    propagate = crudgen_logger.propagate
    yield
    crudgen_logger.handlers[:] = handlers
    crudgen_logger.setLevel(level)
    crudgen_logger.propagate = propagate


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        cli_main(argv)
    return excinfo.value.code


def _modules(directory: pathlib.Path) -> List[str]:
    return sorted(p.stem for p in directory.glob("*.py") if p.is_file())


class TestExitCodes:
    def test_success(
        self,
        catalog_yaml_path: pathlib.Path,
        output_dir: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["-c", str(catalog_yaml_path), "-o", str(output_dir), "-q"])

        assert code == EXIT_SUCCESS
        assert _modules(output_dir) == ["orders", "sessions", "users"]
        assert "Generation Report" in capsys.readouterr().out

    def test_no_source(self, output_dir: pathlib.Path) -> None:
        assert _run(["-o", str(output_dir), "-q"]) == EXIT_INPUT_ERROR
        assert not output_dir.exists()

    def test_missing_catalog(self, tmp_path: pathlib.Path) -> None:
        code = _run(["-c", str(tmp_path / "missing.yaml"), "-o", str(tmp_path), "-q"])
        assert code == EXIT_INPUT_ERROR

    def test_missing_settings(self, catalog_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        code = _run(
            ["-c", str(catalog_yaml_path), "--settings", str(tmp_path / "nope.yaml"), "-q"]
        )
        assert code == EXIT_INPUT_ERROR

    def test_negative_workers(self, catalog_yaml_path: pathlib.Path) -> None:
        assert _run(["-c", str(catalog_yaml_path), "-j", "-1", "-q"]) == EXIT_INPUT_ERROR

    def test_output_under_a_file(
        self, catalog_yaml_path: pathlib.Path, tmp_path: pathlib.Path
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        code = _run(["-c", str(catalog_yaml_path), "-o", str(blocker / "out"), "-q"])
        assert code == EXIT_FILESYSTEM_ERROR

    def test_write_failure(
        self, catalog_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        (output_dir / "users.py").mkdir(parents=True)
        code = _run(["-c", str(catalog_yaml_path), "-o", str(output_dir), "-q"])

        assert code == EXIT_WRITE_ERROR
        assert _modules(output_dir) == ["orders", "sessions"]

    def test_dot_only_extension(
        self, catalog_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(
            ["-c", str(catalog_yaml_path), "-o", str(output_dir), "--extension", ".", "-q"]
        )
        assert code == EXIT_INPUT_ERROR
        assert not output_dir.exists()

    def test_dot_only_extension_in_settings(
        self, catalog_yaml_path: pathlib.Path, tmp_path: pathlib.Path
    ) -> None:
        settings_path = tmp_path / "crudgen.yaml"
        settings_path.write_text(yaml.dump({"module_extension": "."}), encoding="utf-8")
        code = _run(
            ["-c", str(catalog_yaml_path), "--settings", str(settings_path), "-q"]
        )
        assert code == EXIT_INPUT_ERROR

    def test_source_options_are_exclusive(self, catalog_yaml_path: pathlib.Path) -> None:
        # argparse usage error
        assert _run(["-c", str(catalog_yaml_path), "--database-url", "sqlite://"]) == 2


class TestOptions:
    def test_exclude_repeated(
        self, catalog_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(
            [
                "-c", str(catalog_yaml_path),
                "-o", str(output_dir),
                "-x", "sessions",
                "-x", "orders",
                "-q",
            ]
        )
        assert code == EXIT_SUCCESS
        assert _modules(output_dir) == ["users"]

    def test_settings_file_with_override(
        self,
        catalog_yaml_path: pathlib.Path,
        tmp_path: pathlib.Path,
    ) -> None:
        settings_path = tmp_path / "crudgen.yaml"
        settings_path.write_text(
            yaml.dump(
                {
                    "generator": {
                        "crud": {
                            "exceptions": ["sessions"],
                            "output_directory": str(tmp_path / "from_settings"),
                        }
                    }
                }
            ),
            encoding="utf-8",
        )
        override = tmp_path / "from_cli"

        code = _run(
            [
                "-c", str(catalog_yaml_path),
                "--settings", str(settings_path),
                "-o", str(override),
                "-q",
            ]
        )

        assert code == EXIT_SUCCESS
        assert _modules(override) == ["orders", "users"]
        assert not (tmp_path / "from_settings").exists()

    def test_extension(self, catalog_yaml_path: pathlib.Path, output_dir: pathlib.Path) -> None:
        code = _run(
            ["-c", str(catalog_yaml_path), "-o", str(output_dir), "--extension", "txt", "-q"]
        )
        assert code == EXIT_SUCCESS
        assert sorted(p.name for p in output_dir.iterdir()) == [
            "orders.txt",
            "sessions.txt",
            "users.txt",
        ]

    def test_threaded_workers(
        self, catalog_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(["-c", str(catalog_yaml_path), "-o", str(output_dir), "-j", "3", "-q"])
        assert code == EXIT_SUCCESS
        assert _modules(output_dir) == ["orders", "sessions", "users"]

    def test_database_url(self, tmp_path: pathlib.Path, output_dir: pathlib.Path) -> None:
        from sqlalchemy import Column, Integer, MetaData, Table, create_engine

        url = f"sqlite:///{tmp_path / 'shop.db'}"
        metadata = MetaData()
        Table("items", metadata, Column("id", Integer, primary_key=True))
        engine = create_engine(url)
        metadata.create_all(engine)
        engine.dispose()

        code = _run(["--database-url", url, "-o", str(output_dir), "-q"])
        assert code == EXIT_SUCCESS
        assert _modules(output_dir) == ["items"]
