# File: crudgen/exporters.py
"""
crudgen - File Emitter
=======================

Responsible for:
    1. Creating the output directory (recursive, idempotent).
    2. Writing rendered modules durably (write-to-temp, fsync, rename).
    3. Reporting when each write has completed, through a ``Future``.
    4. Aggregating completion of all scheduled writes (``WriteTracker``).

Filesystem failures are raised as ``FileSystemError``.  They are never
swallowed: a failed write resolves its future with the error, and the caller
decides what to do with it.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from crudgen.utils import count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.exporters")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FileSystemError(OSError):
    """A directory could not be created or a module could not be written."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path: Optional[str] = str(path) if path is not None else None


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single written module."""

    table_name: str
    path: str
    size_bytes: int
    line_count: int
    sha256: str


# ---------------------------------------------------------------------------
# Directory handling
# ---------------------------------------------------------------------------


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Create *path* and all missing parents.

    Succeeds silently when the directory already exists.  Any other failure
    (permission denied, a regular file in the way, ...) raises
    ``FileSystemError``.
    """
    target: Path = Path(path)
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(
            f"Failed to create directory {target}: {exc}", target
        ) from exc
    logger.debug("Ensured directory exists: %s", target)
    return target


# ---------------------------------------------------------------------------
# ModuleEmitter
# ---------------------------------------------------------------------------


class ModuleEmitter:
    """
    Writes rendered modules into one output directory.

    With ``max_workers=0`` every write happens synchronously inside
    ``write_module`` and the returned future is already resolved.  With
    ``max_workers > 0`` writes run on a thread pool.

    Usage::

        with ModuleEmitter(Path("./routes")) as emitter:
            future = emitter.write_module(emitter.module_path("users"), text)
            record = future.result()
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        max_workers: int = 0,
        atomic_writes: bool = True,
    ) -> None:
        if max_workers < 0:
            raise ValueError(f"max_workers must be >= 0, got {max_workers}.")
        self._output_dir: Path = Path(output_dir)
        self._atomic_writes: bool = atomic_writes
        self._executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="crudgen-write")
            if max_workers > 0
            else None
        )

        logger.debug(
            "ModuleEmitter initialised: output_dir=%s, workers=%d, atomic=%s.",
            self._output_dir,
            max_workers,
            atomic_writes,
        )

    # -----------------------------------------------------------------
    # Context manager
    # -----------------------------------------------------------------

    def __enter__(self) -> "ModuleEmitter":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.close()

    def close(self) -> None:
        """Wait for pending writes and release the thread pool."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def module_path(self, table_name: str, extension: str = "py") -> Path:
        """Canonical file for a table: ``<output_dir>/<table>.<extension>``."""
        return self._output_dir / f"{table_name}.{extension.lstrip('.')}"

    def write_module(
        self,
        path: Path,
        text: str,
        table_name: Optional[str] = None,
    ) -> "Future[FileRecord]":
        """
        Persist *text* to *path*, replacing any existing file.

        The returned future resolves with a ``FileRecord`` once the data is
        on disk, or with ``FileSystemError`` if the write failed.
        """
        name: str = table_name if table_name is not None else path.stem

        if self._executor is not None:
            return self._executor.submit(self._write, path, text, name)

        future: "Future[FileRecord]" = Future()
        try:
            record: FileRecord = self._write(path, text, name)
        except FileSystemError as exc:
            future.set_exception(exc)
        else:
            future.set_result(record)
        return future

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write(self, path: Path, text: str, table_name: str) -> FileRecord:
        encoded: bytes = text.encode("utf-8")
        try:
            if self._atomic_writes:
                self._atomic_write(path, encoded)
            else:
                with open(path, "wb") as fh:
                    fh.write(encoded)
                    fh.flush()
                    os.fsync(fh.fileno())
        except OSError as exc:
            raise FileSystemError(f"Failed to write {path}: {exc}", path) from exc

        record: FileRecord = FileRecord(
            table_name=table_name,
            path=str(path),
            size_bytes=len(encoded),
            line_count=count_lines(text),
            sha256=sha256_hex(text),
        )
        logger.debug(
            "Wrote module: %s (%d bytes, %d lines).",
            path,
            record.size_bytes,
            record.line_count,
        )
        return record

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write data to target_path atomically using a temporary file.

        The temp file lives in the target directory so ``os.replace`` stays
        on one filesystem.
        """
        fd, tmp_path = tempfile.mkstemp(
            dir=str(target_path.parent),
            prefix=f".{target_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, str(target_path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


# ---------------------------------------------------------------------------
# WriteTracker
# ---------------------------------------------------------------------------


class WriteTracker:
    """
    Counts scheduled and completed writes and fires a callback once.

    The callback runs exactly once, when ``seal()`` has been called and every
    tracked future has resolved.  With nothing tracked it runs inside
    ``seal()`` itself.  An exception raised by the callback is re-raised from
    ``wait()``.
    """

    def __init__(self, on_complete: Callable[[], None]) -> None:
        self._on_complete: Callable[[], None] = on_complete
        self._lock: threading.Lock = threading.Lock()
        self._done: threading.Event = threading.Event()
        self._scheduled: int = 0
        self._completed: int = 0
        self._sealed: bool = False
        self._fired: bool = False
        self._error: Optional[BaseException] = None

    @property
    def scheduled(self) -> int:
        return self._scheduled

    @property
    def completed(self) -> int:
        return self._completed

    def track(
        self,
        future: "Future[FileRecord]",
        on_result: Optional[Callable[["Future[FileRecord]"], None]] = None,
    ) -> None:
        """
        Register a pending write.

        *on_result* is called with the resolved future, under the tracker's
        lock, before the write counts as completed.
        """
        with self._lock:
            if self._sealed:
                raise RuntimeError("Cannot track writes after seal().")
            self._scheduled += 1
        future.add_done_callback(lambda f: self._finish(f, on_result))

    def seal(self) -> None:
        """Declare that no further writes will be tracked."""
        with self._lock:
            self._sealed = True
            fire: bool = self._claim_fire()
        if fire:
            self._fire()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the callback has run.

        Returns False on timeout.  Re-raises the callback's exception.
        """
        finished: bool = self._done.wait(timeout)
        if self._error is not None:
            raise self._error
        return finished

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _finish(
        self,
        future: "Future[FileRecord]",
        on_result: Optional[Callable[["Future[FileRecord]"], None]],
    ) -> None:
        with self._lock:
            if on_result is not None:
                try:
                    on_result(future)
                except Exception as exc:
                    self._error = self._error or exc
                    logger.error("Write result handler failed: %s", exc, exc_info=True)
            self._completed += 1
            fire: bool = self._claim_fire()
        if fire:
            self._fire()

    def _claim_fire(self) -> bool:
        if self._sealed and not self._fired and self._completed == self._scheduled:
            self._fired = True
            return True
        return False

    def _fire(self) -> None:
        try:
            self._on_complete()
        except Exception as exc:
            self._error = self._error or exc
            logger.error("Completion callback failed: %s", exc, exc_info=True)
        finally:
            self._done.set()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FileRecord",
    "FileSystemError",
    "ModuleEmitter",
    "WriteTracker",
    "ensure_directory",
]

logger.debug("crudgen.exporters loaded.")
