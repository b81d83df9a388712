"""Persistence and progress collaborators for batch runs."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from dpistamp.errors import PersistenceError

logger = logging.getLogger(__name__)


@runtime_checkable
class PersistenceSink(Protocol):
    """Accepts a named byte buffer for saving."""

    def save(self, data: bytes, filename: str) -> object:
        """Persist *data* under *filename*; the return value is informational."""
        ...


@runtime_checkable
class ProgressSink(Protocol):
    """Receives fire-and-forget progress notifications."""

    def progress(self, current: int, total: int, text: str) -> None:
        """Report that *current* of *total* items have been attempted."""
        ...


class DirectorySink:
    """Write outputs into a directory.

    Existing files are kept unless ``overwrite=True``; a clashing name gets a
    ``-1``, ``-2``... suffix instead.
    """

    def __init__(self, directory: str | Path, *, overwrite: bool = False) -> None:
        self.directory = Path(directory)
        self.overwrite = overwrite

    def _target(self, filename: str) -> Path:
        name = Path(filename).name
        if not name or name in (".", ".."):
            raise PersistenceError(
                f"Invalid output filename: {filename!r}",
                hint="Output names must be plain file names.",
            )
        path = self.directory / name
        if self.overwrite or not path.exists():
            return path
        stem, suffix = path.stem, path.suffix
        n = 1
        while True:
            candidate = path.with_name(f"{stem}-{n}{suffix}")
            if not candidate.exists():
                return candidate
            n += 1

    def save(self, data: bytes, filename: str) -> Path:
        """Write *data* and return the path actually written."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self._target(filename)
            path.write_bytes(data)
        except OSError as e:
            raise PersistenceError(
                f"Failed to save {filename}", hint=str(e)
            ) from e
        logger.debug("Saved %s (%d bytes)", path, len(data))
        return path


@dataclass
class MemorySink:
    """Keep saved buffers in memory, keyed by filename."""

    files: dict[str, bytes] = field(default_factory=dict)

    def save(self, data: bytes, filename: str) -> str:
        """Store *data* under *filename*, replacing any previous buffer."""
        self.files[filename] = data
        return filename


class LoggingProgress:
    """Report progress through the ``dpistamp`` logger."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def progress(self, current: int, total: int, text: str) -> None:
        """Log one progress line."""
        percentage = (current / total) * 100 if total > 0 else 0.0
        logger.log(self.level, "[%d/%d %.0f%%] %s", current, total, percentage, text)
