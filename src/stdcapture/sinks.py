"""
Rotating file sink.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .exceptions import InvalidArgumentError
from .formatters import PlainTextFormatter

DEFAULT_BYTE_LIMIT = 10 * 1024 * 1024
DEFAULT_FILE_COUNT = 5


class GenerationalFileHandler(RotatingFileHandler):
    """Rotating handler writing ``<stem>.0`` with older generations ``<stem>.1`` .. ``<stem>.N-1``.

    ``.0`` is always the live file. With a single generation the file is
    truncated on rollover instead of growing past the limit.
    """

    def __init__(self, stem: str | Path, byte_limit: int, file_count: int, append: bool = True):
        self.stem = os.path.abspath(os.fspath(stem))
        self.file_count = file_count
        previous_run = os.path.isfile(f"{self.stem}.0") and os.path.getsize(f"{self.stem}.0") > 0
        super().__init__(
            f"{self.stem}.0",
            mode="a",
            maxBytes=byte_limit,
            backupCount=file_count - 1,
            encoding="utf-8",
        )
        if not append and previous_run:
            self.doRollover()

    @property
    def pattern(self) -> str:
        return f"{self.stem}.%g"

    def generation_paths(self) -> list[Path]:
        return [Path(f"{self.stem}.{g}") for g in range(self.file_count)]

    def rotation_filename(self, default_name: str) -> str:
        # RotatingFileHandler names backups "<base>.<n>"; the base already ends in ".0".
        prefix = self.baseFilename + "."
        if default_name.startswith(prefix):
            return f"{self.stem}.{default_name[len(prefix):]}"
        return default_name

    def doRollover(self) -> None:
        if self.backupCount > 0:
            super().doRollover()
            return

        if self.stream:
            self.stream.close()
            self.stream = None
        mode, self.mode = self.mode, "w"
        try:
            self.stream = self._open()
        finally:
            self.mode = mode


def create_rotating_file_sink(
    process_id: str,
    directory: str | Path,
    append: bool = True,
    byte_limit: int = DEFAULT_BYTE_LIMIT,
    file_count: int = DEFAULT_FILE_COUNT,
    *,
    formatter: logging.Formatter | None = None,
) -> GenerationalFileHandler:
    """Build a size/count-bounded file handler for ``{directory}/{process_id}.log.%g``.

    When (approximately) ``byte_limit`` bytes have been written to ``.0`` the
    generations shift by one and the oldest is dropped. ``byte_limit=0``
    disables rotation. The directory must already exist.

    Args:
        process_id: Identifier used as the file name stem.
        directory: Existing, writable directory holding the generations.
        append: Continue the existing ``.0``. When false the existing
            generations are rotated away and the run starts with an empty ``.0``.
        byte_limit: Approximate maximum size of one generation, in bytes.
        file_count: Number of generations cycled through.
        formatter: Overrides the default :class:`PlainTextFormatter`.

    Raises:
        InvalidArgumentError: ``byte_limit < 0``, ``file_count < 1`` or a
            blank or path-like ``process_id``.
        OSError: The generation file cannot be opened or created.
    """
    if byte_limit < 0:
        raise InvalidArgumentError(f"byte_limit must be >= 0, got {byte_limit}")
    if file_count < 1:
        raise InvalidArgumentError(f"file_count must be >= 1, got {file_count}")
    if not process_id or not str(process_id).strip():
        raise InvalidArgumentError("process_id must not be empty")
    if os.sep in process_id or (os.altsep and os.altsep in process_id):
        raise InvalidArgumentError(f"process_id must not contain a path separator: {process_id!r}")

    handler = GenerationalFileHandler(
        Path(directory) / f"{process_id}.log",
        byte_limit=byte_limit,
        file_count=file_count,
        append=append,
    )
    handler.setFormatter(formatter or PlainTextFormatter())
    return handler
