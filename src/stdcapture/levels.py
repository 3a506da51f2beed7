"""
Capture levels for text written to the standard streams.

Both levels sit between ``logging.INFO`` and ``logging.WARNING`` so they pass
an INFO filter and are dropped by a WARNING one, like any other level.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from .exceptions import InvalidArgumentError, UnrecognizedSeverityError


class StdStreamLevel(IntEnum):
    """Levels tagging records that came from ``sys.stdout`` or ``sys.stderr``."""

    STDOUT = logging.INFO + 5
    STDERR = logging.INFO + 6

    @classmethod
    def _missing_(cls, value: object) -> StdStreamLevel:
        # Never fabricate a third member for an unknown rank.
        raise UnrecognizedSeverityError(f"Unknown capture level rank: {value!r}")


for _member in StdStreamLevel:
    logging.addLevelName(_member, _member.name)
del _member


def resolve_level(rank: int) -> StdStreamLevel:
    """Return the canonical capture level for ``rank``.

    Raises:
        UnrecognizedSeverityError: ``rank`` is not STDOUT or STDERR.
    """
    return StdStreamLevel(rank)


_LEVEL_MAP: dict[str, int] = {
    "NOTSET": logging.NOTSET,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "STDOUT": StdStreamLevel.STDOUT,
    "STDERR": StdStreamLevel.STDERR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
}


def parse_level(value: int | str) -> int:
    """Convert a level name, numeric string or int to a numeric level."""
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid log level: {value!r}")
    if isinstance(value, int):
        return int(value)

    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        return int(_LEVEL_MAP[text.upper()])
    except KeyError:
        raise InvalidArgumentError(f"Invalid log level: {value!r}") from None
