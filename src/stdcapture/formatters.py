"""
Log formatters.
"""

from __future__ import annotations

import logging
from datetime import datetime

from structlog.typing import EventDict, WrappedLogger

# =============================================================================
# Plain Text Formatter (Aligned Columns)
# =============================================================================


class PlainTextFormatter(logging.Formatter):
    """Renders one record per line as ``timestamp | LEVEL | logger | message``.

    Captured stream text usually ends with the line terminator the program
    printed. It is stripped here so the file keeps one line per record; the
    record itself is left untouched.
    """

    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
    LEVEL_WIDTH = 8
    LOGGER_WIDTH = 32
    SEPARATOR = " | "

    def __init__(
        self,
        *,
        timestamp_format: str | None = None,
        level_width: int | None = None,
        logger_width: int | None = None,
        separator: str | None = None,
    ) -> None:
        super().__init__(datefmt=timestamp_format or self.TIMESTAMP_FORMAT)
        self.level_width = self.LEVEL_WIDTH if level_width is None else level_width
        self.logger_width = self.LOGGER_WIDTH if logger_width is None else logger_width
        self.separator = self.SEPARATOR if separator is None else separator

    @staticmethod
    def _fit_right(text: str, width: int) -> str:
        if width <= 0:
            return text
        if len(text) > width:
            if width <= 3:
                text = text[-width:]
            else:
                text = "..." + text[-(width - 3) :]
        return f"{text:>{width}}"

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return datetime.fromtimestamp(record.created).strftime(datefmt or self.datefmt)

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage().rstrip("\r\n")

        line = self.separator.join(
            [
                self.formatTime(record, self.datefmt),
                self._fit_right(record.levelname, self.level_width),
                self._fit_right(record.name or "root", self.logger_width),
                message,
            ]
        )

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"
        if record.stack_info:
            line = f"{line}\n{self.formatStack(record.stack_info)}"
        return line


# =============================================================================
# Structlog Renderer
# =============================================================================


def render_event(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
    """Render an event dict as ``event key=value ...`` for a stdlib logger."""
    message = str(event_dict.pop("event", ""))
    extras = [f"{k}={v}" for k, v in event_dict.items()]
    if extras:
        message = f"{message} " + " ".join(extras)
    return message
