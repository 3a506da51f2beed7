"""
I/O redirection utilities.
"""

from __future__ import annotations

import io
import logging
import os
import threading


class RedirectionSink(io.BufferedIOBase):
    """Binary stream that turns each flush into a single log record.

    Writes only accumulate bytes. ``flush`` decodes what was accumulated,
    clears the buffer and logs it at the sink's level. A flush holding
    nothing, or nothing but the platform line terminator, logs nothing.

    Args:
        logger: Logger that receives the records.
        level: Fixed level of every record this sink emits.
        encoding: Codec used to turn the buffered bytes into text.
    """

    def __init__(self, logger: logging.Logger, level: int, encoding: str = "utf-8"):
        super().__init__()
        self.logger = logger
        self.level = level
        self.encoding = encoding
        self.lock = threading.RLock()
        self._buffer = bytearray()
        self._line_separator = os.linesep

    def writable(self) -> bool:
        return True

    def write(self, b: bytes | bytearray | memoryview) -> int:
        if self.closed:
            raise ValueError("write to closed redirection sink")
        data = bytes(b)
        with self.lock:
            self._buffer += data
        return len(data)

    def flush(self) -> None:
        if self.closed:
            raise ValueError("flush of closed redirection sink")
        with self.lock:
            text = self._buffer.decode(self.encoding, errors="replace")
            self._buffer.clear()
            if not text or text == self._line_separator:
                return
            self._emit(text)

    def pending(self) -> int:
        """Number of bytes written since the last flush."""
        with self.lock:
            return len(self._buffer)

    def _emit(self, text: str) -> None:
        if not self.logger.isEnabledFor(self.level):
            return
        # The real caller is unknown once this sink backs a standard stream.
        record = self.logger.makeRecord(self.logger.name, self.level, "", 0, text, (), None, func="")
        self.logger.handle(record)


class AutoFlushStream(io.TextIOWrapper):
    """Line-buffered text stream over a :class:`RedirectionSink`.

    Text is held per writing thread until it reaches a line boundary, then
    the completed lines are written to the sink and flushed in one step under
    the sink lock. ``print(x)`` issues two writes (``x`` and ``end``); they
    still land in one record even when other threads print in between.
    ``flush`` hands every thread's unterminated text to the sink, each as its
    own record.
    """

    def __init__(self, sink: RedirectionSink):
        super().__init__(
            sink,
            encoding=sink.encoding,
            errors="backslashreplace",
            line_buffering=True,
            write_through=True,
        )
        self._partial_lines: dict[int, str] = {}

    @property
    def sink(self) -> RedirectionSink:
        return self.buffer

    def write(self, s: str) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        if not isinstance(s, str):
            raise TypeError(f"write() argument must be str, not {type(s).__name__}")

        ident = threading.get_ident()
        with self.buffer.lock:
            text = self._partial_lines.pop(ident, "") + s
            boundary = max(text.rfind("\n"), text.rfind("\r")) + 1
            if boundary < len(text):
                self._partial_lines[ident] = text[boundary:]
            if boundary:
                super().write(text[:boundary])
                super().flush()
        return len(s)

    def flush(self) -> None:
        with self.buffer.lock:
            partials, self._partial_lines = list(self._partial_lines.values()), {}
            for text in partials:
                super().write(text)
                super().flush()
            super().flush()

    def isatty(self) -> bool:
        return False


def open_redirected_stream(logger: logging.Logger, level: int) -> AutoFlushStream:
    """Build a text stream whose output becomes records on ``logger``."""
    return AutoFlushStream(RedirectionSink(logger, level))
