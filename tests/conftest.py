from __future__ import annotations

import io
import logging

import pytest

from stdcapture import Dispatcher


class RecordCollector(logging.Handler):
    """Keeps every handled record in memory.

    Records from the ``stdcapture`` diagnostics loggers are skipped unless
    ``diagnostics`` is set.
    """

    def __init__(self, *, diagnostics: bool = False) -> None:
        super().__init__(logging.NOTSET)
        self.records: list[logging.LogRecord] = []
        if not diagnostics:
            self.addFilter(lambda record: not record.name.startswith("stdcapture"))

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self) -> list[str]:
        return [r.getMessage() for r in self.records]


@pytest.fixture
def dispatcher() -> Dispatcher:
    """Dispatcher with a private root logger and StringIO standard streams."""
    return Dispatcher.isolated()


@pytest.fixture
def collector(dispatcher: Dispatcher) -> RecordCollector:
    handler = RecordCollector()
    dispatcher.attach_destination(handler)
    return handler


class StderrPinned:
    """Stream target whose stderr cannot be replaced."""

    def __init__(self) -> None:
        object.__setattr__(self, "stdout", io.StringIO())
        object.__setattr__(self, "stderr", io.StringIO())

    def __setattr__(self, name: str, value: object) -> None:
        if name == "stderr":
            raise AttributeError("stderr is read-only")
        object.__setattr__(self, name, value)
