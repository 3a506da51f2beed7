"""
Standard stream capture for stdlib logging.

Routes everything written to ``sys.stdout`` / ``sys.stderr`` into log
records at the dedicated ``STDOUT`` / ``STDERR`` levels and provides a
size/count-bounded rotating file destination:

- levels: ``StdStreamLevel`` and canonical re-materialization by rank
- io: ``RedirectionSink``, one record per flush
- core: ``Dispatcher`` and ``initialize`` / ``attach_destination``
- sinks: ``create_rotating_file_sink`` writing ``{process_id}.log.{g}``

Library: stdlib logging for the records, structlog for our own diagnostics,
pydantic-settings for configuration.
"""

from .core import Dispatcher, attach_destination, configure_logging, get_logger, initialize
from .exceptions import (
    ConfigurationLockedError,
    InvalidArgumentError,
    StdCaptureError,
    StreamRedirectError,
    UnrecognizedSeverityError,
)
from .formatters import PlainTextFormatter
from .io import AutoFlushStream, RedirectionSink, open_redirected_stream
from .levels import StdStreamLevel, parse_level, resolve_level
from .sinks import GenerationalFileHandler, create_rotating_file_sink

__all__ = [
    "AutoFlushStream",
    "ConfigurationLockedError",
    "Dispatcher",
    "GenerationalFileHandler",
    "InvalidArgumentError",
    "PlainTextFormatter",
    "RedirectionSink",
    "StdCaptureError",
    "StdStreamLevel",
    "StreamRedirectError",
    "UnrecognizedSeverityError",
    "attach_destination",
    "configure_logging",
    "create_rotating_file_sink",
    "get_logger",
    "initialize",
    "open_redirected_stream",
    "parse_level",
    "resolve_level",
]
