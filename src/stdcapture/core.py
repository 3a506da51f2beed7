"""
Dispatcher initialization and standard stream redirection.
"""

from __future__ import annotations

import io
import logging
import sys
import threading
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

import structlog

from .exceptions import ConfigurationLockedError, StreamRedirectError
from .formatters import PlainTextFormatter, render_event
from .io import AutoFlushStream, open_redirected_stream
from .levels import StdStreamLevel, parse_level
from .sinks import GenerationalFileHandler, create_rotating_file_sink

if TYPE_CHECKING:
    from .config import Settings


def wrap_stdlib_logger(stdlib_logger: logging.Logger) -> structlog.stdlib.BoundLogger:
    """Wrap ``stdlib_logger`` so structlog events render as ``event key=value`` messages."""
    return structlog.wrap_logger(
        stdlib_logger,
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            render_event,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger backed by the stdlib logger ``name``."""
    return wrap_stdlib_logger(logging.getLogger(name or "stdcapture"))


# =============================================================================
# Dispatcher Handle
# =============================================================================

_default_dispatcher: Dispatcher | None = None
_default_lock = threading.Lock()


class Dispatcher:
    """Handle on a root logger, its handlers and the streams it may capture.

    The dispatcher's own diagnostics go to the ``stdcapture.core`` logger
    under its root, so an isolated dispatcher never logs to ``logging.root``.

    Args:
        root: Root logger every record ends up at.
        manager: Creates the named loggers that propagate to ``root``.
        streams: Object exposing ``stdout`` and ``stderr`` attributes. The
            ``sys`` module for the process-wide dispatcher.
    """

    def __init__(self, root: logging.Logger, manager: logging.Manager, streams: Any = sys):
        self.root = root
        self.manager = manager
        self.streams = streams
        self.file_sink: GenerationalFileHandler | None = None
        self.log = wrap_stdlib_logger(manager.getLogger(__name__))
        self._locked = False
        self._original_streams: tuple[Any, Any] | None = None
        self._config_lock = threading.RLock()

    @classmethod
    def default(cls) -> Dispatcher:
        """Return the process-wide dispatcher bound to ``logging.root`` and ``sys``."""
        global _default_dispatcher
        with _default_lock:
            if _default_dispatcher is None:
                _default_dispatcher = cls(logging.getLogger(), logging.Logger.manager, sys)
            return _default_dispatcher

    @classmethod
    def isolated(cls, streams: Any = None) -> Dispatcher:
        """Build a dispatcher with a private root logger and private streams."""
        root = logging.RootLogger(logging.WARNING)
        manager = logging.Manager(root)
        # setLevel on the root clears level caches through its manager.
        root.manager = manager
        if streams is None:
            streams = SimpleNamespace(stdout=io.StringIO(), stderr=io.StringIO())
        return cls(root, manager, streams)

    # -------------------------------------------------------------------------
    # Access control
    # -------------------------------------------------------------------------

    @property
    def locked(self) -> bool:
        with self._config_lock:
            return self._locked

    def lock(self) -> None:
        """Refuse any further configuration change on this dispatcher.

        Waits for a configuration call already in progress to finish.
        """
        with self._config_lock:
            self._locked = True

    def check_access(self) -> None:
        with self._config_lock:
            if self._locked:
                raise ConfigurationLockedError("Logging configuration is locked")

    # -------------------------------------------------------------------------
    # Loggers and destinations
    # -------------------------------------------------------------------------

    def get_logger(self, name: str) -> logging.Logger:
        return self.manager.getLogger(name)

    @property
    def destinations(self) -> list[logging.Handler]:
        return list(self.root.handlers)

    def attach_destination(self, handler: logging.Handler) -> None:
        """Add ``handler`` to the root logger, whatever its type."""
        with self._config_lock:
            self.check_access()
            self.root.addHandler(handler)

    def detach_destination(self, handler: logging.Handler) -> None:
        with self._config_lock:
            self.check_access()
            self.root.removeHandler(handler)

    def is_console_handler(self, handler: logging.Handler) -> bool:
        """True for a stream handler writing to a standard stream.

        File handlers are stream handlers too and never count as console.
        """
        if not isinstance(handler, logging.StreamHandler) or isinstance(handler, logging.FileHandler):
            return False

        stream = getattr(handler, "stream", None)
        if stream is None:
            return False
        if isinstance(stream, AutoFlushStream):
            return True

        consoles = [
            getattr(self.streams, "stdout", None),
            getattr(self.streams, "stderr", None),
            sys.__stdout__,
            sys.__stderr__,
        ]
        if self._original_streams is not None:
            consoles.extend(self._original_streams)
        return any(stream is console for console in consoles if console is not None)

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def initialize(self, level: int | str, redirect_streams: bool = False) -> list[logging.Handler]:
        """Set the minimum level everywhere and optionally capture stdout/stderr.

        The level is applied to the root logger and to every handler already
        attached, so no handler keeps a stricter filter than the root. With
        ``redirect_streams`` every console handler is detached first, then
        ``stdout`` and ``stderr`` are replaced by streams logging at
        ``STDOUT`` and ``STDERR`` to the loggers ``"stdout"`` and ``"stderr"``.

        Returns:
            The console handlers that were detached.

        Raises:
            ConfigurationLockedError: The dispatcher is locked.
            StreamRedirectError: The standard streams could not be replaced.
                Streams, handlers and levels are left as they were.
        """
        level = parse_level(level)

        with self._config_lock:
            self.check_access()
            root_level = self.root.level
            handler_levels = [(h, h.level) for h in self.root.handlers]

            for handler, _ in handler_levels:
                handler.setLevel(level)
            self.root.setLevel(level)

            if not redirect_streams:
                return []

            detached = [h for h, _ in handler_levels if self.is_console_handler(h)]
            for handler in detached:
                self.root.removeHandler(handler)

            try:
                self._redirect()
            except StreamRedirectError:
                for handler in detached:
                    self.root.addHandler(handler)
                for handler, handler_level in handler_levels:
                    handler.setLevel(handler_level)
                self.root.setLevel(root_level)
                raise

        for handler in detached:
            self.log.debug("console_handler_detached", handler=repr(handler))
        self.log.info("standard_streams_redirected", level=logging.getLevelName(level), detached=len(detached))
        return detached

    def _redirect(self) -> None:
        stdout = open_redirected_stream(self.get_logger("stdout"), StdStreamLevel.STDOUT)
        stderr = open_redirected_stream(self.get_logger("stderr"), StdStreamLevel.STDERR)

        try:
            previous = (self.streams.stdout, self.streams.stderr)
        except AttributeError as exc:
            raise StreamRedirectError(f"Cannot read standard streams: {exc}") from exc

        for stream in previous:
            if isinstance(stream, AutoFlushStream) and not stream.closed:
                stream.flush()

        try:
            self.streams.stdout = stdout
        except (AttributeError, TypeError) as exc:
            raise StreamRedirectError(f"Cannot replace stdout: {exc}") from exc
        try:
            self.streams.stderr = stderr
        except (AttributeError, TypeError) as exc:
            self.streams.stdout = previous[0]
            raise StreamRedirectError(f"Cannot replace stderr: {exc}") from exc

        if self._original_streams is None:
            self._original_streams = previous

    def is_redirected(self) -> bool:
        return isinstance(getattr(self.streams, "stdout", None), AutoFlushStream) and isinstance(
            getattr(self.streams, "stderr", None), AutoFlushStream
        )

    def restore_streams(self) -> None:
        """Flush the captured streams and put the original stdout/stderr back."""
        with self._config_lock:
            self.check_access()
            if self._original_streams is None:
                return
            for stream in (self.streams.stdout, self.streams.stderr):
                if isinstance(stream, AutoFlushStream) and not stream.closed:
                    stream.flush()
            self.streams.stdout, self.streams.stderr = self._original_streams
            self._original_streams = None
        self.log.info("standard_streams_restored")


# =============================================================================
# Public API
# =============================================================================


def initialize(
    level: int | str,
    redirect_streams: bool = False,
    *,
    dispatcher: Dispatcher | None = None,
) -> list[logging.Handler]:
    """Run :meth:`Dispatcher.initialize`, on the process-wide dispatcher by default."""
    return (dispatcher or Dispatcher.default()).initialize(level, redirect_streams)


def attach_destination(handler: logging.Handler, *, dispatcher: Dispatcher | None = None) -> None:
    """Add ``handler`` to the root logger, on the process-wide dispatcher by default."""
    (dispatcher or Dispatcher.default()).attach_destination(handler)


def configure_logging(settings: Settings | None = None, *, dispatcher: Dispatcher | None = None) -> Dispatcher:
    """
    Configure stream capture and the rotating file sink from settings.

    The file sink is opened before anything else changes. A sink installed
    by a previous call is only detached and closed once initialization has
    succeeded; on any error the new sink is closed and the dispatcher keeps
    its previous configuration.

    Args:
        settings: Loaded settings, the module-level ``settings`` by default.
        dispatcher: Target dispatcher, the process-wide one by default.

    Returns:
        The configured dispatcher.
    """
    if settings is None:
        from .config import settings

    dispatcher = dispatcher or Dispatcher.default()
    dispatcher.check_access()
    log_cfg = settings.logging
    rotation = settings.rotation

    sink = None
    if rotation.directory is not None:
        sink = create_rotating_file_sink(
            rotation.process_id,
            rotation.directory,
            append=rotation.append,
            byte_limit=rotation.byte_limit,
            file_count=rotation.file_count,
            formatter=PlainTextFormatter(
                timestamp_format=log_cfg.timestamp_format,
                level_width=log_cfg.level_width,
                logger_width=log_cfg.logger_width,
                separator=log_cfg.separator,
            ),
        )

    try:
        dispatcher.initialize(log_cfg.level, log_cfg.redirect_streams)
        if sink is not None:
            sink.setLevel(log_cfg.level)
            dispatcher.attach_destination(sink)
    except Exception:
        if sink is not None:
            sink.close()
        raise

    previous, dispatcher.file_sink = dispatcher.file_sink, sink
    if previous is not None:
        dispatcher.detach_destination(previous)
        previous.close()

    if sink is not None:
        dispatcher.log.info("rotating_file_sink_attached", pattern=sink.pattern, file_count=sink.file_count)
    return dispatcher
