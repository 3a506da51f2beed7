"""
Error taxonomy.

Each error also subclasses the builtin a caller would naturally catch, so
``except ValueError`` or ``except OSError`` keeps working.
"""


class StdCaptureError(Exception):
    """Base class for every error raised by stdcapture."""


class InvalidArgumentError(StdCaptureError, ValueError):
    """A rotation or level parameter is malformed."""


class UnrecognizedSeverityError(StdCaptureError, ValueError):
    """A numeric rank does not match a known capture level."""


class StreamRedirectError(StdCaptureError, OSError):
    """The standard streams could not be replaced."""


class ConfigurationLockedError(StdCaptureError, PermissionError):
    """The dispatcher configuration has been locked against changes."""
