"""
Exception types raised by the RLE pipeline.

Unreadable pattern files surface as the builtin OSError (IOError).
"""


class RleLifeError(Exception):
    """Base class for all errors raised by rlelife."""


class ArgumentError(RleLifeError, ValueError):
    """Raised when a driver argument (e.g. the iteration count) is missing or invalid."""


class FormatError(RleLifeError, ValueError):
    """Raised when pattern text is not a well-formed RLE pattern."""


class ExportError(RleLifeError):
    """Raised when a trajectory cannot be written to the requested file."""
