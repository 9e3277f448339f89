"""
Blunder - Error taxonomy.

Errors raised by Blunder itself are typed so callers can tell a broken setup
apart from the faults Blunder exists to capture:

- ConfigurationError: invalid severity code, asset path, handler name...
- PreconditionError: an operation needs a collaborator that was never set
- RenderFailure: a renderer could not encode its output

Captured platform errors are promoted to ``BlunderErrorException``.
"""

from __future__ import annotations

from typing import Any, Optional


class BlunderError(Exception):
    """Base class for errors raised by Blunder."""


class ConfigurationError(BlunderError, ValueError):
    """Raised synchronously when Blunder is configured with invalid values."""


class PreconditionError(BlunderError, RuntimeError):
    """Raised when an operation runs before its collaborator is initialized."""


class RenderFailure(BlunderError, RuntimeError):
    """Raised when a renderer fails to produce well-formed output."""


class BlunderErrorException(Exception):
    """
    A platform error promoted to a raisable exception.

    Carries the severity code of the original error together with the file
    and line it was reported at, which usually differ from the place this
    exception is raised from.

    Attributes:
        message: Error message
        code: Exception code (always 0 for promoted errors)
        severity: Severity code of the original error
        file: File the error was reported in
        line: Line the error was reported at
        stack: Sanitized frames captured when the error was reported
    """

    def __init__(
        self,
        message: str = "",
        code: int = 0,
        severity: int = 1,
        file: str = "",
        line: int = 0,
        *,
        stack: Optional[list[Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.severity = int(severity)
        self.file = file
        self.line = line
        self.stack = stack
        self._pretty_message: Optional[str] = None

    @property
    def pretty_message(self) -> str:
        """The rendered diagnostic message, or the raw message if none was set."""
        return self._pretty_message if self._pretty_message is not None else self.message

    def set_pretty_message(self, message: str) -> None:
        self._pretty_message = message

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"BlunderErrorException(message={self.message!r}, severity={self.severity}, "
            f"file={self.file!r}, line={self.line})"
        )
