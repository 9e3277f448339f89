"""
Blunder - Exception item.

ExceptionItem is what renderers and event callbacks receive: one captured
exception with an explicit set of accessors, built fresh for every dispatch.
"""

from __future__ import annotations

from typing import Any, Optional

from . import severity as catalog
from .exceptions import BlunderErrorException
from .metadata import ExceptionMetadata, StackFrame, origin
from .pool import SeverityLevelPool


class ExceptionItem:
    """
    Wraps a captured exception for rendering.

    Attributes:
        exception: The wrapped exception
        meta: Derived metadata (severity, status, trace)
        pool: Severity pool the item is checked against
    """

    def __init__(
        self,
        exception: BaseException,
        pool: Optional[SeverityLevelPool] = None,
        *,
        max_trace_level: Optional[int] = None,
        trace_enabled: bool = True,
    ):
        self.exception = exception
        self.pool = pool if pool is not None else SeverityLevelPool()
        self.meta = ExceptionMetadata(
            exception,
            max_trace_level=max_trace_level,
            trace_enabled=trace_enabled,
        )
        self._flag = self.meta.severity_code
        self._file, self._line = origin(exception)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"ExceptionItem(type={self.type!r}, status={self.status!r}, flag={self.flag})"

    # ========================================================================
    # Accessors
    # ========================================================================

    @property
    def type(self) -> str:
        """Class name of the wrapped exception."""
        return type(self.exception).__name__

    @property
    def message(self) -> str:
        return str(self.exception)

    @property
    def file(self) -> str:
        return self._file

    @property
    def line(self) -> int:
        return self._line

    @property
    def code(self) -> Any:
        """Exception code: ints and strings pass through, anything else is 0."""
        code = getattr(self.exception, "code", 0)
        if isinstance(code, bool) or not isinstance(code, (int, str)):
            return 0
        return code

    @property
    def flag(self) -> int:
        """Severity code of the fault, 0 for plain exceptions."""
        return self._flag

    mask = flag

    @property
    def severity(self) -> Optional[str]:
        """Symbolic severity name, or the exception class name for plain exceptions."""
        if self._flag == 0:
            return self.type
        return catalog.name_of(self._flag)

    @property
    def severity_title(self) -> str:
        return self.meta.severity_title

    @property
    def severity_constant(self) -> Optional[str]:
        return self.meta.severity_constant

    @property
    def status(self) -> str:
        return self.meta.status

    @property
    def is_fatal(self) -> bool:
        return self.meta.is_fatal

    @property
    def pretty_message(self) -> str:
        if isinstance(self.exception, BlunderErrorException):
            return self.exception.pretty_message
        return self.message

    def trace(self, max_depth: Optional[int] = None) -> list[StackFrame]:
        return self.meta.trace(max_depth)

    # ========================================================================
    # Pool checks
    # ========================================================================

    def has_severity(self) -> bool:
        """True if the fault's severity is allowed by the pool."""
        return self.pool.has(self._flag)

    def delete_severity(self) -> bool:
        return self.pool.delete(self._flag)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the item for logging."""
        return {
            "type": self.type,
            "status": self.status,
            "message": self.message,
            "flag": self.severity,
            "file": self.file,
            "line": self.line,
            "code": self.code,
        }
