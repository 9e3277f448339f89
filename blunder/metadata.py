"""
Blunder - Exception metadata.

Turns a captured exception into a structured view: severity classification,
status label and a length-bounded, argument-sanitized stack trace.

Frames never keep live argument values. Only the type name of each argument
survives, which bounds memory for deep recursion faults and keeps call-time
data out of rendered output.
"""

from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass, field
from types import FrameType
from typing import Any, Iterator, Optional

from . import severity as catalog
from .exceptions import BlunderErrorException
from .severity import Severity

MAX_TRACE_LEVEL = 40

_STATUS_MAP: dict[int, str] = {
    0: "error",
    Severity.ERROR: "error",
    Severity.PARSE: "error",
    Severity.CORE_ERROR: "error",
    Severity.COMPILE_ERROR: "error",
    Severity.USER_ERROR: "error",
    Severity.RECOVERABLE_ERROR: "error",
    Severity.WARNING: "warning",
    Severity.USER_WARNING: "warning",
    Severity.NOTICE: "notice",
    Severity.USER_NOTICE: "notice",
    Severity.DEPRECATED: "info",
    Severity.USER_DEPRECATED: "info",
}


def status_for(code: int) -> str:
    """Log-level compatible status bucket for a severity code; fatal codes are always errors."""
    if catalog.is_fatal(code):
        return "error"
    return _STATUS_MAP.get(int(code), "debug")


# ============================================================================
# StackFrame
# ============================================================================

@dataclass(frozen=True, slots=True)
class StackFrame:
    """
    One sanitized stack entry.

    Attributes:
        file: Source file of the frame
        line: Line being executed in the frame
        class_name: Owning class for method frames, else ""
        function: Function name, None for the synthesized origin frame
        type: "instance" for methods, "class" for classmethods, else None
        args: Type names of the arguments the frame was called with
    """
    file: str = ""
    line: int = 0
    class_name: str = ""
    function: Optional[str] = None
    type: Optional[str] = None
    args: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_frame(cls, frame: FrameType, lineno: Optional[int] = None) -> StackFrame:
        """Build a sanitized record from a live frame object."""
        code = frame.f_code
        local_vars = frame.f_locals

        arg_count = code.co_argcount + code.co_kwonlyargcount
        if code.co_flags & 0x04:  # CO_VARARGS
            arg_count += 1
        if code.co_flags & 0x08:  # CO_VARKEYWORDS
            arg_count += 1
        arg_names = list(code.co_varnames[:arg_count])

        class_name = ""
        call_type = None
        if arg_names and arg_names[0] == "self" and "self" in local_vars:
            class_name = type(local_vars["self"]).__name__
            call_type = "instance"
            arg_names = arg_names[1:]
        elif arg_names and arg_names[0] == "cls" and isinstance(local_vars.get("cls"), type):
            class_name = local_vars["cls"].__name__
            call_type = "class"
            arg_names = arg_names[1:]

        args = tuple(
            type(local_vars[name]).__name__
            for name in arg_names
            if name in local_vars
        )

        return cls(
            file=code.co_filename,
            line=lineno if lineno is not None else frame.f_lineno,
            class_name=class_name,
            function=code.co_name,
            type=call_type,
            args=args,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "class": self.class_name,
            "function": self.function,
            "type": self.type,
            "args": list(self.args),
        }


def capture_stack(
    skip: int = 0,
    limit: Optional[int] = None,
    start: Optional[FrameType] = None,
) -> list[StackFrame]:
    """
    Sanitized frames of the current call stack, innermost first.

    Args:
        skip: Number of innermost frames to drop besides this function's own
        limit: Maximum number of frames to keep
        start: Frame to start from instead of the caller
    """
    frames: list[StackFrame] = []
    frame = start if start is not None else sys._getframe(skip + 1)
    while frame is not None:
        if limit is not None and len(frames) >= limit:
            break
        frames.append(StackFrame.from_frame(frame))
        frame = frame.f_back
    return frames


def _walk_traceback(exception: BaseException) -> Iterator[StackFrame]:
    """Traceback frames of a raised exception, innermost first."""
    entries = list(traceback.walk_tb(exception.__traceback__))
    for frame, lineno in reversed(entries):
        yield StackFrame.from_frame(frame, lineno)


def origin(exception: BaseException) -> tuple[str, int]:
    """File and line a fault originated from."""
    if isinstance(exception, BlunderErrorException):
        return exception.file, exception.line

    tb = exception.__traceback__
    if tb is None:
        return "", 0
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename, tb.tb_lineno


# ============================================================================
# ExceptionMetadata
# ============================================================================

class ExceptionMetadata:
    """
    Structured view over one captured exception.

    Plain exceptions carry no severity code and resolve to the catalog's
    fallback entry; ``BlunderErrorException`` resolves through its severity.
    """

    def __init__(
        self,
        exception: BaseException,
        *,
        max_trace_level: Optional[int] = None,
        trace_enabled: bool = True,
    ):
        self.exception = exception
        self.max_trace_level = max_trace_level
        self.trace_enabled = trace_enabled

    def set_max_trace_level(self, level: int) -> ExceptionMetadata:
        self.max_trace_level = level
        return self

    def disable_trace_level(self, disable: bool = True) -> ExceptionMetadata:
        self.trace_enabled = not disable
        return self

    def get_max_trace_level(self) -> int:
        return self.max_trace_level if self.max_trace_level is not None else MAX_TRACE_LEVEL

    # ========================================================================
    # Severity
    # ========================================================================

    @property
    def severity_code(self) -> int:
        if isinstance(self.exception, BlunderErrorException):
            return self.exception.severity
        return 0

    @property
    def severity_entry(self) -> catalog.CatalogEntry:
        return catalog.entry_for(self.severity_code)

    @property
    def severity_title(self) -> str:
        return self.severity_entry.title

    @property
    def severity_constant(self) -> Optional[str]:
        return self.severity_entry.name

    @property
    def status(self) -> str:
        return status_for(self.severity_code)

    @property
    def is_fatal(self) -> bool:
        return catalog.is_fatal(self.severity_code)

    # ========================================================================
    # Trace
    # ========================================================================

    def platform_frames(self) -> Iterator[StackFrame]:
        """Frames recorded by the platform, innermost first."""
        stack = getattr(self.exception, "stack", None)
        if isinstance(self.exception, BlunderErrorException) and stack is not None:
            return iter(stack)
        return _walk_traceback(self.exception)

    def trace(self, max_depth: Optional[int] = None) -> list[StackFrame]:
        """
        Bounded trace: the fault's own origin followed by platform frames.

        The result holds at most ``max_depth`` entries and never less than
        the origin frame.
        """
        limit = self.get_max_trace_level() if max_depth is None else max_depth
        file, line = origin(self.exception)
        frames = [StackFrame(file=file, line=line, class_name=type(self.exception).__name__)]

        if not self.trace_enabled or limit <= 1:
            return frames

        for frame in self.platform_frames():
            frames.append(frame)
            if len(frames) >= limit:
                break
        return frames
