"""
Blunder - Platform fault hooks.

The platform is what handlers are registered against. It owns three hook
slots and the process-level state around them:

1. error hook ``(code, message, file, line, context) -> bool`` with a mask
2. uncaught exception hook ``(exception) -> None``
3. shutdown hook ``() -> None``, paired with ``error_get_last()``

``PythonRuntime`` maps the slots onto the interpreter: Python warnings feed
the error hook, ``sys.excepthook`` the exception hook and ``atexit`` the
shutdown hook.
"""

from __future__ import annotations

import atexit
import io
import logging
import os
import sys
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, TextIO

from . import severity as catalog
from .exceptions import PreconditionError
from .metadata import MAX_TRACE_LEVEL, capture_stack
from .severity import Severity

logger = logging.getLogger("blunder.platform")

ErrorHook = Callable[..., bool]
ExceptionHook = Callable[[BaseException], None]
ShutdownHook = Callable[[], None]

FATAL_EXIT_STATUS = 255


@dataclass(frozen=True, slots=True)
class LastError:
    """The last error the platform recorded."""
    type: int
    message: str
    file: str
    line: int


class Platform(ABC):
    """
    Host runtime the fault hooks are installed into.

    Subclasses implement hook installation, output and termination; the
    error reporting mask, the last error record and the output buffer stack
    are shared.
    """

    def __init__(self, *, error_reporting: int = Severity.ALL):
        self._error_reporting = int(error_reporting)
        self._last_error: Optional[LastError] = None
        self._buffers: list[io.StringIO] = []
        self.hooks_installed = False
        self.unwinding = False

    # ========================================================================
    # Error reporting
    # ========================================================================

    def error_reporting(self) -> int:
        """Mask of severities the host currently reports."""
        return self._error_reporting

    def set_error_reporting(self, mask: int) -> int:
        """Set the reporting mask, returning the previous one."""
        previous = self._error_reporting
        self._error_reporting = int(mask)
        return previous

    def record_error(self, code: int, message: str, file: str = "", line: int = 0) -> LastError:
        self._last_error = LastError(int(code), message, file, line)
        return self._last_error

    def error_get_last(self) -> Optional[LastError]:
        return self._last_error

    def error_clear_last(self) -> None:
        self._last_error = None

    # ========================================================================
    # Hook slots
    # ========================================================================

    @abstractmethod
    def set_error_handler(self, callback: ErrorHook, mask: int = Severity.ALL) -> None:
        ...

    @abstractmethod
    def set_exception_handler(self, callback: ExceptionHook) -> None:
        ...

    @abstractmethod
    def register_shutdown_function(self, callback: ShutdownHook) -> None:
        ...

    @abstractmethod
    def restore(self) -> None:
        """Uninstall every hook and restore what was there before."""

    @abstractmethod
    def trigger_error(self, message: str, code: int = Severity.USER_NOTICE) -> bool:
        """Report an error through the error hook."""

    # ========================================================================
    # Output
    # ========================================================================

    def ob_start(self) -> None:
        self._buffers.append(io.StringIO())

    def ob_get_level(self) -> int:
        return len(self._buffers)

    def ob_get_contents(self) -> Optional[str]:
        return self._buffers[-1].getvalue() if self._buffers else None

    def ob_end_clean(self) -> bool:
        if not self._buffers:
            return False
        self._buffers.pop()
        return True

    def clean_output_buffers(self) -> None:
        """Discard every active output buffer."""
        while self.ob_get_level() > 0:
            self.ob_end_clean()

    def write(self, text: str) -> None:
        """Write to the innermost output buffer or, without one, to the output stream."""
        if self._buffers:
            self._buffers[-1].write(text)
            return
        self._write(text)

    @abstractmethod
    def _write(self, text: str) -> None:
        ...

    @abstractmethod
    def terminate(self, code: int) -> None:
        """End the process with exit status ``code``."""


class PythonRuntime(Platform):
    """
    Platform bound to the running interpreter.

    - Warnings go through ``warnings.showwarning``; their category decides
      the severity code
    - Uncaught ``Exception`` subclasses go through ``sys.excepthook``;
      ``KeyboardInterrupt`` and friends keep the previous hook
    - The shutdown hook runs from ``atexit``

    Fatal-class codes reported with ``trigger_error`` never reach the error
    hook. They are recorded as the last error and the process exits, which
    hands them to the shutdown hook.
    """

    def __init__(
        self,
        *,
        output: Optional[TextIO] = None,
        error_reporting: int = Severity.ALL,
    ):
        super().__init__(error_reporting=error_reporting)
        self.output = output

        self._error_handler: Optional[ErrorHook] = None
        self._error_mask = int(Severity.ALL)
        self._exception_handler: Optional[ExceptionHook] = None
        self._shutdown_handlers: list[ShutdownHook] = []

        self._previous_showwarning: Optional[Callable[..., Any]] = None
        self._previous_excepthook: Optional[Callable[..., Any]] = None

    # ========================================================================
    # Hook slots
    # ========================================================================

    def set_error_handler(self, callback: ErrorHook, mask: int = Severity.ALL) -> None:
        if self._error_handler is None:
            self._previous_showwarning = warnings.showwarning
            warnings.showwarning = self._showwarning
        self._error_handler = callback
        self._error_mask = int(mask)
        self.hooks_installed = True
        logger.debug("Installed error hook with mask %s", mask)

    def set_exception_handler(self, callback: ExceptionHook) -> None:
        if self._exception_handler is None:
            self._previous_excepthook = sys.excepthook
            sys.excepthook = self._excepthook
        self._exception_handler = callback
        self.hooks_installed = True
        logger.debug("Installed exception hook")

    def register_shutdown_function(self, callback: ShutdownHook) -> None:
        if not self._shutdown_handlers:
            atexit.register(self._run_shutdown)
        self._shutdown_handlers.append(callback)
        self.hooks_installed = True
        logger.debug("Registered shutdown hook")

    def restore(self) -> None:
        if self._error_handler is not None:
            warnings.showwarning = self._previous_showwarning
        if self._exception_handler is not None:
            sys.excepthook = self._previous_excepthook
        if self._shutdown_handlers:
            atexit.unregister(self._run_shutdown)

        self._error_handler = None
        self._exception_handler = None
        self._shutdown_handlers = []
        self.hooks_installed = False
        logger.debug("Restored interpreter hooks")

    # ========================================================================
    # Dispatch
    # ========================================================================

    def trigger_error(self, message: str, code: int = Severity.USER_NOTICE) -> bool:
        """
        Report an error at the caller's location.

        Returns whatever the error hook returned, or False when no hook
        accepted the error.
        """
        caller = sys._getframe(1)
        file, line = caller.f_code.co_filename, caller.f_lineno
        self.record_error(code, message, file, line)

        if catalog.is_fatal(code):
            logger.debug("Fatal error reported at %s:%s, exiting", file, line)
            raise SystemExit(FATAL_EXIT_STATUS)

        stack = capture_stack(start=caller, limit=MAX_TRACE_LEVEL)
        return self._dispatch_error(code, message, file, line, {"stack": stack})

    def _dispatch_error(self, code: int, message: str, file: str, line: int, context: dict) -> bool:
        if self._error_handler is None or not (code & self._error_mask):
            return False
        return bool(self._error_handler(code, message, file, line, context))

    def _showwarning(self, message, category, filename, lineno, file=None, line=None):
        code = catalog.severity_for_warning(category)
        text = str(message)
        self.record_error(code, text, filename, lineno)

        context = {"category": category.__name__, "stack": _stack_at(filename, lineno)}
        if not self._dispatch_error(code, text, filename, lineno, context):
            if self._previous_showwarning is not None:
                self._previous_showwarning(message, category, filename, lineno, file, line)

    def _excepthook(self, exc_type, exc_value, exc_tb):
        if self._exception_handler is None or not issubclass(exc_type, Exception):
            if self._previous_excepthook is not None:
                self._previous_excepthook(exc_type, exc_value, exc_tb)
            return
        if exc_value.__traceback__ is None:
            exc_value = exc_value.with_traceback(exc_tb)
        self.unwinding = True
        self._exception_handler(exc_value)

    def _run_shutdown(self) -> None:
        self.unwinding = True
        for callback in list(self._shutdown_handlers):
            callback()

    # ========================================================================
    # Output & termination
    # ========================================================================

    def _write(self, text: str) -> None:
        stream = self.output if self.output is not None else sys.stdout
        stream.write(text)
        stream.flush()

    def terminate(self, code: int) -> None:
        """
        Exit with ``code``.

        Inside the exception or shutdown hook the interpreter is already
        unwinding and ignores ``SystemExit``, so the process is ended
        directly after flushing the standard streams.
        """
        logger.debug("Terminating with exit code %s", code)
        if self.unwinding:
            for stream in (sys.stdout, sys.stderr):
                try:
                    stream.flush()
                except (OSError, ValueError):
                    pass
            os._exit(code)
        raise SystemExit(code)


def _stack_at(filename: str, lineno: int) -> list:
    """Stack starting at the frame that issued a warning from ``filename:lineno``."""
    frame = sys._getframe(1)
    while frame is not None:
        if frame.f_code.co_filename == filename and frame.f_lineno == lineno:
            return capture_stack(start=frame, limit=MAX_TRACE_LEVEL)
        frame = frame.f_back
    return capture_stack(1, limit=MAX_TRACE_LEVEL)


_default_platform: Optional[PythonRuntime] = None


def get_default_platform() -> PythonRuntime:
    """Get or create the process-wide interpreter platform."""
    global _default_platform
    if _default_platform is None:
        _default_platform = PythonRuntime()
    return _default_platform


def ensure_unhooked(platform: Platform) -> None:
    """
    Raises:
        PreconditionError: If hooks are already installed on ``platform``
    """
    if platform.hooks_installed:
        raise PreconditionError(
            "Fault hooks are already installed on this platform; call restore() first"
        )
