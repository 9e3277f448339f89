"""
Blunder Testing - In-memory platform.

Provides :class:`RecordingPlatform`, a platform that records hook
registrations, output and terminations instead of touching the
interpreter, so handlers can be driven end to end inside a test.
"""

from __future__ import annotations

import sys
from typing import List, Optional

from . import severity as catalog
from .metadata import MAX_TRACE_LEVEL, capture_stack
from .platform import (
    FATAL_EXIT_STATUS,
    ErrorHook,
    ExceptionHook,
    Platform,
    ShutdownHook,
)
from .severity import Severity


class RecordingPlatform(Platform):
    """
    Platform double that captures everything.

    ``terminate`` records the exit status and raises ``SystemExit`` so the
    control flow matches a real exit; catch it with ``pytest.raises``.

    Usage::

        platform = RecordingPlatform()
        run = Run(JsonHandler(), platform=platform)
        run.load()

        platform.raise_uncaught(ValueError("boom"))
        assert "boom" in platform.output
    """

    def __init__(self, *, error_reporting: int = Severity.ALL):
        super().__init__(error_reporting=error_reporting)
        self.error_handler: Optional[ErrorHook] = None
        self.error_mask: int = Severity.ALL
        self.exception_handler: Optional[ExceptionHook] = None
        self.shutdown_handlers: List[ShutdownHook] = []
        self.writes: List[str] = []
        self.terminations: List[int] = []

    # ── Hook slots ─────────────────────────────────────────────────

    def set_error_handler(self, callback: ErrorHook, mask: int = Severity.ALL) -> None:
        self.error_handler = callback
        self.error_mask = int(mask)
        self.hooks_installed = True

    def set_exception_handler(self, callback: ExceptionHook) -> None:
        self.exception_handler = callback
        self.hooks_installed = True

    def register_shutdown_function(self, callback: ShutdownHook) -> None:
        self.shutdown_handlers.append(callback)
        self.hooks_installed = True

    def restore(self) -> None:
        self.error_handler = None
        self.exception_handler = None
        self.shutdown_handlers = []
        self.hooks_installed = False

    # ── Fault simulation ──────────────────────────────────────────

    def trigger_error(self, message: str, code: int = Severity.USER_NOTICE) -> bool:
        """Report an error at the caller's location, like the interpreter platform."""
        caller = sys._getframe(1)
        file, line = caller.f_code.co_filename, caller.f_lineno
        self.record_error(code, message, file, line)

        if catalog.is_fatal(code):
            raise SystemExit(FATAL_EXIT_STATUS)

        if self.error_handler is None or not (code & self.error_mask):
            return False
        stack = capture_stack(start=caller, limit=MAX_TRACE_LEVEL)
        return bool(self.error_handler(code, message, file, line, {"stack": stack}))

    def raise_uncaught(self, exception: BaseException) -> None:
        """Deliver ``exception`` to the exception hook with a real traceback."""
        try:
            raise exception
        except BaseException as exc:
            caught = exc
        if self.exception_handler is None:
            raise caught
        self.exception_handler(caught)

    def shutdown(self) -> None:
        """Run the shutdown hooks the way the process would at exit."""
        self.unwinding = True
        for callback in list(self.shutdown_handlers):
            callback()

    # ── Output ────────────────────────────────────────────────────

    def _write(self, text: str) -> None:
        self.writes.append(text)

    @property
    def output(self) -> str:
        return "".join(self.writes)

    def terminate(self, code: int) -> None:
        self.terminations.append(code)
        raise SystemExit(code)

    def reset(self) -> None:
        self.writes.clear()
        self.terminations.clear()
        self.error_clear_last()
