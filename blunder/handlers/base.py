"""
Blunder - Handler dispatch.

A handler owns the per-process fault state and implements the three platform
hook targets:

- handle_error: platform errors, promoted to ``BlunderErrorException``
- handle_uncaught_exception: exceptions nothing else caught
- handle_shutdown: fatal errors recorded before the process exits

Formatting is delegated to a composed ``Renderer``; the handler only decides
whether, when and where a fault is rendered.

States: Idle -> ErrorCaptured -> (Redirected | Thrown | Rendered) -> Terminated
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .. import severity as catalog
from ..exceptions import BlunderErrorException, PreconditionError
from ..http import HttpMessaging, Stream
from ..item import ExceptionItem
from ..metadata import MAX_TRACE_LEVEL, capture_stack
from ..platform import Platform, get_default_platform
from ..pool import SeverityLevelPool
from ..redirect import Continue, Handled, RenderWith, coerce_redirect
from ..renderers.base import Body, Renderer
from ..severity import Severity

logger = logging.getLogger("blunder.handlers")

EventCallback = Callable[[ExceptionItem, Optional[HttpMessaging]], None]


@dataclass
class HandlerState:
    """
    Mutable state owned by one handler instance.

    Attributes:
        severity_pool: Pool deciding which severities are handled or redirected
        severity_mask: Mask computed from the pool at bind time
        http: HTTP messaging collaborator, created lazily when unset
        event_callback: Called with ``(item, http)`` for every handled fault
        exit_code: Process exit status after a fault, None to keep running
        trace_enabled: Whether rendered faults carry a stack trace
        throw_mode: Promote errors to raised exceptions; off once shutting down
        exception: Last captured exception
    """
    severity_pool: SeverityLevelPool = field(default_factory=SeverityLevelPool)
    severity_mask: int = Severity.ALL
    http: Optional[HttpMessaging] = None
    event_callback: Optional[EventCallback] = None
    exit_code: Optional[int] = None
    trace_enabled: bool = True
    max_trace_depth: Optional[int] = None
    throw_mode: bool = True
    exception: Optional[BaseException] = None


class AbstractHandler(ABC):
    """
    Abstract base class for fault handlers.

    Subclasses implement ``dispatch_to_renderer`` and usually end it with
    ``emit``. Setters return ``self`` so configuration can be chained.

    Example:
        ```python
        class CountingHandler(AbstractHandler):
            def __init__(self):
                super().__init__()
                self.count = 0

            def dispatch_to_renderer(self, item):
                self.count += 1
                self.emit(item)
        ```
    """

    trace_lines_default = True

    def __init__(self, platform: Optional[Platform] = None):
        self.state = HandlerState(trace_enabled=self.trace_lines_default)
        self.platform = platform

    # ========================================================================
    # Configuration
    # ========================================================================

    def set_severity(self, pool: SeverityLevelPool) -> AbstractHandler:
        """Bind a severity pool and cache its mask."""
        self.state.severity_pool = pool
        self.state.severity_mask = pool.mask()
        return self

    def set_exit_code(self, code: Optional[int]) -> AbstractHandler:
        self.state.exit_code = code
        return self

    def enable_trace_lines(self, enable: bool) -> AbstractHandler:
        self.state.trace_enabled = enable
        return self

    def set_max_trace_depth(self, depth: Optional[int]) -> AbstractHandler:
        self.state.max_trace_depth = depth
        return self

    def on_event(self, callback: Optional[EventCallback]) -> AbstractHandler:
        self.state.event_callback = callback
        return self

    event = on_event

    def set_http(self, http: HttpMessaging) -> AbstractHandler:
        self.state.http = http
        return self

    def get_http(self) -> HttpMessaging:
        if self.state.http is None:
            self.state.http = HttpMessaging()
        return self.state.http

    def get_stream(self, source: Any = None, mode: str = "r") -> Stream:
        """
        Open a stream through the HTTP collaborator.

        Raises:
            PreconditionError: If no collaborator has been set or created yet
        """
        if self.state.http is None:
            raise PreconditionError("The HTTP collaborator must be initialized before opening a stream")
        return self.state.http.stream(source, mode)

    def set_platform(self, platform: Platform) -> AbstractHandler:
        self.platform = platform
        return self

    def get_platform(self) -> Platform:
        if self.platform is None:
            self.platform = get_default_platform()
        return self.platform

    def get_exception(self) -> Optional[BaseException]:
        return self.state.exception

    @property
    def throw_mode(self) -> bool:
        return self.state.throw_mode

    # ========================================================================
    # Platform hook targets
    # ========================================================================

    def handle_error(
        self,
        code: int,
        message: str,
        file: str,
        line: int = 0,
        context: Optional[dict] = None,
    ) -> bool:
        """
        Error hook target.

        Returns False when the platform's reporting mask suppresses ``code``,
        the redirect callback's verdict when it handled the error, else True.

        Raises:
            BlunderErrorException: In throw mode, the promoted error
        """
        context = context or {}
        platform = self.get_platform()

        if not (code & platform.error_reporting()):
            return False

        redirected = self.redirect_error(code, message, file, line, context)
        if isinstance(redirected, Handled):
            return redirected.result

        platform.clean_output_buffers()

        stack = context.get("stack")
        if stack is None:
            depth = self.state.max_trace_depth
            stack = capture_stack(1, limit=depth if depth is not None else MAX_TRACE_LEVEL)
        exception = BlunderErrorException(message, 0, code, file, line, stack=stack)
        self.state.exception = exception

        if self.state.throw_mode:
            exception.set_pretty_message(self.build_message(self.create_item(exception)))
            logger.debug("Raising %s from %s:%s", catalog.name_of(code, "error"), file, line)
            raise exception

        self.dispatch_to_renderer(self.create_item(exception))
        return True

    def redirect_error(
        self,
        code: int,
        message: str,
        file: str,
        line: int = 0,
        context: Optional[dict] = None,
    ) -> Continue | Handled:
        """
        Hand a redirected severity to the pool's redirect callback.

        A ``RenderWith`` verdict renders through the returned handler and
        terminates the process.
        """
        pool = self.state.severity_pool
        if not pool.is_redirected(code) or pool.redirect_call is None:
            return Continue()

        logger.debug("Redirecting %s", catalog.name_of(code, str(code)))
        result = coerce_redirect(pool.redirect_call(code, message, file, line, context or {}))

        if isinstance(result, RenderWith):
            target = result.handler
            if target.state.http is None:
                target.set_http(self.get_http())
            if target.platform is None:
                target.set_platform(self.get_platform())
            stack = (context or {}).get("stack")
            exception = BlunderErrorException(message, 0, code, file, line, stack=stack)
            target.handle_uncaught_exception(exception)
            exit_code = self.state.exit_code if self.state.exit_code is not None else 0
            self.get_platform().terminate(exit_code)
            return Handled(True)

        return result

    def handle_uncaught_exception(self, exception: BaseException) -> None:
        """Exception hook target."""
        self.state.exception = exception
        self.dispatch_to_renderer(self.create_item(exception))

    def handle_shutdown(self) -> None:
        """
        Shutdown hook target.

        Fatal errors recorded by the platform that fall inside the severity
        mask are rendered directly; the configured exit code applies either way.
        """
        self.state.throw_mode = False
        platform = self.get_platform()
        error = platform.error_get_last()
        if error is not None and catalog.is_fatal(error.type) and (error.type & self.state.severity_mask):
            logger.debug("Handling fatal %s at shutdown", catalog.name_of(error.type, str(error.type)))
            self.handle_error(error.type, error.message, error.file, error.line)
        self.send_exit_code()

    # ========================================================================
    # Rendering
    # ========================================================================

    def create_item(self, exception: BaseException) -> ExceptionItem:
        return ExceptionItem(
            exception,
            self.state.severity_pool,
            max_trace_level=self.state.max_trace_depth,
            trace_enabled=self.state.trace_enabled,
        )

    def build_message(self, item: ExceptionItem) -> str:
        """Diagnostic message attached to raised errors."""
        return ""

    @abstractmethod
    def dispatch_to_renderer(self, item: ExceptionItem) -> None:
        """Render ``item`` and emit it."""
        pass

    def emit(self, item: ExceptionItem) -> None:
        """
        Send the rendered response.

        Headers are finalized first, then the event callback runs, then the
        body is written to the platform output and the exit code applied.
        Event callback errors propagate and abort the remaining steps.
        """
        http = self.get_http()
        response = http.response()

        if not response.headers_sent:
            response.without_header("location")
            response.with_status(500)
        response.send_headers()

        self.notify(item)

        self.get_platform().write(response.body.get_contents())
        logger.debug("Emitted %s (%s)", item.type, item.status)
        self.send_exit_code()

    def notify(self, item: ExceptionItem) -> None:
        if self.state.event_callback is not None:
            self.state.event_callback(item, self.state.http)

    def send_exit_code(self) -> None:
        if self.state.exit_code is not None:
            self.get_platform().terminate(self.state.exit_code)


class RenderingHandler(AbstractHandler):
    """
    Handler composed with one renderer.

    The rendered body replaces the response body and its content type is
    set before emitting.
    """

    renderer_class: type[Renderer]

    def __init__(self, renderer: Optional[Renderer] = None, platform: Optional[Platform] = None):
        super().__init__(platform)
        self.renderer = renderer if renderer is not None else self.renderer_class()

    def build_message(self, item: ExceptionItem) -> str:
        return self.renderer.build_message(item)

    def render(self, item: ExceptionItem) -> Body:
        return self.renderer.render(item, self.get_http())

    def dispatch_to_renderer(self, item: ExceptionItem) -> None:
        body = self.render(item)
        response = self.get_http().response()
        response.body.truncate()
        response.body.write(body.content)
        response.with_header("content-type", body.content_type)
        self.emit(item)
