"""
Blunder - Run.

Entry point that installs a handler on the platform's three fault hooks.

Usage:
    ```python
    from blunder import Run, HtmlHandler

    run = Run(HtmlHandler())
    run.severity().exclude([Severity.DEPRECATED])
    run.load()
    ```
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import BlunderConfig
from .exceptions import ConfigurationError
from .handlers import HANDLERS, AbstractHandler, SilentHandler
from .handlers.base import EventCallback
from .http import HttpMessaging
from .platform import Platform, ensure_unhooked, get_default_platform
from .pool import SeverityLevelPool

logger = logging.getLogger("blunder.run")


class Run:
    """
    Binds one handler and one severity pool to a platform.

    Args:
        handler: Handler receiving every fault
        http: HTTP messaging collaborator to render through
        platform: Platform to install the hooks on, the interpreter by default
    """

    def __init__(
        self,
        handler: AbstractHandler,
        http: Optional[HttpMessaging] = None,
        platform: Optional[Platform] = None,
    ):
        self.handler = handler
        self.platform = platform or handler.platform or get_default_platform()
        self.handler.set_platform(self.platform)
        if http is not None:
            self.handler.set_http(http)
        self._severity: Optional[SeverityLevelPool] = None
        self._remove_location_header = False

    @classmethod
    def from_config(
        cls,
        config: BlunderConfig,
        http: Optional[HttpMessaging] = None,
        platform: Optional[Platform] = None,
    ) -> Run:
        """
        Build a Run from loaded configuration.

        Raises:
            ConfigurationError: If the handler name is unknown
        """
        handler_class = HANDLERS.get(config.handler)
        if handler_class is None:
            raise ConfigurationError(
                f"Unknown handler '{config.handler}'; expected one of {', '.join(sorted(HANDLERS))}"
            )

        if handler_class is SilentHandler:
            handler = SilentHandler(show_fatal_errors=config.show_fatal_errors)
        else:
            handler = handler_class()

        if config.trace_lines is not None:
            handler.enable_trace_lines(config.trace_lines)
        handler.set_max_trace_depth(config.max_trace_depth)

        run = cls(handler, http=http, platform=platform)
        if config.exit_code is not None:
            run.set_exit_code(config.exit_code)
        run.remove_location_header(config.remove_location_header)
        if config.exclude:
            run.severity().exclude(config.exclude)
        run.platform.set_error_reporting(config.error_reporting)
        return run

    def set_exit_code(self, code: Optional[int]) -> Run:
        self.handler.set_exit_code(code)
        return self

    def remove_location_header(self, remove: bool) -> Run:
        self._remove_location_header = remove
        return self

    def severity(self) -> SeverityLevelPool:
        """The severity pool, created on first use."""
        if self._severity is None:
            self._severity = SeverityLevelPool()
        return self._severity

    def on_event(self, callback: EventCallback) -> Run:
        self.handler.on_event(callback)
        return self

    event = on_event

    def load(self) -> Run:
        """
        Install the handler on the platform hooks.

        Raises:
            PreconditionError: If the platform already has hooks installed
        """
        ensure_unhooked(self.platform)

        if self._remove_location_header:
            response = self.handler.get_http().response()
            if not response.headers_sent:
                response.without_header("location")

        self.platform.ob_start()
        pool = self.severity()
        self.handler.set_severity(pool)
        self.platform.set_error_handler(self.handler.handle_error, pool.mask())
        self.platform.set_exception_handler(self.handler.handle_uncaught_exception)
        self.platform.register_shutdown_function(self.handler.handle_shutdown)
        self.platform.ob_end_clean()

        logger.debug(
            "Loaded %s with severity mask %s",
            type(self.handler).__name__,
            pool.mask(),
        )
        return self

    def unload(self) -> None:
        """Remove the hooks and restore whatever was installed before."""
        self.platform.restore()
        logger.debug("Unloaded %s", type(self.handler).__name__)
