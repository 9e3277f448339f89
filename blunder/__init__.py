"""
Blunder - Error and exception interception.

Installs error (warning), uncaught exception and shutdown hooks, classifies
each fault by severity and renders it through a pluggable handler:

- Severity: bit-flag codes with a catalog of names and titles
- Pool: per-run selection of handled, excluded and redirected severities
- Items: captured faults with bounded, argument-sanitized traces
- Handlers: HTML debug page, JSON, XML, text, plain text, CLI, silent
- Run: installs one handler on the platform hooks

Usage:
    ```python
    from blunder import Run, JsonHandler, Severity

    run = Run(JsonHandler())
    run.severity().exclude([Severity.DEPRECATED]).redirect_to(
        lambda code, message, file, line, context: True
    )
    run.load()
    ```
"""

__version__ = "0.1.0"

from .config import BlunderConfig, ConfigLoader
from .events import LoggingListener
from .exceptions import (
    BlunderError,
    BlunderErrorException,
    ConfigurationError,
    PreconditionError,
    RenderFailure,
)
from .handlers import (
    AbstractHandler,
    CliHandler,
    HandlerState,
    HtmlHandler,
    JsonHandler,
    PlainTextHandler,
    RenderingHandler,
    SilentHandler,
    TextHandler,
    XmlHandler,
)
from .http import HttpMessaging, Request, Response, Stream
from .item import ExceptionItem
from .metadata import ExceptionMetadata, StackFrame
from .platform import Platform, PythonRuntime, get_default_platform
from .pool import SeverityLevelPool
from .redirect import Continue, Handled, RedirectResult, RenderWith
from .run import Run
from .severity import Severity

__all__ = [
    "__version__",
    # Core
    "Run",
    "Severity",
    "SeverityLevelPool",
    "ExceptionItem",
    "ExceptionMetadata",
    "StackFrame",
    # Handlers
    "AbstractHandler",
    "HandlerState",
    "RenderingHandler",
    "HtmlHandler",
    "JsonHandler",
    "XmlHandler",
    "TextHandler",
    "PlainTextHandler",
    "CliHandler",
    "SilentHandler",
    # Redirect
    "Continue",
    "Handled",
    "RenderWith",
    "RedirectResult",
    # Platform & HTTP
    "Platform",
    "PythonRuntime",
    "get_default_platform",
    "HttpMessaging",
    "Request",
    "Response",
    "Stream",
    # Config & events
    "BlunderConfig",
    "ConfigLoader",
    "LoggingListener",
    # Errors
    "BlunderError",
    "BlunderErrorException",
    "ConfigurationError",
    "PreconditionError",
    "RenderFailure",
]
