"""
Shared test fixtures and helpers for the Blunder test suite.
"""

import pytest
from typing import Optional

from blunder.exceptions import BlunderErrorException
from blunder.handlers.base import AbstractHandler
from blunder.http import HttpMessaging, Request, Response, Stream
from blunder.item import ExceptionItem
from blunder.pool import SeverityLevelPool
from blunder.severity import Severity
from blunder.testing import RecordingPlatform


# ============================================================================
# Fault Helpers
# ============================================================================


def raised(exception: BaseException) -> BaseException:
    """Raise and catch ``exception`` so it carries a traceback."""
    try:
        raise exception
    except BaseException as exc:
        return exc


def deep_raise(depth: int) -> BaseException:
    """An exception raised ``depth`` calls below the caller."""
    def recurse(level: int, payload: dict):
        if level <= 0:
            raise RuntimeError("bottom reached")
        recurse(level - 1, payload)

    try:
        recurse(depth, {"secret": "s3cr3t"})
    except RuntimeError as exc:
        return exc


def make_error(
    code: int = Severity.WARNING,
    message: str = "Something went sideways",
    file: str = __file__,
    line: int = 42,
    stack: Optional[list] = None,
) -> BlunderErrorException:
    return BlunderErrorException(message, 0, code, file, line, stack=stack if stack is not None else [])


def make_item(exception: BaseException, **kwargs) -> ExceptionItem:
    return ExceptionItem(exception, **kwargs)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def platform():
    """In-memory platform recording output and terminations."""
    return RecordingPlatform()


@pytest.fixture
def http():
    """Collaborator with a fixed request so rendering never reads os.environ."""
    request = Request(
        "POST",
        "https://example.test:8443/orders?page=2",
        cookies={"session": "abc"},
        body={"name": "Ada"},
        server={"SERVER_NAME": "example.test"},
    )
    return HttpMessaging(Response(Stream()), request)


@pytest.fixture
def pool():
    return SeverityLevelPool()


@pytest.fixture
def make_handler(platform, http):
    """Factory binding a handler to the recording platform and collaborator."""
    def factory(handler_class, *args, **kwargs) -> AbstractHandler:
        handler = handler_class(*args, **kwargs)
        handler.set_platform(platform)
        handler.set_http(http)
        handler.set_severity(SeverityLevelPool())
        return handler
    return factory


@pytest.fixture
def events():
    """Event callback recording every ``(item, http)`` call."""
    calls = []

    def callback(item, http):
        calls.append((item, http))

    callback.calls = calls
    return callback
