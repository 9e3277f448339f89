"""
Blunder - Handlers.

Handlers are the platform hook targets. They own the dispatch state and
compose a renderer for output.
"""

from .base import AbstractHandler, HandlerState, RenderingHandler
from .builtin import (
    CliHandler,
    HtmlHandler,
    JsonHandler,
    PlainTextHandler,
    TextHandler,
    XmlHandler,
)
from .silent import SilentHandler

HANDLERS = {
    "html": HtmlHandler,
    "json": JsonHandler,
    "xml": XmlHandler,
    "text": TextHandler,
    "plain": PlainTextHandler,
    "cli": CliHandler,
    "silent": SilentHandler,
}

__all__ = [
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
    "HANDLERS",
]
