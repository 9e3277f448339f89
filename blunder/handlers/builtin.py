"""
Blunder - Built-in handlers.

Each handler pairs the dispatch state machine with one renderer and a
default for trace lines.
"""

from __future__ import annotations

from ..renderers import (
    CliRenderer,
    HtmlRenderer,
    JsonRenderer,
    PlainTextRenderer,
    TextRenderer,
    XmlRenderer,
)
from .base import RenderingHandler


class HtmlHandler(RenderingHandler):
    """Debug page with source excerpts and request details."""
    renderer_class = HtmlRenderer


class JsonHandler(RenderingHandler):
    renderer_class = JsonRenderer


class XmlHandler(RenderingHandler):
    renderer_class = XmlRenderer


class TextHandler(RenderingHandler):
    renderer_class = TextRenderer


class PlainTextHandler(RenderingHandler):
    renderer_class = PlainTextRenderer


class CliHandler(RenderingHandler):
    """ANSI output for terminals, without a stack trace unless enabled."""
    renderer_class = CliRenderer
    trace_lines_default = False
