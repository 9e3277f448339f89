"""
Blunder - Renderers.

Pure formatting over ExceptionItem: each renderer turns one item into a
``Body``. Handlers compose one renderer and own the dispatch state.
"""

from .base import Body, Renderer
from .page import HtmlRenderer
from .structured import JsonRenderer, XmlRenderer
from .text import CliRenderer, PlainTextRenderer, TextRenderer

__all__ = [
    "Body",
    "Renderer",
    "HtmlRenderer",
    "JsonRenderer",
    "XmlRenderer",
    "TextRenderer",
    "PlainTextRenderer",
    "CliRenderer",
]
