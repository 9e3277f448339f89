"""
Blunder - Silent handler.

Silences every non-fatal fault. Faults still reach the event callback, and
fatal ones can be rendered as text with ``show_fatal_errors``.
"""

from __future__ import annotations

from typing import Optional

from ..item import ExceptionItem
from ..platform import Platform
from ..renderers import Renderer, TextRenderer
from .base import RenderingHandler


class SilentHandler(RenderingHandler):
    """
    Handler that renders nothing unless told to show fatal errors.

    Errors are never raised: throw mode starts off, so the error hook hands
    every fault straight to ``dispatch_to_renderer``.

    Args:
        show_fatal_errors: Render faults that are fatal or have status "error"
    """

    renderer_class = TextRenderer
    trace_lines_default = False

    def __init__(
        self,
        show_fatal_errors: bool = False,
        renderer: Optional[Renderer] = None,
        platform: Optional[Platform] = None,
    ):
        super().__init__(renderer, platform)
        self.show_fatal_errors = show_fatal_errors
        self.state.throw_mode = False

    def dispatch_to_renderer(self, item: ExceptionItem) -> None:
        if self.show_fatal_errors and (item.is_fatal or item.status == "error"):
            super().dispatch_to_renderer(item)
            return
        self.notify(item)
