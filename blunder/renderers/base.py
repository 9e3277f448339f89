"""
Blunder - Renderer contract.

A renderer turns one ``ExceptionItem`` into a response body. Renderers hold
no dispatch state: the same item rendered twice yields the same body.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..metadata import StackFrame

if TYPE_CHECKING:
    from ..http import HttpMessaging
    from ..item import ExceptionItem


@dataclass(frozen=True)
class Body:
    """Rendered output and the content type it is served with."""
    content: str
    content_type: str = "text/plain; charset=utf-8"


class Renderer(ABC):
    """
    Abstract base class for fault renderers.

    Example:
        ```python
        class ShortRenderer(Renderer):
            def render(self, item, http=None):
                return Body(self.build_message(item))

            def build_message(self, item):
                return f"{item.type}: {item.message}"
        ```
    """

    content_type = "text/plain; charset=utf-8"

    @abstractmethod
    def render(self, item: ExceptionItem, http: Optional[HttpMessaging] = None) -> Body:
        """
        Render ``item`` into a body.

        Args:
            item: Fault to render
            http: Collaborator used for source excerpts and request details

        Returns:
            Body holding the rendered content
        """
        pass

    def build_message(self, item: ExceptionItem) -> str:
        """Diagnostic message attached to faults raised in throw mode."""
        return f"{item.type} ({item.severity_title}): {item.message} in {item.file}:{item.line}"

    def code_block(self, frame: StackFrame, excerpt: str, index: int = 0) -> str:
        """Visible block for one frame's source excerpt."""
        return excerpt
