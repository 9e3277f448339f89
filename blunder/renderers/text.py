"""
Blunder - Text renderers.

TextRenderer emits a ``<pre>`` block for browsers, PlainTextRenderer the
same message without tags and CliRenderer an ANSI-styled message for
terminals.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import click

from .. import severity as catalog
from ..metadata import StackFrame
from . import formatting
from .base import Body, Renderer

if TYPE_CHECKING:
    from ..http import HttpMessaging
    from ..item import ExceptionItem

MESSAGE_TEMPLATE = (
    "<strong>Fatal error:</strong>  Uncaught exception '{type} ({severity})' "
    "with message '{message}' in {file}:<strong>{line}</strong>\n"
    "Stack trace:\n{trace}\n"
    "  thrown in {file} on <strong>line {line}</strong>"
)


def _severity_label(item: ExceptionItem) -> str:
    return catalog.name_of(item.flag, "Error")


class TextRenderer(Renderer):
    """Uncaught exception message with a numbered stack trace."""

    content_type = "text/html; charset=utf-8"

    def render(self, item: ExceptionItem, http: Optional[HttpMessaging] = None) -> Body:
        return Body(f"<pre>{self.build_message(item)}</pre>", self.content_type)

    def build_message(self, item: ExceptionItem) -> str:
        return MESSAGE_TEMPLATE.format(
            type=item.type,
            severity=_severity_label(item),
            message=item.message,
            file=item.file,
            line=item.line,
            trace="\n".join(formatting.trace_lines(item.trace())),
        )


class PlainTextRenderer(TextRenderer):
    """TextRenderer output with every tag stripped."""

    content_type = "text/plain; charset=utf-8"

    def render(self, item: ExceptionItem, http: Optional[HttpMessaging] = None) -> Body:
        return Body(formatting.strip_tags(self.build_message(item)), self.content_type)


class CliRenderer(Renderer):
    """
    ANSI message for terminals.

    The message is collapsed to single spaces and wrapped at ``width``
    columns. The stack trace is only listed when the item carries one.
    """

    content_type = "text/plain; charset=utf-8"

    def __init__(self, width: int = 110):
        self.width = width

    def render(self, item: ExceptionItem, http: Optional[HttpMessaging] = None) -> Body:
        return Body(self.build_message(item), self.content_type)

    def build_message(self, item: ExceptionItem) -> str:
        message = formatting.wrap(formatting.collapse_whitespace(item.message), self.width)

        out = "\n"
        out += click.style(f"{item.type} ", fg="red") + click.style(f"({_severity_label(item)})", italic=True) + ": "
        out += click.style(f"{message} ", bold=True) + " \n\n"
        out += click.style("File: ", bold=True) + f"{item.file}:(" + click.style(str(item.line), bold=True) + ")\n\n"

        if item.meta.trace_enabled:
            lines = formatting.trace_lines(item.trace(), style=self._trace_line)
            out += click.style("Stack trace:", bold=True) + "\n"
            out += "\n".join(lines) + "\n"

        return out + "\n"

    @staticmethod
    def _trace_line(index: int, frame: StackFrame) -> str:
        return (
            click.style(f"#{index} ", bold=True)
            + f"{frame.file or '0'}("
            + click.style(str(frame.line or 0), bold=True)
            + f"): {frame.function or 'void'}({', '.join(frame.args)})"
        )
