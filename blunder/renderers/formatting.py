"""
Blunder - Shared formatting helpers.

Composed into the renderers: trace line formatting, tag stripping,
excerpting and source-window extraction.
"""

from __future__ import annotations

import html
import re
import textwrap
from typing import Callable, Iterable, Optional

from ..metadata import StackFrame

TRACE_LINE = "#{index} {file}({line}): {function}({args})"

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def trace_lines(
    frames: Iterable[StackFrame],
    style: Optional[Callable[[int, StackFrame], str]] = None,
) -> list[str]:
    """
    Numbered trace lines, always closed by a ``{main}`` entry.

    ``style`` formats one frame; the default is ``TRACE_LINE``.
    """
    result: list[str] = []
    index = 0
    for index, frame in enumerate(frames):
        if style is not None:
            result.append(style(index, frame))
        else:
            result.append(format_frame(index, frame))
    result.append(f"#{index + 1} {{main}}" if result else "#0 {main}")
    return result


def format_frame(index: int, frame: StackFrame) -> str:
    return TRACE_LINE.format(
        index=index,
        file=frame.file or "0",
        line=frame.line or 0,
        function=frame.function or "void",
        args=", ".join(frame.args),
    )


def strip_tags(text: str) -> str:
    return _TAG_RE.sub("", text)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def wrap(text: str, width: int = 110) -> str:
    """Wrap at ``width`` columns without splitting long words."""
    return textwrap.fill(text, width, break_long_words=False, break_on_hyphens=False)


def excerpt(value: str, length: int) -> str:
    """Cut ``value`` at ``length`` characters, marking the cut with ``...``."""
    if len(value) > length:
        return value[:length].strip() + "..."
    return value


def source_window(lines: list[str], error_line: int, before: int = 10, after: int = 12) -> list[tuple[int, str]]:
    """Numbered lines around ``error_line`` (1-based)."""
    start = max(error_line - before, 1)
    end = error_line + after
    return [
        (number, text)
        for number, text in enumerate(lines, start=1)
        if start <= number <= end
    ]


def highlight_window(window: list[tuple[int, str]], error_line: int) -> str:
    """HTML markup for a source window with the error line marked active."""
    output = []
    for number, text in window:
        escaped = html.escape(text, quote=False)
        if number == error_line:
            line = f"<span class='line line-active'><span class='d-none'>&#10148;</span>{escaped}</span>\n"
        else:
            line = f"<span class='line'>{escaped}</span>\n"
        output.append(
            f'<span class="line-holder flex"><span class="line-number">{number}</span>{line}</span>'
        )
    return "".join(output)
