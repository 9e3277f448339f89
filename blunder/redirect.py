"""
Blunder - Redirect results.

A redirect callback tells the handler what to do with a redirected fault:

- Continue: fall through to normal handling
- Handled: stop here and report ``result`` to the platform
- RenderWith: render through another handler and terminate

Callbacks may also return the bare values ``None``, a ``bool`` or a handler
instance; ``coerce_redirect`` turns those into the variants above.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .handlers.base import AbstractHandler


@dataclass(frozen=True)
class Continue:
    """Fault was not intercepted; continue with default handling."""
    pass


@dataclass(frozen=True)
class Handled:
    """Fault was intercepted; ``result`` is returned to the platform hook."""
    result: bool


@dataclass(frozen=True)
class RenderWith:
    """Fault should be rendered through ``handler`` before terminating."""
    handler: AbstractHandler


RedirectResult = Continue | Handled | RenderWith


def coerce_redirect(value: Any) -> RedirectResult:
    """
    Normalize a redirect callback return value.

    Raises:
        TypeError: If the value is not a variant, None, bool or handler
    """
    from .handlers.base import AbstractHandler

    if isinstance(value, (Continue, Handled, RenderWith)):
        return value
    if value is None:
        return Continue()
    if isinstance(value, bool):
        return Handled(value)
    if isinstance(value, AbstractHandler):
        return RenderWith(value)
    raise TypeError(
        f"Redirect callback returned {type(value).__name__}; "
        "expected None, bool, a handler or a RedirectResult"
    )
