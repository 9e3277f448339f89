"""
Blunder - Severity level pool.

The pool is the per-run subset of the severity catalog that decides which
severities are handled, which are excluded, and which are redirected to a
user callback instead of the default renderer.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from . import severity as catalog
from .exceptions import ConfigurationError
from .severity import Severity

logger = logging.getLogger("blunder.pool")

# (code, message, file, line, context) -> None | bool | handler | RedirectResult
RedirectCallback = Callable[[int, str, str, int, dict], Any]


class SeverityLevelPool:
    """
    Mutable set of allowed and removed severity codes.

    Invariants:
    - ``allowed`` and ``removed`` never share a code until ``redirect_to``
      re-admits the removed codes
    - codes handed to mutating operations must exist in the catalog

    Usage:
        ```python
        pool = SeverityLevelPool()
        pool.exclude([Severity.WARNING, Severity.USER_WARNING])
        pool.redirect_to(lambda code, message, file, line, context: True)
        ```
    """

    def __init__(self, allowed: Optional[Iterable[int]] = None):
        self._allowed: list[int] = []
        self._removed: list[int] = []
        self._redirect_call: Optional[RedirectCallback] = None

        if allowed is not None:
            self.set_severity_levels(allowed)
        else:
            self._allowed = list(catalog.all_codes())

    # ========================================================================
    # Catalog helpers
    # ========================================================================

    @staticmethod
    def get_severity_level(level: int, fallback: Optional[str] = None) -> Optional[str]:
        """Symbolic name of ``level``, or ``fallback`` if unknown."""
        return catalog.name_of(level, fallback)

    @staticmethod
    def list_all() -> dict[str, int]:
        """All severities that can be used, keyed by symbolic name."""
        return {entry.name: int(entry.code) for entry in catalog.CATALOG}

    # ========================================================================
    # Mutation
    # ========================================================================

    def set_severity_levels(self, levels: Iterable[int]) -> SeverityLevelPool:
        """Replace the allowed list with a validated one."""
        levels = [int(level) for level in levels]
        for level in levels:
            if not catalog.is_known(level):
                raise ConfigurationError(f"The severity level '{level}' does not exist.")
        self._allowed = levels
        self._removed = []
        return self

    def exclude(self, codes: Iterable[int]) -> SeverityLevelPool:
        """
        Exclude severities from the allowed list.

        Excluding anything also drops the catch-all, since the pool no longer
        covers every severity.

        Raises:
            ConfigurationError: If a code is not in the severity catalog
        """
        codes = [int(code) for code in codes]
        self._validate(codes)
        if Severity.ALL in self._allowed:
            self._allowed.remove(Severity.ALL)
        for code in codes:
            self.delete(code)
        return self

    exclude_severity_levels = exclude

    def delete(self, code: int) -> bool:
        """Move one code from allowed to removed."""
        code = int(code)
        if code in self._allowed:
            self._allowed.remove(code)
            if code not in self._removed:
                self._removed.append(code)
            return True
        return False

    delete_severity_level = delete

    def redirect_to(self, callback: RedirectCallback) -> SeverityLevelPool:
        """
        Send removed severities to ``callback`` instead of the renderer.

        Removed codes are re-admitted into the allowed list so the platform
        hook still fires for them; the handler intercepts them before the
        default render path.
        """
        for code in self._removed:
            if code not in self._allowed:
                self._allowed.append(code)
        self._redirect_call = callback
        logger.debug("Redirecting severities %s", self._removed)
        return self

    # ========================================================================
    # Queries
    # ========================================================================

    @property
    def redirect_call(self) -> Optional[RedirectCallback]:
        return self._redirect_call

    def has(self, code: int) -> bool:
        return int(code) in self._allowed

    def is_redirected(self, code: int) -> bool:
        return int(code) in self._removed

    has_removed_severity = is_redirected

    def mask(self) -> int:
        """Bitmask for the platform error hook; the catch-all absorbs everything."""
        if Severity.ALL in self._allowed:
            return int(Severity.ALL)

        error_mask = 0
        for code in self._allowed:
            error_mask |= code
        return error_mask

    get_severity_level_mask = mask

    def list_supported(self) -> list[int]:
        return list(self._allowed)

    def list_removed(self) -> list[int]:
        return list(self._removed)

    @staticmethod
    def is_level_fatal(level: int) -> bool:
        return catalog.is_fatal(level)

    def _validate(self, levels: list[int]) -> None:
        for level in levels:
            if not catalog.is_known(level):
                raise ConfigurationError(f"The severity level '{level}' does not exist.")

    def __repr__(self) -> str:
        return f"SeverityLevelPool(allowed={self._allowed}, removed={self._removed})"
