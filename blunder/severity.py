"""
Blunder - Severity codes and catalog.

Defines:
- Severity (bit-flag severity codes)
- CatalogEntry (code, symbolic name, title)
- The static catalog and lookups over it
- The fatal-level predicate
- Mapping of Python warning categories to severity codes
"""

from __future__ import annotations

from enum import IntEnum
from dataclasses import dataclass
from typing import Any, Optional

from .exceptions import ConfigurationError


# ============================================================================
# Severity codes
# ============================================================================

class Severity(IntEnum):
    """
    Fault severity codes.

    Every code is a power of two so codes can be OR-ed into a mask.
    ``ALL`` is the catch-all sentinel and is the only non power of two.
    """
    ERROR = 1
    WARNING = 2
    PARSE = 4
    NOTICE = 8
    CORE_ERROR = 16
    CORE_WARNING = 32
    COMPILE_ERROR = 64
    COMPILE_WARNING = 128
    USER_ERROR = 256
    USER_WARNING = 512
    USER_NOTICE = 1024
    RECOVERABLE_ERROR = 4096
    DEPRECATED = 8192
    USER_DEPRECATED = 16384
    ALL = 32767


FATAL_MASK = (
    Severity.ERROR
    | Severity.PARSE
    | Severity.CORE_ERROR
    | Severity.CORE_WARNING
    | Severity.COMPILE_ERROR
    | Severity.COMPILE_WARNING
)


# ============================================================================
# Catalog
# ============================================================================

@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One severity code with its symbolic name and human title."""
    code: int
    name: Optional[str]
    title: str

    @property
    def is_fallback(self) -> bool:
        return self.code == 0


FALLBACK = CatalogEntry(0, None, "Error")

CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(Severity.ERROR, "E_ERROR", "Fatal error"),
    CatalogEntry(Severity.WARNING, "E_WARNING", "Warning"),
    CatalogEntry(Severity.PARSE, "E_PARSE", "Parse error"),
    CatalogEntry(Severity.NOTICE, "E_NOTICE", "Notice"),
    CatalogEntry(Severity.CORE_ERROR, "E_CORE_ERROR", "Core fatal error"),
    CatalogEntry(Severity.CORE_WARNING, "E_CORE_WARNING", "Core warning"),
    CatalogEntry(Severity.COMPILE_ERROR, "E_COMPILE_ERROR", "Compile-time fatal error"),
    CatalogEntry(Severity.COMPILE_WARNING, "E_COMPILE_WARNING", "Compile-time warning"),
    CatalogEntry(Severity.USER_ERROR, "E_USER_ERROR", "User fatal error"),
    CatalogEntry(Severity.USER_WARNING, "E_USER_WARNING", "User warning"),
    CatalogEntry(Severity.USER_NOTICE, "E_USER_NOTICE", "User notice"),
    CatalogEntry(Severity.RECOVERABLE_ERROR, "E_RECOVERABLE_ERROR", "Recoverable fatal error"),
    CatalogEntry(Severity.DEPRECATED, "E_DEPRECATED", "Deprecated notice"),
    CatalogEntry(Severity.USER_DEPRECATED, "E_USER_DEPRECATED", "User deprecated notice"),
    CatalogEntry(Severity.ALL, "E_ALL", "All"),
)

_BY_CODE: dict[int, CatalogEntry] = {entry.code: entry for entry in CATALOG}
_BY_NAME: dict[str, CatalogEntry] = {entry.name: entry for entry in CATALOG}


def entry_for(code: int) -> CatalogEntry:
    """Return the catalog entry for ``code``, or the fallback entry."""
    return _BY_CODE.get(int(code), FALLBACK)


def name_of(code: int, fallback: Optional[str] = None) -> Optional[str]:
    """Symbolic name (e.g. ``E_WARNING``) of a code, or ``fallback`` if unknown."""
    entry = entry_for(code)
    return fallback if entry.is_fallback else entry.name


def title_of(code: int, fallback: str = "Error") -> str:
    """Human title of a code, or ``fallback`` if unknown."""
    entry = entry_for(code)
    return fallback if entry.is_fallback else entry.title


def is_fatal(code: int) -> bool:
    """True if the code intersects the fatal set."""
    return (int(code) & FATAL_MASK) > 0


def all_codes() -> tuple[int, ...]:
    """All catalog codes, the catch-all included."""
    return tuple(int(entry.code) for entry in CATALOG)


def is_known(code: Any) -> bool:
    try:
        return int(code) in _BY_CODE
    except (TypeError, ValueError):
        return False


def parse_severity(value: Any) -> int:
    """
    Resolve a configuration value into a severity code.

    Accepts ints, ``Severity`` members, member names (``"WARNING"``) and
    symbolic names (``"E_WARNING"``).

    Raises:
        ConfigurationError: If the value does not name a catalog code.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"The severity level '{value}' does not exist.")

    if isinstance(value, int):
        if value in _BY_CODE:
            return int(value)
        raise ConfigurationError(f"The severity level '{value}' does not exist.")

    if isinstance(value, str):
        key = value.strip().upper()
        if key.isdigit():
            return parse_severity(int(key))
        if key in _BY_NAME:
            return int(_BY_NAME[key].code)
        if f"E_{key}" in _BY_NAME:
            return int(_BY_NAME[f"E_{key}"].code)

    raise ConfigurationError(f"The severity level '{value}' does not exist.")


# ============================================================================
# Python warnings
# ============================================================================

_WARNING_MAP: tuple[tuple[type[Warning], Severity], ...] = (
    (PendingDeprecationWarning, Severity.DEPRECATED),
    (DeprecationWarning, Severity.DEPRECATED),
    (FutureWarning, Severity.USER_DEPRECATED),
    (UserWarning, Severity.USER_WARNING),
    (SyntaxWarning, Severity.WARNING),
    (RuntimeWarning, Severity.WARNING),
    (ImportWarning, Severity.NOTICE),
    (ResourceWarning, Severity.NOTICE),
    (BytesWarning, Severity.NOTICE),
    (UnicodeWarning, Severity.NOTICE),
    (EncodingWarning, Severity.NOTICE),
)


def severity_for_warning(category: type[Warning]) -> int:
    """Map a Python warning category onto a severity code."""
    for warning_type, severity in _WARNING_MAP:
        if issubclass(category, warning_type):
            return int(severity)
    return int(Severity.WARNING)
