"""
Blunder - Configuration.

Loads and merges Blunder's settings from multiple sources with precedence:
overrides > environment variables > .env file > config files > defaults

Environment variables use the ``BLUNDER_`` prefix, e.g.
``BLUNDER_HANDLER=json`` or ``BLUNDER_EXCLUDE=E_WARNING,E_USER_WARNING``.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import dotenv_values

from .exceptions import ConfigurationError
from .severity import Severity, parse_severity

ENV_PREFIX = "BLUNDER_"

_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0", "")


@dataclass
class BlunderConfig:
    """
    Typed Blunder settings.

    Attributes:
        handler: Handler name (html, json, xml, text, plain, cli, silent)
        exit_code: Exit status after a fault, None to keep running
        trace_lines: Render stack traces, None for the handler's default
        exclude: Severity codes excluded from the pool
        show_fatal_errors: Let the silent handler render fatal faults
        remove_location_header: Drop a pending Location header at load
        max_trace_depth: Trace length bound, None for the default
        error_reporting: Platform reporting mask
    """
    handler: str = "html"
    exit_code: Optional[int] = None
    trace_lines: Optional[bool] = None
    exclude: list[int] = field(default_factory=list)
    show_fatal_errors: bool = False
    remove_location_header: bool = False
    max_trace_depth: Optional[int] = None
    error_reporting: int = Severity.ALL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BlunderConfig:
        """
        Build a config from loosely typed values.

        Raises:
            ConfigurationError: On unknown keys or values of the wrong type
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        config = cls()
        for key, value in data.items():
            if key == "handler":
                config.handler = str(value).strip().lower()
            elif key in ("exit_code", "max_trace_depth"):
                setattr(config, key, _to_optional_int(key, value))
            elif key == "trace_lines":
                config.trace_lines = None if value is None else _to_bool(key, value)
            elif key in ("show_fatal_errors", "remove_location_header"):
                setattr(config, key, _to_bool(key, value))
            elif key == "exclude":
                config.exclude = _to_severities(value)
            elif key == "error_reporting":
                config.error_reporting = _to_mask(value)
        return config

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class ConfigLoader:
    """
    Layered configuration loader.

    Example:
        ```python
        config = ConfigLoader.load(paths=["blunder.yaml"], env_file=".env")
        run = Run.from_config(config)
        ```
    """

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[Union[str, Path]]] = None,
        env_prefix: str = ENV_PREFIX,
        env_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> BlunderConfig:
        """
        Load configuration from every source and validate it.

        Args:
            paths: YAML or JSON config files, merged in order
            env_prefix: Prefix for environment variables
            env_file: Path to a .env file
            overrides: Manual overrides (highest precedence)
            environ: Environment to read instead of ``os.environ``

        Returns:
            Validated BlunderConfig
        """
        loader = cls(env_prefix=env_prefix)

        for path in paths or []:
            loader._load_file(Path(path))

        if env_file:
            loader._load_env_file(Path(env_file))

        loader._load_from_env(os.environ if environ is None else environ)

        if overrides:
            loader.config_data.update(overrides)

        return BlunderConfig.from_dict(loader.config_data)

    def _load_file(self, path: Path):
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        if path.suffix in (".yaml", ".yml"):
            self._load_yaml_file(path)
        elif path.suffix == ".json":
            self._load_json_file(path)
        else:
            raise ConfigurationError(f"Unsupported config file type: {path.suffix}")

    def _load_json_file(self, path: Path):
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc
        self._merge(data, path)

    def _load_yaml_file(self, path: Path):
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
        if data:
            self._merge(data, path)

    def _merge(self, data: Any, path: Path):
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path} must contain a mapping")
        # A top-level "blunder" section is accepted as well as a flat mapping
        section = data.get("blunder", data)
        if not isinstance(section, dict):
            raise ConfigurationError(f"'blunder' section in {path} must be a mapping")
        self.config_data.update(section)

    def _load_env_file(self, path: Path):
        if not path.exists():
            return
        self._load_from_env(dotenv_values(path))

    def _load_from_env(self, environ: Dict[str, Optional[str]]):
        for key, value in environ.items():
            if key.startswith(self.env_prefix) and value is not None:
                self.config_data[key[len(self.env_prefix):].lower()] = value


# ============================================================================
# Value coercion
# ============================================================================

def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise ConfigurationError(f"'{key}' must be a boolean, got {value!r}")


def _to_optional_int(key: str, value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none", "null")):
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}") from exc


def _to_severities(value: Any) -> list[int]:
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"'exclude' is not a valid list: {exc}") from exc
        else:
            value = [part for part in text.split(",") if part.strip()]
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"'exclude' must be a list of severities, got {value!r}")
    return [parse_severity(item.strip() if isinstance(item, str) else item) for item in value]


def _to_mask(value: Any) -> int:
    """A mask is a raw integer, one severity name or several joined with ``|``."""
    if isinstance(value, str):
        text = value.strip()
        if "|" in text:
            mask = 0
            for part in text.split("|"):
                mask |= _to_mask(part)
            return mask
        if text.isdigit():
            value = int(text)
        else:
            return parse_severity(text)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'error_reporting' must be a severity mask, got {value!r}")
    if not 0 <= value <= Severity.ALL:
        raise ConfigurationError(f"'error_reporting' must be between 0 and {int(Severity.ALL)}, got {value}")
    return int(value)
