# === NAVMAP v1 ===
# {
#   "module": "InlineImages.settings",
#   "purpose": "Pydantic v2 configuration models and file/env/CLI loading",
#   "sections": [
#     {"id": "httpsettings", "name": "HttpSettings", "anchor": "class-httpsettings", "kind": "class"},
#     {"id": "loggingsettings", "name": "LoggingSettings", "anchor": "class-loggingsettings", "kind": "class"},
#     {"id": "inlineconfig", "name": "InlineConfig", "anchor": "class-inlineconfig", "kind": "class"},
#     {"id": "load-config", "name": "load_config", "anchor": "function-load-config", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""
Configuration for the image inliner.

Implements three-level config composition:
1. **File level** (YAML/JSON): base configuration
2. **Environment level**: INLINE_IMAGES_* prefixed variables override file
3. **CLI level**: programmatic overrides win

Environment variables use double-underscore notation:
  INLINE_IMAGES_HTTP__TIMEOUT_S=5  →  http.timeout_s=5
  INLINE_IMAGES_MAX_BYTES=2mb      →  max_bytes=2097152

JSON values are automatically parsed; strings are type-coerced when possible.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, ClassVar, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import __version__
from .core import DEFAULT_MAX_BYTES, parse_size
from .errors import ConfigError

__all__ = [
    "DEFAULT_ENV_PREFIX",
    "HttpSettings",
    "LoggingSettings",
    "InlineConfig",
    "load_config",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_ENV_PREFIX = "INLINE_IMAGES_"


class HttpSettings(BaseModel):
    """HTTP client settings for remote image fetches."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    user_agent: str = Field(
        default=f"InlineImages/{__version__}",
        description="User-Agent header sent with every request",
    )
    timeout_s: float = Field(
        default=30.0, gt=0, description="Wall-clock budget per fetch, redirects included"
    )
    max_redirects: int = Field(default=5, ge=0, description="Maximum redirect hops per fetch")
    verify_tls: bool = Field(default=True, description="Verify TLS certificates")
    chunk_size_bytes: int = Field(default=64 * 1024, gt=0, description="Streaming chunk size")
    max_connections: int = Field(default=10, ge=1, description="Connection pool size")


class LoggingSettings(BaseModel):
    """Console and JSON log output."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    json_log_file: Optional[Path] = Field(
        default=None, description="Optional JSON-lines log file"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}")
        return upper


class InlineConfig(BaseModel):
    """Top-level configuration for one inlining run."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    max_bytes: int = Field(
        default=DEFAULT_MAX_BYTES,
        gt=0,
        description="Byte ceiling shared by local reads and remote downloads",
    )
    root: Optional[Path] = Field(
        default=None, description="Base directory for local references (default: input dir)"
    )
    fetch_remote: bool = Field(default=True, description="Inline http(s) and // references")
    workers: int = Field(default=4, ge=1, description="Threads used to prefetch remote images")
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("max_bytes", mode="before")
    @classmethod
    def parse_max_bytes(cls, value: Union[int, str]) -> Union[int, str]:
        if isinstance(value, str):
            return parse_size(value)
        return value

    def config_hash(self) -> str:
        """SHA-256 of the normalized configuration, for log correlation."""

        normalized = json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(normalized.encode()).hexdigest()


def _read_file(path: Union[str, Path]) -> dict[str, Any]:
    """Read a YAML or JSON config file; the suffix selects the format."""

    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    suffix = p.suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    elif suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    else:
        raise ConfigError(f"Unsupported file format: {suffix}. Use .yaml or .json")

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def _assign_nested(data: dict[str, Any], dotted_key: str, value: Any) -> None:
    keys = dotted_key.split(".")
    current = data
    for key in keys[:-1]:
        existing = current.get(key)
        if not isinstance(existing, dict):
            existing = {}
            current[key] = existing
        current = existing
    current[keys[-1]] = value


def _coerce_env_value(value: str) -> Any:
    """Coerce an environment string: JSON first, then booleans, then plain text."""

    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        pass
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


def _merge_env_overrides(
    data: dict[str, Any],
    env_prefix: str = DEFAULT_ENV_PREFIX,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    source = os.environ if environ is None else environ
    for env_key, env_value in source.items():
        if not env_key.startswith(env_prefix):
            continue
        dotted_key = env_key[len(env_prefix) :].lower().replace("__", ".")
        coerced_value = _coerce_env_value(env_value)
        _assign_nested(data, dotted_key, coerced_value)
        _LOGGER.debug(f"Environment override: {env_key} → {dotted_key} = {coerced_value!r}")
    return data


def _merge_cli_overrides(
    data: dict[str, Any], cli_overrides: Optional[Mapping[str, Any]]
) -> dict[str, Any]:
    """Recursively merge CLI overrides into ``data``; ``None`` values are ignored."""

    if not cli_overrides:
        return data

    for key, value in cli_overrides.items():
        if value is None:
            continue
        if isinstance(value, Mapping) and isinstance(data.get(key), dict):
            data[key] = _merge_cli_overrides(data[key], value)
        elif isinstance(value, Mapping):
            data[key] = _merge_cli_overrides({}, value)
        else:
            data[key] = value
        _LOGGER.debug(f"CLI override: {key} = {value!r}")
    return data


def load_config(
    path: Optional[Union[str, Path]] = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    cli_overrides: Optional[Mapping[str, Any]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> InlineConfig:
    """
    Load :class:`InlineConfig` from file, environment, and CLI with proper precedence.

    **Precedence:** file < environment < CLI

    Args:
        path: Path to YAML/JSON config file (optional)
        env_prefix: Environment variable prefix (default: INLINE_IMAGES_)
        cli_overrides: CLI overrides dict (optional); ``None`` values are skipped
        environ: Environment mapping to read instead of ``os.environ``

    Returns:
        Validated InlineConfig instance

    Raises:
        ConfigError: If the file cannot be read or the merged config is invalid
    """
    data: dict[str, Any] = {}

    if path:
        data = _read_file(path)
        _LOGGER.debug(f"Loaded config from {path}")

    data = _merge_env_overrides(data, env_prefix, environ)
    data = _merge_cli_overrides(data, cli_overrides)

    try:
        config = InlineConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e

    _LOGGER.debug(f"Configuration validated. Config hash: {config.config_hash()[:8]}...")
    return config
