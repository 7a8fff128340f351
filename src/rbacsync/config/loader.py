"""Config loading: defaults, then a YAML/JSON file, then environment variables."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from rbacsync.contracts.config import DEFAULT_API_ENDPOINT, RbacSyncConfig
from rbacsync.contracts.exceptions import ConfigError

_LOG = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/rbacsync/config.yaml")
ENV_PREFIX = "RBACSYNC_"
# Read when RBACSYNC_API_TOKEN is unset, for compatibility with the vendor CLI.
FALLBACK_TOKEN_ENV = "REPLICATED_API_TOKEN"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

_TOKEN_GUIDANCE = (
    f"Set {ENV_PREFIX}API_TOKEN (or {FALLBACK_TOKEN_ENV}), add api_token to "
    f"{DEFAULT_CONFIG_PATH}, or pass --api-token."
)

CONFIG_TEMPLATE = f"""\
# rbacsync configuration
# Values here are overridden by {ENV_PREFIX}* environment variables.

# Vendor API endpoint.
api_endpoint: {DEFAULT_API_ENDPOINT}

# API token. Prefer the {ENV_PREFIX}API_TOKEN environment variable over storing it here.
api_token: ""

# One of: debug, info, warn, error.
log_level: info

# Skip the confirmation prompt before deleting roles.
confirm: false

retry:
  # Extra attempts after the first for transient failures (network, 5xx).
  max_retries: 3
  # Seconds before the first retry; doubles on each further retry.
  base_delay: 1.0
"""


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (true/false), got {raw!r}")


def _read_file(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed reading config file: {path}") from exc

    try:
        if suffix in {".yaml", ".yml"}:
            payload = yaml.safe_load(text)
        elif suffix == ".json":
            payload = json.loads(text)
        else:
            raise ConfigError(f"unsupported config file format: {suffix or path.name}")
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in config file: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in config file: {path}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError(f"config file root must be a mapping: {path}")

    data = dict(payload)
    # Top-level max_retries is accepted as a shorthand for retry.max_retries.
    if "max_retries" in data:
        retry = dict(data.get("retry") or {})
        retry.setdefault("max_retries", data.pop("max_retries"))
        data["retry"] = retry
    return data


def _from_env(env: Mapping[str, str]) -> dict[str, Any]:
    data: dict[str, Any] = {}

    def get(name: str) -> str | None:
        value = env.get(name, "")
        return value if value.strip() else None

    if (endpoint := get(f"{ENV_PREFIX}API_ENDPOINT")) is not None:
        data["api_endpoint"] = endpoint
    token = get(f"{ENV_PREFIX}API_TOKEN") or get(FALLBACK_TOKEN_ENV)
    if token is not None:
        data["api_token"] = token
    if (level := get(f"{ENV_PREFIX}LOG_LEVEL")) is not None:
        data["log_level"] = level
    if (confirm := get(f"{ENV_PREFIX}CONFIRM")) is not None:
        data["confirm"] = _parse_bool(f"{ENV_PREFIX}CONFIRM", confirm)
    if (retries := get(f"{ENV_PREFIX}MAX_RETRIES")) is not None:
        try:
            data["retry"] = {"max_retries": int(retries)}
        except ValueError as exc:
            raise ConfigError(f"{ENV_PREFIX}MAX_RETRIES must be an integer, got {retries!r}") from exc
    return data


def _merge(base: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        if key == "retry" and isinstance(value, Mapping):
            merged = dict(base.get("retry") or {})
            merged.update(value)
            base["retry"] = merged
        else:
            base[key] = value


def load_config(
    path: str | Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> RbacSyncConfig:
    """Resolve configuration from every source, later sources winning.

    Precedence: defaults < config file < environment < *overrides* (CLI flags).
    An explicit *path* must exist; without one, ``~/.config/rbacsync/config.yaml``
    is read only when present.
    """
    env = os.environ if env is None else env
    data: dict[str, Any] = {}

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.is_file():
            raise ConfigError(f"config file not found: {config_path}")
        _merge(data, _read_file(config_path))
    else:
        default_path = DEFAULT_CONFIG_PATH.expanduser()
        if default_path.is_file():
            _LOG.debug("reading default config file %s", default_path)
            _merge(data, _read_file(default_path))

    _merge(data, _from_env(env))
    if overrides:
        _merge(data, {key: value for key, value in overrides.items() if value is not None})

    try:
        return RbacSyncConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc


def require_token(config: RbacSyncConfig) -> str:
    if not config.api_token:
        raise ConfigError("API token is required", guidance=_TOKEN_GUIDANCE)
    return config.api_token


def write_config_template(path: str | Path, *, force: bool = False) -> Path:
    config_path = Path(path).expanduser()
    if config_path.exists() and not force:
        raise ConfigError(
            f"config file already exists: {config_path}",
            guidance="Pass --force to overwrite it.",
        )
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed writing config file: {config_path}") from exc
    return config_path
