from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import yaml

from .model import BridgeConfig


ENV_TRADING_ENABLED = "TRADING_ENABLED"
ENV_BRIDGE_URL = "TRADE_BRIDGE_URL"
ENV_HMAC_SECRET = "TRADE_BRIDGE_HMAC_SECRET"
ENV_TIMEOUT_SECONDS = "TRADE_BRIDGE_TIMEOUT_SECONDS"


class ConfigError(ValueError):
    pass


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def _trading_flag(value: object) -> str | None:
    # YAML turns bare yes/on/true into bools; only a quoted "true" opens the gate.
    if value is None or isinstance(value, str):
        return value
    raise ConfigError("trading_enabled must be a quoted string")


def _parse_timeout(value: object) -> float | None:
    if value is None or value == "":
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"timeout_seconds must be a number, got {value!r}") from exc
    if timeout <= 0:
        raise ConfigError("timeout_seconds must be positive")
    return timeout


def _read_file(path: str | Path) -> dict:
    path_obj = Path(path)
    if not path_obj.exists():
        raise ConfigError(f"Config file not found: {path_obj}")

    try:
        data = yaml.safe_load(path_obj.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {path_obj}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping")
    return data


def load_config(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> BridgeConfig:
    """
    Build a BridgeConfig from an optional YAML file plus environment overrides.

    File keys: trading_enabled, bridge_url, hmac_secret, timeout_seconds.
    Environment variables win over file values. Pass `env` explicitly to
    avoid reading the process environment.
    """
    data = _read_file(path) if path else {}
    source = os.environ if env is None else env

    def pick(env_key: str, file_key: str) -> object:
        value = source.get(env_key)
        if value is not None:
            return value
        return data.get(file_key)

    return BridgeConfig(
        trading_enabled=_trading_flag(pick(ENV_TRADING_ENABLED, "trading_enabled")),
        bridge_url=_optional_str(pick(ENV_BRIDGE_URL, "bridge_url")),
        hmac_secret=_optional_str(pick(ENV_HMAC_SECRET, "hmac_secret")),
        timeout_seconds=_parse_timeout(pick(ENV_TIMEOUT_SECONDS, "timeout_seconds")),
    )
