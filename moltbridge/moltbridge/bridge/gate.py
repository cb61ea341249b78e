from __future__ import annotations

from moltbridge.config.model import BridgeConfig


def is_trading_enabled(config: BridgeConfig) -> bool:
    return config.trading_enabled == "true"


def is_bridge_configured(config: BridgeConfig) -> bool:
    return bool(config.bridge_url) and bool(config.hmac_secret)
