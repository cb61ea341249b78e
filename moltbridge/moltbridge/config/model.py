from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    trading_enabled: str | None = None
    bridge_url: str | None = None
    hmac_secret: str | None = field(default=None, repr=False)
    timeout_seconds: float | None = None

    def summary(self) -> dict[str, object]:
        return {
            "trading_enabled": self.trading_enabled,
            "bridge_url": self.bridge_url,
            "hmac_secret_set": bool(self.hmac_secret),
            "timeout_seconds": self.timeout_seconds,
        }
