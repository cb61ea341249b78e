from __future__ import annotations

from dataclasses import dataclass
from typing import Any


ALLOWED_METHODS = {"GET", "POST"}


@dataclass(slots=True)
class TradeBridgeRequest:
    method: str
    path: str
    body: Any = None


@dataclass(slots=True)
class TradeBridgeResponse:
    ok: bool
    status: int
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"ok": self.ok, "status": self.status}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
        return out
