from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator


# Keys that must never reach the ledger even if a caller passes them in.
REDACTED_KEYS = {"hmac_secret", "signature", "body"}


class AuditLedger:
    """
    Append-only JSONL record of trade bridge dispatch outcomes.

    One line per call, keyed by the request nonce. Secrets, signatures and
    request bodies are stripped before anything is written.
    """

    def __init__(self, audit_dir: str | Path = "audit", filename: str = "ledger.jsonl"):
        self.audit_dir = Path(audit_dir)
        self.audit_dir.mkdir(parents=True, exist_ok=True)
        self.ledger_path = self.audit_dir / filename

    def write_event(self, event: dict[str, Any]) -> dict[str, Any]:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **{k: v for k, v in event.items() if k not in REDACTED_KEYS},
        }
        with self.ledger_path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(payload, sort_keys=True) + "\n")
        return payload

    def record_dispatch(
        self,
        *,
        request_id: str,
        method: str,
        path: str,
        status: int,
        ok: bool,
        reason: str | None = None,
    ) -> dict[str, Any]:
        return self.write_event(
            {
                "request_id": request_id,
                "method": method.upper(),
                "path": path,
                "status": status,
                "ok": ok,
                "decision": "ALLOW" if ok else "BLOCK",
                "reason": reason or "ok",
            }
        )

    def events(self) -> Iterator[dict[str, Any]]:
        if not self.ledger_path.exists():
            return
        with self.ledger_path.open(encoding="utf-8") as fh:
            for line in fh:
                if not line.strip():
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError:
                    continue

    def tail(self, n: int = 20) -> list[dict[str, Any]]:
        if n <= 0:
            return []
        return list(self.events())[-n:]
