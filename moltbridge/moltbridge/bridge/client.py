from __future__ import annotations

import logging
from typing import Any

import requests

from moltbridge.audit.ledger import AuditLedger
from moltbridge.config.model import BridgeConfig

from .gate import is_bridge_configured, is_trading_enabled
from .model import TradeBridgeRequest, TradeBridgeResponse
from .signing import new_nonce, sign_request

logger = logging.getLogger(__name__)


def build_url(base_url: str, path: str) -> str:
    base = base_url[:-1] if base_url.endswith("/") else base_url
    return f"{base}{path if path.startswith('/') else '/' + path}"


def _parse_json(response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(payload: Any, status: int) -> str:
    if isinstance(payload, dict) and payload.get("error") is not None:
        return str(payload["error"])
    return f"Trade bridge error: {status}"


def _record(
    ledger: AuditLedger | None,
    request: TradeBridgeRequest,
    result: TradeBridgeResponse,
    request_id: str | None = None,
) -> None:
    if ledger is None:
        return
    try:
        ledger.record_dispatch(
            request_id=request_id or new_nonce(),
            method=request.method,
            path=request.path,
            status=result.status,
            ok=result.ok,
            reason=result.error,
        )
    except OSError as exc:
        logger.error("failed to write audit event to %s: %s", ledger.ledger_path, exc)


def call_trade_bridge(
    config: BridgeConfig,
    request: TradeBridgeRequest,
    *,
    ledger: AuditLedger | None = None,
) -> TradeBridgeResponse:
    """
    Sign and forward one request to the trade bridge.

    Never raises: a disabled gate, missing configuration, transport failure
    and non-2xx responses all come back as a TradeBridgeResponse with
    ok=False. A ledger that cannot be written is logged and skipped.
    """
    if not is_trading_enabled(config):
        logger.info("trade bridge call blocked: trading disabled (%s %s)", request.method, request.path)
        result = TradeBridgeResponse(ok=False, status=403, error="Trading is disabled")
        _record(ledger, request, result)
        return result

    if not is_bridge_configured(config):
        logger.warning("trade bridge call blocked: bridge url or secret missing")
        result = TradeBridgeResponse(ok=False, status=500, error="Trade bridge is not configured")
        _record(ledger, request, result)
        return result

    envelope = sign_request(config.hmac_secret, request)
    url = build_url(config.bridge_url, request.path)

    try:
        response = requests.request(
            envelope.method,
            url,
            headers=envelope.headers(),
            data=envelope.body_json.encode("utf-8") if envelope.body_json else None,
            timeout=config.timeout_seconds,
        )
    except requests.RequestException as exc:
        logger.warning("trade bridge unreachable: %s %s nonce=%s: %s", envelope.method, url, envelope.nonce, exc)
        result = TradeBridgeResponse(ok=False, status=502, error=f"Trade bridge unreachable: {exc}")
        _record(ledger, request, result, request_id=envelope.nonce)
        return result

    payload = _parse_json(response)
    status = response.status_code

    if not 200 <= status < 300:
        result = TradeBridgeResponse(ok=False, status=status, error=_error_message(payload, status), data=payload)
        logger.warning("trade bridge rejected %s %s nonce=%s status=%s", envelope.method, request.path, envelope.nonce, status)
    else:
        result = TradeBridgeResponse(ok=True, status=status, data=payload)
        logger.info("trade bridge accepted %s %s nonce=%s status=%s", envelope.method, request.path, envelope.nonce, status)

    _record(ledger, request, result, request_id=envelope.nonce)
    return result
