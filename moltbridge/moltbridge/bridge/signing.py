"""
Request signing for the trade bridge.

The canonical message is

    {timestamp}.{nonce}.{METHOD}.{path}.{body_json}

and the signature is the lowercase hex HMAC-SHA256 of it, keyed with the
shared secret. The receiver rebuilds the same string from the headers and
the raw body, so field order and the "." delimiter must not change.
"""
from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .model import TradeBridgeRequest


TIMESTAMP_SKEW_MS = 30_000

HEADER_TIMESTAMP = "X-Molt-Timestamp"
HEADER_NONCE = "X-Molt-Nonce"
HEADER_SIGNATURE = "X-Molt-Signature"
HEADER_SKEW_MS = "X-Molt-Skew-Ms"


@dataclass(frozen=True, slots=True)
class SignedEnvelope:
    timestamp: str
    nonce: str
    method: str
    path: str
    body_json: str
    signature: str

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            HEADER_TIMESTAMP: self.timestamp,
            HEADER_NONCE: self.nonce,
            HEADER_SIGNATURE: self.signature,
            HEADER_SKEW_MS: str(TIMESTAMP_SKEW_MS),
        }


def unix_timestamp(now: float | None = None) -> str:
    return str(int(time.time() if now is None else now))


def new_nonce() -> str:
    return str(uuid.uuid4())


def _is_empty_body(body: Any) -> bool:
    # None, False, 0, NaN and "" mean no body; empty {} and [] are still sent.
    if body is None:
        return True
    if isinstance(body, (dict, list)):
        return False
    return not body or body != body


def serialize_body(body: Any) -> str:
    if _is_empty_body(body):
        return ""
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def canonical_message(timestamp: str, nonce: str, method: str, path: str, body_json: str) -> str:
    return f"{timestamp}.{nonce}.{method.upper()}.{path}.{body_json}"


def _hmac(secret: str) -> hmac.HMAC:
    return hmac.HMAC(secret.encode("utf-8"), hashes.SHA256())


def sign_payload(secret: str, payload: str) -> str:
    h = _hmac(secret)
    h.update(payload.encode("utf-8"))
    return h.finalize().hex()


def verify_signature(secret: str, payload: str, signature: str) -> bool:
    try:
        expected = bytes.fromhex(signature)
    except ValueError:
        return False
    h = _hmac(secret)
    h.update(payload.encode("utf-8"))
    try:
        h.verify(expected)
        return True
    except InvalidSignature:
        return False


def sign_request(
    secret: str,
    request: TradeBridgeRequest,
    *,
    timestamp: str | None = None,
    nonce: str | None = None,
) -> SignedEnvelope:
    timestamp = timestamp or unix_timestamp()
    nonce = nonce or new_nonce()
    body_json = serialize_body(request.body)
    method = request.method.upper()
    canonical = canonical_message(timestamp, nonce, method, request.path, body_json)
    return SignedEnvelope(
        timestamp=timestamp,
        nonce=nonce,
        method=method,
        path=request.path,
        body_json=body_json,
        signature=sign_payload(secret, canonical),
    )
