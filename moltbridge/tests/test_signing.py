import hashlib
import hmac

import pytest

from moltbridge.bridge.model import TradeBridgeRequest
from moltbridge.bridge.signing import (
    TIMESTAMP_SKEW_MS,
    canonical_message,
    serialize_body,
    sign_payload,
    sign_request,
    unix_timestamp,
    verify_signature,
)


def test_canonical_message_layout():
    msg = canonical_message("1700000000", "abc", "post", "/signals", '{"a":1}')
    assert msg == '1700000000.abc.POST./signals.{"a":1}'


def test_canonical_message_keeps_path_verbatim():
    assert canonical_message("1", "n", "GET", "status", "") == "1.n.GET.status."


def test_serialize_body_is_compact_and_ordered():
    assert serialize_body(None) == ""
    assert serialize_body({"symbol": "TON/USDT", "action": "buy"}) == '{"symbol":"TON/USDT","action":"buy"}'
    assert serialize_body({}) == "{}"
    assert serialize_body({"note": "über"}) == '{"note":"über"}'


@pytest.mark.parametrize("body", [None, False, 0, 0.0, "", float("nan")])
def test_falsy_scalar_bodies_serialize_to_nothing(body):
    assert serialize_body(body) == ""


@pytest.mark.parametrize(
    ("body", "expected"),
    [({}, "{}"), ([], "[]"), (True, "true"), (1, "1"), ("buy", "\"buy\""), ([0], "[0]")],
)
def test_truthy_and_empty_container_bodies_are_sent(body, expected):
    assert serialize_body(body) == expected


def test_sign_payload_matches_stdlib_hmac():
    expected = hmac.new(b"supersecret", b"payload", hashlib.sha256).hexdigest()
    assert sign_payload("supersecret", "payload") == expected


def test_signature_is_lowercase_hex():
    signature = sign_payload("k", "m")
    assert len(signature) == 64
    assert signature == signature.lower()
    int(signature, 16)


def test_verify_signature_round_trip():
    payload = canonical_message("1700000000", "nonce-1", "POST", "/signals", '{"x":1}')
    signature = sign_payload("supersecret", payload)
    assert verify_signature("supersecret", payload, signature)
    assert not verify_signature("othersecret", payload, signature)
    assert not verify_signature("supersecret", payload + "x", signature)
    assert not verify_signature("supersecret", payload, "not-hex")


def test_sign_request_is_deterministic_for_fixed_timestamp_and_nonce():
    request = TradeBridgeRequest(method="post", path="/signals", body={"symbol": "TON/USDT"})
    first = sign_request("supersecret", request, timestamp="1700000000", nonce="n-1")
    second = sign_request("supersecret", request, timestamp="1700000000", nonce="n-1")
    assert first == second
    assert first.method == "POST"
    assert first.body_json == '{"symbol":"TON/USDT"}'

    canonical = canonical_message(first.timestamp, first.nonce, first.method, first.path, first.body_json)
    assert verify_signature("supersecret", canonical, first.signature)


def test_sign_request_binds_every_field():
    base = TradeBridgeRequest(method="POST", path="/signals", body={"a": 1})
    ref = sign_request("k", base, timestamp="1", nonce="n").signature
    assert sign_request("k", base, timestamp="2", nonce="n").signature != ref
    assert sign_request("k", base, timestamp="1", nonce="m").signature != ref
    assert sign_request("k", TradeBridgeRequest("GET", "/signals", {"a": 1}), timestamp="1", nonce="n").signature != ref
    assert sign_request("k", TradeBridgeRequest("POST", "signals", {"a": 1}), timestamp="1", nonce="n").signature != ref
    assert sign_request("k", TradeBridgeRequest("POST", "/signals", {"a": 2}), timestamp="1", nonce="n").signature != ref


def test_fresh_nonce_per_envelope():
    request = TradeBridgeRequest(method="GET", path="/status")
    nonces = {sign_request("k", request).nonce for _ in range(50)}
    assert len(nonces) == 50


def test_envelope_headers():
    envelope = sign_request("k", TradeBridgeRequest("GET", "/status"), timestamp="1700000000", nonce="n-1")
    headers = envelope.headers()
    assert headers["Content-Type"] == "application/json"
    assert headers["X-Molt-Timestamp"] == "1700000000"
    assert headers["X-Molt-Nonce"] == "n-1"
    assert headers["X-Molt-Signature"] == envelope.signature
    assert headers["X-Molt-Skew-Ms"] == "30000"
    assert TIMESTAMP_SKEW_MS == 30_000


def test_unix_timestamp_truncates_to_seconds():
    assert unix_timestamp(1700000000.987) == "1700000000"
    assert unix_timestamp().isdigit()
