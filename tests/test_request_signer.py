try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import hashlib
import hmac
import re
from datetime import datetime, timezone

import pytest

from vault_sdk.services.request_signer import (
    MAX_TIMESTAMP_AGE_MS,
    SIGNATURE_HEADER,
    SIGNATURE_NONCE_HEADER,
    SIGNATURE_TIMESTAMP_HEADER,
    build_canonical_payload,
    format_timestamp,
    generate_nonce,
    should_sign,
    sign_payload,
    sign_request,
)

TIMESTAMP = "2024-03-01T12:00:00.000Z"
NONCE = "0123456789abcdef0123456789abcdef"
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_wire_constants() -> None:
    assert SIGNATURE_HEADER == "x-signature"
    assert SIGNATURE_TIMESTAMP_HEADER == "x-signature-timestamp"
    assert SIGNATURE_NONCE_HEADER == "x-signature-nonce"
    assert MAX_TIMESTAMP_AGE_MS == 300_000


def test_canonical_payload_layout() -> None:
    payload = build_canonical_payload("post", "/api/v1/vaults", TIMESTAMP, NONCE, '{"a":1}')
    body_hash = hashlib.sha256(b'{"a":1}').hexdigest()

    assert payload == f"POST\n/api/v1/vaults\n{TIMESTAMP}\n{NONCE}\n{body_hash}"


@pytest.mark.parametrize("body", [b"", "", None])
def test_empty_body_hashes_to_empty_string_digest(body) -> None:
    payload = build_canonical_payload("DELETE", "/x", TIMESTAMP, NONCE, body)
    assert payload.endswith("\n" + EMPTY_SHA256)


def test_str_and_bytes_bodies_sign_identically() -> None:
    as_text = build_canonical_payload("PUT", "/d", TIMESTAMP, NONCE, "héllo")
    as_bytes = build_canonical_payload("PUT", "/d", TIMESTAMP, NONCE, "héllo".encode("utf-8"))
    assert as_text == as_bytes


def test_sign_payload_is_plain_hmac_sha256() -> None:
    expected = hmac.new(b"lsv_k_secret", b"payload", hashlib.sha256).hexdigest()
    assert sign_payload("lsv_k_secret", "payload") == expected


def test_generate_nonce() -> None:
    nonce = generate_nonce()
    assert re.fullmatch(r"[0-9a-f]{32}", nonce)
    assert generate_nonce() != nonce


def test_format_timestamp() -> None:
    moment = datetime(2024, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
    assert format_timestamp(moment) == "2024-03-01T12:00:00.123Z"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", format_timestamp())


def test_sign_request_returns_three_headers() -> None:
    headers = sign_request("lsv_k_secret", "POST", "/api/v1/vaults", b"{}")

    assert set(headers) == {SIGNATURE_HEADER, SIGNATURE_TIMESTAMP_HEADER, SIGNATURE_NONCE_HEADER}
    assert re.fullmatch(r"[0-9a-f]{64}", headers[SIGNATURE_HEADER])
    assert re.fullmatch(r"[0-9a-f]{32}", headers[SIGNATURE_NONCE_HEADER])

    payload = build_canonical_payload(
        "POST",
        "/api/v1/vaults",
        headers[SIGNATURE_TIMESTAMP_HEADER],
        headers[SIGNATURE_NONCE_HEADER],
        b"{}",
    )
    assert headers[SIGNATURE_HEADER] == sign_payload("lsv_k_secret", payload)


def test_sign_request_is_deterministic_with_injected_inputs() -> None:
    first = sign_request("secret", "POST", "/p", b"body", timestamp=TIMESTAMP, nonce=NONCE)
    second = sign_request("secret", "POST", "/p", b"body", timestamp=TIMESTAMP, nonce=NONCE)
    assert first == second


@pytest.mark.parametrize(
    "changes",
    [
        {"method": "PUT"},
        {"path": "/q"},
        {"timestamp": "2024-03-01T12:00:01.000Z"},
        {"nonce": "f" * 32},
        {"body": b"other"},
        {"secret": "other-secret"},
    ],
)
def test_any_input_change_changes_signature(changes: dict) -> None:
    base = {
        "secret": "secret",
        "method": "POST",
        "path": "/p",
        "body": b"body",
        "timestamp": TIMESTAMP,
        "nonce": NONCE,
    }
    baseline = sign_request(**base)[SIGNATURE_HEADER]
    changed = sign_request(**{**base, **changes})[SIGNATURE_HEADER]
    assert changed != baseline


def test_should_sign_only_mutating_methods() -> None:
    assert all(should_sign(method) for method in ("post", "PUT", "Patch", "DELETE"))
    assert not any(should_sign(method) for method in ("GET", "HEAD", "OPTIONS"))
