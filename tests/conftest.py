"""Pytest configuration shared across the suite."""

from __future__ import annotations

import base64
import json
import time
from typing import Any, Callable

import pytest


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


def _b64url(data: dict[str, Any]) -> str:
    raw = json.dumps(data).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@pytest.fixture
def make_jwt() -> Callable[..., str]:
    """Build an unsigned three-segment token carrying the given claims."""

    def _make(claims: dict[str, Any] | None = None, *, expires_in: float | None = None) -> str:
        payload = dict(claims or {})
        if expires_in is not None:
            payload["exp"] = int(time.time() + expires_in)
        header = _b64url({"alg": "HS256", "typ": "JWT"})
        signature = base64.urlsafe_b64encode(b"fake-signature").rstrip(b"=").decode("ascii")
        return f"{header}.{_b64url(payload)}.{signature}"

    return _make
