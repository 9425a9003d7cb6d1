"""
Logging utilities for applications embedding the SDK.

The SDK only emits records through ``logging.getLogger(__name__)`` loggers
under the ``vault_sdk`` namespace and never logs token, key or plaintext
values. This helper gives callers the SDK tooling's format.
"""

import logging
import sys

SDK_LOGGER = "vault_sdk"


def configure_logging(level: str = "INFO", *, quiet_http: bool = True) -> None:
    """Configure root logging with a sensible default format.

    ``quiet_http`` raises httpx's logger to WARNING so per-request lines do
    not drown out SDK records.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger(SDK_LOGGER).setLevel(level.upper())
    if quiet_http:
        logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["SDK_LOGGER", "configure_logging"]
