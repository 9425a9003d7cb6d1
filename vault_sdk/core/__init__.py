"""Configuration, logging and error primitives."""

from .config import DEFAULT_API_URL, SDKSettings, get_settings
from .logging import configure_logging

__all__ = ["DEFAULT_API_URL", "SDKSettings", "configure_logging", "get_settings"]
