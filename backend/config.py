"""
Storefront Composer configuration — all environment variables in one place.

Read from environment at runtime. The core never reads these directly;
routes translate them into RenderOptions.
"""

from __future__ import annotations

import os


def _flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings from environment variables."""

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Page shell
    SITE_TITLE: str = os.environ.get("SITE_TITLE", "Storefront")
    CURRENCY_SYMBOL: str = os.environ.get("CURRENCY_SYMBOL", "₹")
    INCLUDE_FONTS: bool = _flag("INCLUDE_FONTS", True)

    @property
    def PUBLIC_URL(self) -> str:
        url = os.environ.get("PUBLIC_URL")
        if url:
            return url
        return "http://localhost:8000" if self.ENVIRONMENT == "development" else "https://shop.example.com"


# Singleton instance
settings = Settings()
