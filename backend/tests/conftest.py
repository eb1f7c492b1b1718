"""
Pytest configuration and fixtures for Storefront Composer API tests.
"""

from __future__ import annotations

import os

import httpx
import pytest_asyncio

# Set test environment variables before importing config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SITE_TITLE", "Test Store")
os.environ.setdefault("INCLUDE_FONTS", "false")

from backend.main import app  # noqa: E402


@pytest_asyncio.fixture
async def client():
    """HTTP client bound to the app, no network."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c
