"""
Pytest configuration for hrana-sdk tests.

Unit tests use fake transports and need no server. Integration tests talk to
a running sqld / libSQL server and are skipped unless ``HRANA_URL`` is set.

Shared connection constants are defined here so every test file can import
them instead of hardcoding URLs and credentials.
"""

import os

import pytest

# ---------------------------------------------------------------------------
# Shared connection constants (import these in test files)
# ---------------------------------------------------------------------------
HRANA_URL = os.getenv("HRANA_URL", "")
HRANA_AUTH_TOKEN = os.getenv("HRANA_AUTH_TOKEN") or None
HRANA_PROTOCOL = os.getenv("HRANA_PROTOCOL", "protobuf")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests when no server is configured."""
    if HRANA_URL:
        return
    skip = pytest.mark.skip(reason="HRANA_URL not set; no sqld server to test against")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)
