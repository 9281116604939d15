"""Shared test configuration and fixtures."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env from project root for all tests
root = Path(__file__).parent.parent.resolve()
load_dotenv(root / ".env")

_DEFAULT_OVERRIDES = ("GROUPED_TABLES_TOTAL_LABEL", "GROUPED_TABLES_SECTION_SPACING", "GROUPED_TABLES_VALUE_FORMAT")


@pytest.fixture(autouse=True)
def clear_default_overrides(monkeypatch):
    """Keep a developer's .env from changing config defaults under test."""
    for name in _DEFAULT_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
