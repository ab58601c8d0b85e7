"""Pytest configuration for all tests."""

import os

import pytest

# Settings are read from the environment; keep tests off any developer .env values.
os.environ.setdefault("EXPENSE_RBAC_ENVIRONMENT", "testing")
os.environ.setdefault("EXPENSE_RBAC_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("EXPENSE_RBAC_SEED_SYSTEM_ROLES", "false")


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Drop cached settings so a test's environment patches take effect."""
    from expense_rbac.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_actor():
    """Clear the audit actor bound by a previous test."""
    from expense_rbac.core.context import clear_current_actor

    clear_current_actor()
    yield
    clear_current_actor()
