"""Fixtures for API route tests.

The app is created without running its lifespan; the access control
context is built over the in-memory store and attached to app state
directly, so no database is involved.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from expense_rbac.core.config import Settings
from expense_rbac.infrastructure.api.access_context import AccessControlContext
from expense_rbac.infrastructure.api.app import create_app


@pytest.fixture
def settings() -> Settings:
    """Settings with a quiet period long enough that toggles wait for an explicit flush."""
    return Settings(
        environment="testing",
        database_url="sqlite+aiosqlite:///:memory:",
        toggle_debounce_seconds=30,
        seed_system_roles=False,
    )


@pytest_asyncio.fixture
async def app(store, settings):
    application = create_app()
    context = AccessControlContext.build(
        store, settings, events=application.state.hook_registry
    )
    await context.start()
    store.writes.clear()
    application.state.access_context = context
    yield application
    context.visibility.queue.cancel()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
