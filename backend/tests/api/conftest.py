"""API-specific test fixtures."""

import httpx
import pytest
from fakes import USER_ID
from fastapi import FastAPI

from ideaflow.api.deps import get_gateway, get_store
from ideaflow.api.routes import api_router
from ideaflow.main import register_exception_handlers


@pytest.fixture
def app(store, fake_gateway):
    """Bare app with the real routes and exception handlers, no lifespan.

    Store and gateway are overridden with in-memory doubles; the task queue
    is built lazily on first use and stays on app.state for draining.
    """
    app = FastAPI(title="IdeaFlow - Test Client")
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    app.state.redis = None
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    """In-process AsyncClient sharing the test's event loop."""
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"X-User-Id": USER_ID}
