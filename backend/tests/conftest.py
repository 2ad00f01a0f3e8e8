"""Shared test fixtures for all test groups."""

import fakeredis.aioredis
import pytest
from fakes import USER_ID, VALID_DRAFTS, FakeGateway

from ideaflow.core.config import Settings
from ideaflow.services.draft_service import DraftService
from ideaflow.services.draft_tasks import DraftTaskQueue
from ideaflow.services.submission_service import StepSubmissionService
from ideaflow.store import InMemoryIdeaStore


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, store_backend="memory", anthropic_api_key="test-key")


@pytest.fixture
def store():
    return InMemoryIdeaStore()


@pytest.fixture
def fake_gateway():
    """FakeGateway answering every draft-producing test step with a valid draft."""
    return FakeGateway({step: dict(draft) for step, draft in VALID_DRAFTS.items()})


@pytest.fixture
def fake_redis():
    """Provide fakeredis instance with decode_responses=True."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def draft_service(store, fake_gateway, settings):
    return DraftService(store, fake_gateway, settings=settings)


@pytest.fixture
def task_queue(draft_service, fake_redis):
    return DraftTaskQueue(draft_service, redis=fake_redis)


@pytest.fixture
def submission_service(store, draft_service, task_queue, settings):
    return StepSubmissionService(store, draft_service, task_queue, settings=settings)


@pytest.fixture
async def idea(store):
    """Fresh idea owned by USER_ID at step 1."""
    return await store.create_idea(USER_ID, "Demand forecasting for independent bakeries")
