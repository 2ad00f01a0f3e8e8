"""FastAPI dependencies: caller identity, store, gateway and services.

Collaborators are built once per app and kept on app.state. Override these
dependencies in tests via app.dependency_overrides.
"""

from fastapi import Depends, Header, Request

from ideaflow.core.config import Settings, get_settings
from ideaflow.db import get_session_factory
from ideaflow.services.draft_service import DraftService
from ideaflow.services.draft_tasks import DraftTaskQueue
from ideaflow.services.model_gateway import AnthropicGateway, ModelGateway
from ideaflow.services.submission_service import StepSubmissionService
from ideaflow.store import InMemoryIdeaStore, SqlIdeaStore
from ideaflow.store.base import IdeaStore


def get_current_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Caller id from the X-User-Id header, set by the authenticating proxy."""
    return x_user_id


def build_store(settings: Settings | None = None) -> IdeaStore:
    """IdeaStore for Settings.store_backend ("sql" needs init_db() first)."""
    settings = settings or get_settings()
    if settings.store_backend == "memory":
        return InMemoryIdeaStore()
    return SqlIdeaStore(get_session_factory())


def get_store(request: Request) -> IdeaStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = build_store()
        request.app.state.store = store
    return store


def get_gateway(request: Request) -> ModelGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        gateway = AnthropicGateway()
        request.app.state.gateway = gateway
    return gateway


def get_draft_service(
    store: IdeaStore = Depends(get_store),
    gateway: ModelGateway = Depends(get_gateway),
) -> DraftService:
    return DraftService(store, gateway)


def get_task_queue(request: Request, draft_service: DraftService = Depends(get_draft_service)) -> DraftTaskQueue:
    """One queue per app so shutdown can drain every pending draft."""
    queue = getattr(request.app.state, "task_queue", None)
    if queue is None:
        queue = DraftTaskQueue(draft_service, redis=getattr(request.app.state, "redis", None))
        request.app.state.task_queue = queue
    return queue


def get_submission_service(
    store: IdeaStore = Depends(get_store),
    draft_service: DraftService = Depends(get_draft_service),
    task_queue: DraftTaskQueue = Depends(get_task_queue),
) -> StepSubmissionService:
    return StepSubmissionService(store, draft_service, task_queue)
