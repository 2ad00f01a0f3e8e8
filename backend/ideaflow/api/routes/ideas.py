"""Idea API routes: create an idea, read its progress, lock its AI profile."""

from fastapi import APIRouter, Depends

from ideaflow.api.deps import get_current_user_id, get_submission_service
from ideaflow.schemas.steps import CreateIdeaRequest, IdeaResponse, ProgressResponse
from ideaflow.services.submission_service import StepSubmissionService
from ideaflow.store.base import IdeaSnapshot

router = APIRouter()


def _idea_response(idea: IdeaSnapshot) -> IdeaResponse:
    return IdeaResponse(
        id=idea.id,
        idea_seed=idea.idea_seed,
        current_step=idea.current_step,
        status=idea.status,
        profile_locked=idea.is_profile_locked,
    )


@router.post("", response_model=IdeaResponse, status_code=201)
async def create_idea(
    request: CreateIdeaRequest,
    user_id: str = Depends(get_current_user_id),
    service: StepSubmissionService = Depends(get_submission_service),
):
    idea = await service.create_idea(user_id, request.idea_seed)
    return _idea_response(idea)


@router.get("/{idea_id}/progress", response_model=ProgressResponse)
async def get_progress(
    idea_id: str,
    user_id: str = Depends(get_current_user_id),
    service: StepSubmissionService = Depends(get_submission_service),
):
    """Status of every step, completed steps and per-phase counts."""
    snapshot = await service.get_progress(user_id, idea_id)
    return ProgressResponse.from_snapshot(snapshot)


@router.post("/{idea_id}/lock", response_model=IdeaResponse)
async def lock_profile(
    idea_id: str,
    user_id: str = Depends(get_current_user_id),
    service: StepSubmissionService = Depends(get_submission_service),
):
    """Freeze the AI profile. 409 when it is already locked."""
    idea = await service.lock_profile(user_id, idea_id)
    return _idea_response(idea)
