"""Step API routes: fetch, submit, confirm and regenerate drafts for one step.

Domain errors (invalid step, missing idea, locked step, quota) are mapped to
HTTP responses by the exception handlers registered in ideaflow.main.
"""

from fastapi import APIRouter, Depends

from ideaflow.api.deps import get_current_user_id, get_submission_service
from ideaflow.schemas.steps import (
    CompleteStepResponse,
    DraftResponse,
    ProgressResponse,
    StepStateResponse,
    SubmitStepRequest,
    SubmitStepResponse,
)
from ideaflow.services.submission_service import StepSubmissionService

router = APIRouter()


@router.get("/{idea_id}/steps/{step_number}", response_model=StepStateResponse)
async def get_step(
    idea_id: str,
    step_number: int,
    user_id: str = Depends(get_current_user_id),
    service: StepSubmissionService = Depends(get_submission_service),
):
    """Step status, saved answers and the AI draft used as form defaults."""
    state = await service.get_step_state(user_id, idea_id, step_number)
    return StepStateResponse(
        idea_id=state.idea_id,
        idea_seed=state.idea_seed,
        step_number=state.step_number,
        name=state.name,
        phase_id=state.phase_id,
        status=state.status,
        input=state.input,
        ai_draft=state.ai_draft,
        profile_locked=state.profile_locked,
        progress=ProgressResponse.from_snapshot(state.progress),
    )


@router.post("/{idea_id}/steps/{step_number}", response_model=SubmitStepResponse)
async def submit_step(
    idea_id: str,
    step_number: int,
    request: SubmitStepRequest,
    user_id: str = Depends(get_current_user_id),
    service: StepSubmissionService = Depends(get_submission_service),
):
    """Save answers. The next step's draft is generated in the background."""
    ack = await service.submit(user_id, idea_id, step_number, request.answers)
    return SubmitStepResponse(
        idea_id=ack.idea_id,
        step_number=ack.step_number,
        saved=ack.saved,
        draft_scheduled_for=ack.draft_scheduled_for,
    )


@router.post("/{idea_id}/steps/{step_number}/complete", response_model=CompleteStepResponse)
async def complete_step(
    idea_id: str,
    step_number: int,
    user_id: str = Depends(get_current_user_id),
    service: StepSubmissionService = Depends(get_submission_service),
):
    result = await service.complete_step(user_id, idea_id, step_number)
    return CompleteStepResponse(
        idea_id=result.idea_id,
        step_number=result.step_number,
        advanced=result.advanced,
        progress=ProgressResponse.from_snapshot(result.progress),
    )


@router.post("/{idea_id}/steps/{step_number}/draft", response_model=DraftResponse)
async def regenerate_draft(
    idea_id: str,
    step_number: int,
    user_id: str = Depends(get_current_user_id),
    service: StepSubmissionService = Depends(get_submission_service),
):
    """Generate the step's draft now. Quota errors return 429 with retry_after."""
    draft = await service.regenerate_draft(user_id, idea_id, step_number)
    return DraftResponse(idea_id=idea_id, step_number=step_number, draft=draft)
