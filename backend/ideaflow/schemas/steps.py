"""Step API schemas: request and response contracts for the idea workflow."""

from typing import Any

from pydantic import BaseModel, Field

from ideaflow.domain.progression import IdeaStatus, ProgressSnapshot, StepStatus


class CreateIdeaRequest(BaseModel):
    idea_seed: str = Field(..., min_length=1, max_length=2000)


class SubmitStepRequest(BaseModel):
    """Free-form answers for one step's form."""

    answers: dict[str, Any]


class StepProgressResponse(BaseModel):
    step_number: int
    name: str
    phase_id: int
    status: StepStatus


class PhaseProgressResponse(BaseModel):
    phase_id: int
    name: str
    completed: int
    total: int


class ProgressResponse(BaseModel):
    current_step: int
    status: IdeaStatus
    completed_steps: list[int]
    steps: list[StepProgressResponse]
    phases: list[PhaseProgressResponse]

    @classmethod
    def from_snapshot(cls, snapshot: ProgressSnapshot) -> "ProgressResponse":
        return cls(
            current_step=snapshot.current_step,
            status=snapshot.idea_status,
            completed_steps=snapshot.completed_steps,
            steps=[
                StepProgressResponse(step_number=s.step_number, name=s.name, phase_id=s.phase_id, status=s.status)
                for s in snapshot.steps
            ],
            phases=[
                PhaseProgressResponse(phase_id=p.phase_id, name=p.name, completed=p.completed, total=p.total)
                for p in snapshot.phases
            ],
        )


class IdeaResponse(BaseModel):
    id: str
    idea_seed: str
    current_step: int
    status: IdeaStatus
    profile_locked: bool = False


class StepStateResponse(BaseModel):
    idea_id: str
    idea_seed: str
    step_number: int
    name: str
    phase_id: int
    status: StepStatus
    input: dict[str, Any] | None = None
    ai_draft: Any | None = None
    profile_locked: bool = False
    progress: ProgressResponse


class SubmitStepResponse(BaseModel):
    idea_id: str
    step_number: int
    saved: bool
    draft_scheduled_for: int | None = None


class CompleteStepResponse(BaseModel):
    idea_id: str
    step_number: int
    advanced: bool
    progress: ProgressResponse


class DraftResponse(BaseModel):
    idea_id: str
    step_number: int
    draft: dict[str, Any]
