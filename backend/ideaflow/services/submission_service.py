"""StepSubmissionService: user-facing step operations.

Responsibilities:
- submit: persist a step's answers, then schedule the next step's draft
- get_step_state: status, saved answers, AI draft and overall progress
- complete_step: confirm a step and move the pointer via advance_pointer
- regenerate_draft: explicit draft request; quota errors reach the caller
- lock_profile: freeze the AI profile; regeneration is refused afterwards
- create_idea / get_progress

Ownership is enforced by reading the idea with owner_id; another user's idea
is indistinguishable from a missing one. Submission never moves current_step.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from ideaflow.core.config import Settings, get_settings
from ideaflow.core.exceptions import (
    DraftUnavailableError,
    IdeaNotFoundError,
    ProfileLockedError,
    StepInputNotFoundError,
)
from ideaflow.domain.progression import (
    ProgressSnapshot,
    StepStatus,
    advance_pointer,
    progress_snapshot,
    step_status,
)
from ideaflow.domain.step_policy import policy_for
from ideaflow.domain.topology import MAX_STEP, get_step, require_step
from ideaflow.services.draft_service import DraftService
from ideaflow.services.draft_tasks import DraftTaskQueue
from ideaflow.store.base import IdeaSnapshot, IdeaStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SubmitAck:
    idea_id: str
    step_number: int
    saved: bool
    draft_scheduled_for: int | None


@dataclass(frozen=True)
class StepState:
    idea_id: str
    idea_seed: str
    step_number: int
    name: str
    phase_id: int
    status: StepStatus
    input: dict[str, Any] | None
    ai_draft: Any | None
    profile_locked: bool
    progress: ProgressSnapshot


@dataclass(frozen=True)
class StepCompletion:
    idea_id: str
    step_number: int
    advanced: bool
    progress: ProgressSnapshot


class StepSubmissionService:
    """Service layer for step submission, confirmation and draft requests."""

    def __init__(
        self,
        store: IdeaStore,
        draft_service: DraftService,
        task_queue: DraftTaskQueue,
        settings: Settings | None = None,
    ):
        self.store = store
        self.draft_service = draft_service
        self.task_queue = task_queue
        self.settings = settings or get_settings()

    async def _owned_idea(self, user_id: str, idea_id: str) -> IdeaSnapshot:
        idea = await self.store.get_idea(idea_id, owner_id=user_id)
        if idea is None:
            raise IdeaNotFoundError(idea_id)
        return idea

    def _next_draft_step(self, idea: IdeaSnapshot, step_number: int) -> int | None:
        next_step = step_number + 1
        if next_step > MAX_STEP or not policy_for(next_step).generates_draft:
            return None
        if step_number < idea.current_step and not self.settings.resubmit_regenerates_next_draft:
            return None
        return next_step

    async def create_idea(self, user_id: str, idea_seed: str) -> IdeaSnapshot:
        idea = await self.store.create_idea(user_id, idea_seed.strip())
        logger.info("idea_created", idea_id=idea.id, user_id=user_id)
        return idea

    async def get_progress(self, user_id: str, idea_id: str) -> ProgressSnapshot:
        idea = await self._owned_idea(user_id, idea_id)
        return progress_snapshot(idea.current_step, idea.status)

    async def submit(self, user_id: str, idea_id: str, step_number: int, answers: dict[str, Any]) -> SubmitAck:
        """Save answers for a step and schedule the next step's draft.

        Storage failures propagate. Draft generation runs in the background and
        can never fail the submission.

        Raises:
            InvalidStepError: step_number is outside the topology
            IdeaNotFoundError: No such idea for this user
        """
        require_step(step_number)
        idea = await self._owned_idea(user_id, idea_id)

        await self.store.upsert_step_input(idea_id, user_id, step_number, answers)
        logger.info("step_submitted", idea_id=idea_id, step=step_number, user_id=user_id)

        next_step = self._next_draft_step(idea, step_number)
        if next_step is not None:
            self.task_queue.schedule(idea_id, next_step, owner_id=user_id)

        return SubmitAck(idea_id=idea_id, step_number=step_number, saved=True, draft_scheduled_for=next_step)

    async def get_step_state(self, user_id: str, idea_id: str, step_number: int) -> StepState:
        require_step(step_number)
        idea = await self._owned_idea(user_id, idea_id)
        step_input = await self.store.get_step_input(idea_id, step_number)
        step = get_step(step_number)

        return StepState(
            idea_id=idea.id,
            idea_seed=idea.idea_seed,
            step_number=step_number,
            name=step.name,
            phase_id=step.phase_id,
            status=step_status(step_number, idea.current_step, idea.status),
            input=step_input.content if step_input else None,
            ai_draft=idea.ai_profile.get(step_number),
            profile_locked=idea.is_profile_locked,
            progress=progress_snapshot(idea.current_step, idea.status),
        )

    async def complete_step(self, user_id: str, idea_id: str, step_number: int) -> StepCompletion:
        """Confirm a step. The pointer moves only when it is the current step.

        Raises:
            InvalidStepError: step_number is outside the topology
            IdeaNotFoundError: No such idea for this user
            StepInputNotFoundError: The step has no saved answers
            StepLockedError: The step is not reachable yet
        """
        require_step(step_number)
        idea = await self._owned_idea(user_id, idea_id)

        if await self.store.get_step_input(idea_id, step_number) is None:
            raise StepInputNotFoundError(idea_id, step_number)

        confirmed = [row.step_number for row in await self.store.list_step_inputs(idea_id)]
        move = advance_pointer(step_number, idea.current_step, idea.status, confirmed_steps=confirmed)

        if move.advanced:
            idea = await self.store.update_progress(idea_id, move.current_step, move.idea_status)
            logger.info(
                "step_completed",
                idea_id=idea_id,
                step=step_number,
                current_step=idea.current_step,
                status=idea.status.value,
            )

        return StepCompletion(
            idea_id=idea_id,
            step_number=step_number,
            advanced=move.advanced,
            progress=progress_snapshot(idea.current_step, idea.status),
        )

    async def regenerate_draft(self, user_id: str, idea_id: str, step_number: int) -> dict[str, Any]:
        """Generate the draft for a step now and return it.

        Raises:
            InvalidStepError: step_number is outside the topology
            IdeaNotFoundError: No such idea for this user
            QuotaExceededError: The model backend is out of quota
            ProfileLockedError: The idea's AI profile is locked
            DraftUnavailableError: The step has no draft or generation failed
        """
        require_step(step_number)
        idea = await self._owned_idea(user_id, idea_id)
        if idea.is_profile_locked:
            raise ProfileLockedError(idea_id, "Profile is locked, cannot regenerate")

        draft = await self.draft_service.generate_draft(idea_id, step_number, owner_id=user_id)
        if draft is None:
            raise DraftUnavailableError(step_number)
        return draft

    async def lock_profile(self, user_id: str, idea_id: str) -> IdeaSnapshot:
        """Lock the idea's AI profile. Locking twice is a conflict.

        Raises:
            IdeaNotFoundError: No such idea for this user
            ProfileLockedError: The profile is already locked
        """
        idea = await self._owned_idea(user_id, idea_id)
        if idea.is_profile_locked or not await self.store.lock_profile(idea_id):
            raise ProfileLockedError(idea_id)

        logger.info("profile_locked", idea_id=idea_id, user_id=user_id)
        return await self._owned_idea(user_id, idea_id)
