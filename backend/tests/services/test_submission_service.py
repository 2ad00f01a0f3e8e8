"""Tests for StepSubmissionService."""

import pytest
from fakes import MARKET_DRAFT, OTHER_USER_ID, USER_ID, FakeGateway

from ideaflow.core.exceptions import (
    DraftUnavailableError,
    IdeaNotFoundError,
    InvalidStepError,
    ProfileLockedError,
    QuotaExceededError,
    StepInputNotFoundError,
    StepLockedError,
)
from ideaflow.domain.progression import IdeaStatus, StepStatus
from ideaflow.services.draft_service import DraftService
from ideaflow.services.draft_tasks import DraftTaskQueue
from ideaflow.services.submission_service import StepSubmissionService

pytestmark = pytest.mark.unit


def _service(store, gateway, settings, redis=None):
    draft_service = DraftService(store, gateway, settings=settings)
    return StepSubmissionService(store, draft_service, DraftTaskQueue(draft_service, redis=redis), settings=settings)


class TestSubmit:
    async def test_first_step_submission(self, submission_service, task_queue, fake_gateway, store, idea):
        """Saves answers, leaves the pointer alone and drafts step 2 from step 1 only."""
        ack = await submission_service.submit(USER_ID, idea.id, 1, {"problem": "bakeries over-bake"})

        assert ack.saved is True
        assert ack.draft_scheduled_for == 2

        await task_queue.drain()

        stored = await store.get_idea(idea.id)
        assert stored.current_step == 1
        assert stored.ai_profile[2] == MARKET_DRAFT
        assert (await store.get_step_input(idea.id, 1)).content == {"problem": "bakeries over-bake"}

        [call] = fake_gateway.calls_for(2)
        assert "bakeries over-bake" in call.prompt
        assert "--- Step 2:" not in call.prompt

    async def test_resubmission_overwrites_answers(self, submission_service, task_queue, store, idea):
        await submission_service.submit(USER_ID, idea.id, 1, {"problem": "v1"})
        await submission_service.submit(USER_ID, idea.id, 1, {"problem": "v2"})
        await task_queue.drain()

        rows = await store.list_step_inputs(idea.id)
        assert [(r.step_number, r.content) for r in rows] == [(1, {"problem": "v2"})]

    @pytest.mark.parametrize("step", [6, 12, 14])
    async def test_no_draft_for_excluded_or_out_of_range_next_step(self, submission_service, task_queue, idea, step):
        ack = await submission_service.submit(USER_ID, idea.id, step, {"x": 1})

        assert ack.draft_scheduled_for is None
        assert task_queue.pending == 0

    async def test_draft_failure_does_not_fail_submission(self, store, idea, settings):
        service = _service(store, FakeGateway({2: RuntimeError("backend down")}), settings)

        ack = await service.submit(USER_ID, idea.id, 1, {"problem": "x"})
        await service.task_queue.drain()

        assert ack.saved is True
        assert 2 not in (await store.get_idea(idea.id)).ai_profile

    async def test_quota_failure_does_not_fail_submission(self, store, idea, settings, fake_redis):
        service = _service(store, FakeGateway({2: QuotaExceededError()}), settings, redis=fake_redis)

        ack = await service.submit(USER_ID, idea.id, 1, {"problem": "x"})
        await service.task_queue.drain()

        assert ack.saved is True
        assert await fake_redis.llen("ideaflow:draft_retry_queue") == 1

    async def test_invalid_step(self, submission_service, idea):
        with pytest.raises(InvalidStepError):
            await submission_service.submit(USER_ID, idea.id, 0, {})

    async def test_other_users_idea(self, submission_service, store, idea):
        with pytest.raises(IdeaNotFoundError):
            await submission_service.submit(OTHER_USER_ID, idea.id, 1, {"x": 1})
        assert await store.get_step_input(idea.id, 1) is None


class TestResubmittingPastStep:
    async def _advance_to_step_3(self, service, idea_id):
        for step in (1, 2):
            await service.submit(USER_ID, idea_id, step, {"step": step})
            await service.complete_step(USER_ID, idea_id, step)
        await service.task_queue.drain()

    async def test_regenerates_next_draft_by_default(self, store, idea, settings):
        gateway = FakeGateway({2: MARKET_DRAFT, 3: {"coreOutcome": "x", "mvpType": "manual"}})
        service = _service(store, gateway, settings)
        await self._advance_to_step_3(service, idea.id)
        calls_before = len(gateway.calls_for(2))

        ack = await service.submit(USER_ID, idea.id, 1, {"step": "revised"})
        await service.task_queue.drain()

        assert ack.draft_scheduled_for == 2
        assert len(gateway.calls_for(2)) == calls_before + 1

    async def test_setting_disables_regeneration(self, store, idea, settings):
        settings = settings.model_copy(update={"resubmit_regenerates_next_draft": False})
        gateway = FakeGateway({2: MARKET_DRAFT, 3: {"coreOutcome": "x", "mvpType": "manual"}})
        service = _service(store, gateway, settings)
        await self._advance_to_step_3(service, idea.id)

        ack = await service.submit(USER_ID, idea.id, 1, {"step": "revised"})

        assert ack.draft_scheduled_for is None
        assert service.task_queue.pending == 0


class TestCompleteStep:
    async def test_requires_saved_answers(self, submission_service, idea):
        with pytest.raises(StepInputNotFoundError):
            await submission_service.complete_step(USER_ID, idea.id, 1)

    async def test_advances_pointer(self, submission_service, store, idea):
        await store.upsert_step_input(idea.id, USER_ID, 1, {"x": 1})

        result = await submission_service.complete_step(USER_ID, idea.id, 1)

        assert result.advanced is True
        assert result.progress.current_step == 2
        assert result.progress.completed_steps == [1]
        assert (await store.get_idea(idea.id)).current_step == 2

    async def test_locked_step_raises(self, submission_service, store, idea):
        await store.upsert_step_input(idea.id, USER_ID, 3, {"x": 1})

        with pytest.raises(StepLockedError):
            await submission_service.complete_step(USER_ID, idea.id, 3)

    async def test_passed_step_does_not_move_pointer(self, submission_service, store, idea):
        await store.upsert_step_input(idea.id, USER_ID, 1, {"x": 1})
        await store.update_progress(idea.id, 4, IdeaStatus.ACTIVE)

        result = await submission_service.complete_step(USER_ID, idea.id, 1)

        assert result.advanced is False
        assert (await store.get_idea(idea.id)).current_step == 4

    async def test_final_step_completes_idea(self, submission_service, store, idea):
        await store.upsert_step_input(idea.id, USER_ID, 14, {"x": 1})
        await store.update_progress(idea.id, 14, IdeaStatus.ACTIVE)

        result = await submission_service.complete_step(USER_ID, idea.id, 14)

        assert result.progress.idea_status == IdeaStatus.COMPLETED
        assert (await store.get_idea(idea.id)).status == IdeaStatus.COMPLETED


class TestStepState:
    async def test_state_includes_input_draft_and_progress(self, submission_service, store, idea):
        await store.upsert_step_input(idea.id, USER_ID, 1, {"x": 1})
        await store.set_ai_profile_entry(idea.id, 1, {"problemStatement": "p"})

        state = await submission_service.get_step_state(USER_ID, idea.id, 1)

        assert state.status == StepStatus.CURRENT
        assert state.input == {"x": 1}
        assert state.ai_draft == {"problemStatement": "p"}
        assert state.profile_locked is False
        assert state.name == "Problem Definition"
        assert state.progress.current_step == 1

    async def test_unsubmitted_locked_step(self, submission_service, idea):
        state = await submission_service.get_step_state(USER_ID, idea.id, 10)

        assert state.status == StepStatus.LOCKED
        assert state.input is None
        assert state.ai_draft is None

    async def test_later_phase_available_after_validation(self, submission_service, store, idea):
        await store.update_progress(idea.id, 8, IdeaStatus.ACTIVE)

        assert (await submission_service.get_step_state(USER_ID, idea.id, 10)).status == StepStatus.AVAILABLE
        assert (await submission_service.get_step_state(USER_ID, idea.id, 13)).status == StepStatus.AVAILABLE
        assert (await submission_service.get_step_state(USER_ID, idea.id, 7)).status == StepStatus.COMPLETED


class TestRegenerateDraft:
    async def test_returns_fresh_draft(self, submission_service, idea):
        assert await submission_service.regenerate_draft(USER_ID, idea.id, 2) == MARKET_DRAFT

    async def test_quota_error_surfaces_with_retry_delay(self, store, idea, settings):
        service = _service(store, FakeGateway({2: QuotaExceededError(retry_after=90)}), settings)

        with pytest.raises(QuotaExceededError) as exc_info:
            await service.regenerate_draft(USER_ID, idea.id, 2)

        assert exc_info.value.retry_after == 90

    async def test_failed_generation_is_draft_unavailable(self, store, idea, settings):
        service = _service(store, FakeGateway({2: RuntimeError("backend down")}), settings)

        with pytest.raises(DraftUnavailableError):
            await service.regenerate_draft(USER_ID, idea.id, 2)

    async def test_excluded_step_is_draft_unavailable(self, submission_service, idea):
        with pytest.raises(DraftUnavailableError):
            await submission_service.regenerate_draft(USER_ID, idea.id, 7)


class TestCreateIdea:
    async def test_new_idea_starts_at_step_one(self, submission_service, store):
        idea = await submission_service.create_idea(USER_ID, "  A marketplace for surplus bread  ")

        assert idea.current_step == 1
        assert idea.status == IdeaStatus.ACTIVE
        assert idea.idea_seed == "A marketplace for surplus bread"
        assert await store.get_idea(idea.id, owner_id=USER_ID) is not None

    async def test_progress_for_new_idea(self, submission_service, idea):
        progress = await submission_service.get_progress(USER_ID, idea.id)

        assert progress.completed_steps == []
        assert progress.current_step == 1


class TestLockProfile:
    async def test_locks_profile(self, submission_service, idea):
        locked = await submission_service.lock_profile(USER_ID, idea.id)

        assert locked.is_profile_locked is True
        assert (await submission_service.get_step_state(USER_ID, idea.id, 1)).profile_locked is True

    async def test_second_lock_conflicts(self, submission_service, idea):
        await submission_service.lock_profile(USER_ID, idea.id)

        with pytest.raises(ProfileLockedError):
            await submission_service.lock_profile(USER_ID, idea.id)

    async def test_other_users_idea(self, submission_service, store, idea):
        with pytest.raises(IdeaNotFoundError):
            await submission_service.lock_profile(OTHER_USER_ID, idea.id)

        assert (await store.get_idea(idea.id)).is_profile_locked is False

    async def test_locked_profile_refuses_regeneration(self, submission_service, fake_gateway, store, idea):
        await submission_service.lock_profile(USER_ID, idea.id)

        with pytest.raises(ProfileLockedError):
            await submission_service.regenerate_draft(USER_ID, idea.id, 2)

        assert fake_gateway.calls == []
        assert 2 not in (await store.get_idea(idea.id)).ai_profile
