"""Tests for DraftService.generate_draft.

- excluded steps are a no-op without touching the gateway
- option budgets come from the step policy and settings
- drafts persist under ai_profile[step]; regenerating overwrites
- concurrent drafts for different steps both survive
- quota errors propagate; every other failure returns None
"""

import asyncio

import pytest
from fakes import MARKET_DRAFT, OTHER_USER_ID, PROBLEM_DRAFT, USER_ID, VALUE_DRAFT, FakeGateway

from ideaflow.core.exceptions import IdeaNotFoundError, InvalidStepError, ModelTimeoutError, QuotaExceededError
from ideaflow.services.draft_service import DraftService

pytestmark = pytest.mark.unit


class TestGenerateDraft:
    async def test_persists_validated_draft(self, draft_service, store, idea):
        draft = await draft_service.generate_draft(idea.id, 2)

        assert draft == MARKET_DRAFT
        assert (await store.get_idea(idea.id)).ai_profile[2] == MARKET_DRAFT

    async def test_uses_policy_budget_and_settings(self, draft_service, fake_gateway, idea, settings):
        await draft_service.generate_draft(idea.id, 1)

        options = fake_gateway.calls[0].options
        assert options.model == settings.draft_model
        assert options.temperature == settings.draft_temperature
        assert options.max_output_tokens == 4096

    @pytest.mark.parametrize("step", [7, 13])
    async def test_excluded_steps_are_noop(self, draft_service, fake_gateway, store, idea, step):
        assert await draft_service.generate_draft(idea.id, step) is None
        assert fake_gateway.calls == []
        assert step not in (await store.get_idea(idea.id)).ai_profile

    async def test_invalid_step_raises_before_io(self, draft_service, fake_gateway):
        with pytest.raises(InvalidStepError):
            await draft_service.generate_draft("missing-idea", 99)
        assert fake_gateway.calls == []

    async def test_missing_idea_raises(self, draft_service):
        with pytest.raises(IdeaNotFoundError):
            await draft_service.generate_draft("missing-idea", 2)

    async def test_other_owner_is_not_found(self, draft_service, idea):
        with pytest.raises(IdeaNotFoundError):
            await draft_service.generate_draft(idea.id, 2, owner_id=OTHER_USER_ID)

    async def test_regenerating_overwrites_single_object(self, store, idea, settings):
        revised = dict(MARKET_DRAFT, trends="Revised trends.")
        gateway = FakeGateway({2: [dict(MARKET_DRAFT), revised]})
        service = DraftService(store, gateway, settings=settings)

        await service.generate_draft(idea.id, 2)
        await service.generate_draft(idea.id, 2)

        profile = (await store.get_idea(idea.id)).ai_profile
        assert profile[2] == revised
        assert list(profile) == [2]

    async def test_context_uses_only_earlier_steps(self, draft_service, fake_gateway, store, idea):
        await store.upsert_step_input(idea.id, USER_ID, 1, {"problem": "bakery waste"})
        await store.upsert_step_input(idea.id, USER_ID, 3, {"later": "should not leak"})

        await draft_service.generate_draft(idea.id, 2)

        prompt = fake_gateway.calls_for(2)[0].prompt
        assert "bakery waste" in prompt
        assert "should not leak" not in prompt

    async def test_concurrent_different_steps_both_persist(self, store, idea, settings):
        gateway = FakeGateway({1: PROBLEM_DRAFT, 2: MARKET_DRAFT, 3: VALUE_DRAFT}, delay=0.01)
        service = DraftService(store, gateway, settings=settings)

        await asyncio.gather(
            service.generate_draft(idea.id, 1),
            service.generate_draft(idea.id, 2),
            service.generate_draft(idea.id, 3),
        )

        profile = (await store.get_idea(idea.id)).ai_profile
        assert profile == {1: PROBLEM_DRAFT, 2: MARKET_DRAFT, 3: VALUE_DRAFT}


class TestFailureClassification:
    async def test_quota_error_propagates(self, store, idea, settings):
        service = DraftService(store, FakeGateway({2: QuotaExceededError(retry_after=45)}), settings=settings)

        with pytest.raises(QuotaExceededError) as exc_info:
            await service.generate_draft(idea.id, 2)

        assert exc_info.value.retry_after == 45
        assert 2 not in (await store.get_idea(idea.id)).ai_profile

    @pytest.mark.parametrize(
        "error",
        [ModelTimeoutError(60.0), RuntimeError("connection reset"), ValueError("bad output")],
    )
    async def test_other_failures_return_none(self, store, idea, settings, error):
        service = DraftService(store, FakeGateway({2: error}), settings=settings)

        assert await service.generate_draft(idea.id, 2) is None
        assert 2 not in (await store.get_idea(idea.id)).ai_profile

    async def test_strict_validation_failure_returns_none(self, store, idea, settings):
        service = DraftService(store, FakeGateway({2: {"marketSize": "big"}}), settings=settings)

        assert await service.generate_draft(idea.id, 2) is None
        assert 2 not in (await store.get_idea(idea.id)).ai_profile

    async def test_soft_validation_failure_still_persists(self, store, idea, settings):
        partial = {"heroHeadline": "Fresh bread without the waste every day"}
        service = DraftService(store, FakeGateway({10: partial}), settings=settings)

        assert await service.generate_draft(idea.id, 10) == partial
        assert (await store.get_idea(idea.id)).ai_profile[10] == partial

    async def test_soft_step_gets_large_output_budget(self, store, idea, settings):
        gateway = FakeGateway({10: {"heroHeadline": "x"}})
        await DraftService(store, gateway, settings=settings).generate_draft(idea.id, 10)

        assert gateway.calls[0].options.max_output_tokens == 12000
        assert gateway.calls[0].options.timeout_seconds == 180.0
