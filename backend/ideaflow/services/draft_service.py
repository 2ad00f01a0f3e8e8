"""DraftService: generates and persists the AI draft for one step of an idea.

Pipeline: policy -> idea lookup -> ContextAssembler -> ModelGateway ->
validate_output -> store.set_ai_profile_entry.

- Steps without a draft schema are a no-op (None)
- QuotaExceededError is the only failure that propagates, so callers can
  defer the draft or tell the user when to retry
- Every other failure is logged as a warning and returns None
- Re-running for the same (idea, step) overwrites that ai_profile key only
"""

from typing import Any

import structlog

from ideaflow.core.config import Settings, get_settings
from ideaflow.core.exceptions import IdeaNotFoundError, QuotaExceededError
from ideaflow.domain.step_policy import policy_for
from ideaflow.services.context_assembler import ContextAssembler
from ideaflow.services.model_gateway import GenerationOptions, ModelGateway
from ideaflow.services.validator import validate_output
from ideaflow.store.base import IdeaStore

logger = structlog.get_logger(__name__)


class DraftService:
    """Generates step drafts through a ModelGateway and stores them on the idea."""

    def __init__(self, store: IdeaStore, gateway: ModelGateway, settings: Settings | None = None):
        """Initialize with a store, a gateway and optional settings.

        Args:
            store: IdeaStore implementation (InMemoryIdeaStore in tests, SqlIdeaStore in production)
            gateway: ModelGateway implementation (FakeGateway in tests, AnthropicGateway in production)
            settings: Overrides get_settings() for model name and temperature
        """
        self.store = store
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.assembler = ContextAssembler(store)

    def _options(self, step_number: int) -> GenerationOptions:
        policy = policy_for(step_number)
        return GenerationOptions(
            model=self.settings.draft_model,
            temperature=self.settings.draft_temperature,
            max_output_tokens=policy.max_output_tokens,
            timeout_seconds=policy.timeout_seconds,
        )

    async def generate_draft(
        self, idea_id: str, target_step: int, owner_id: str | None = None
    ) -> dict[str, Any] | None:
        """Generate, validate and persist the draft for target_step.

        Returns:
            The stored draft, or None when the step has no draft or generation failed

        Raises:
            InvalidStepError: target_step is outside the topology
            IdeaNotFoundError: No such idea (or it belongs to another owner)
            QuotaExceededError: The model backend is out of quota
        """
        policy = policy_for(target_step)
        if not policy.generates_draft:
            logger.debug("draft_skipped_excluded_step", idea_id=idea_id, step=target_step)
            return None

        idea = await self.store.get_idea(idea_id, owner_id=owner_id)
        if idea is None:
            raise IdeaNotFoundError(idea_id)

        try:
            context = await self.assembler.assemble(idea, target_step)
            result = await self.gateway.invoke(context.system_context, context.prompt, self._options(target_step))
            draft = validate_output(result, policy.draft_schema, policy.validation_mode, step_number=target_step)
            await self.store.set_ai_profile_entry(idea_id, target_step, draft)
        except QuotaExceededError:
            logger.warning("draft_quota_exceeded", idea_id=idea_id, step=target_step)
            raise
        except Exception as e:
            logger.warning(
                "draft_generation_failed",
                idea_id=idea_id,
                step=target_step,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        logger.info(
            "draft_generated",
            idea_id=idea_id,
            step=target_step,
            context_steps=[s.step_number for s in context.steps],
        )
        return draft
