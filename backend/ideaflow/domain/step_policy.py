"""Per-step draft generation policy.

One authoritative table: for every topology step, whether a draft is
generated automatically, which schema validates it, whether validation is
soft, and the output-size and timeout budgets for the model call.
"""
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from ideaflow.domain.topology import all_step_numbers, require_step
from ideaflow.schemas import drafts


class ValidationMode(str, Enum):
    STRICT = "strict"
    SOFT = "soft"


DEFAULT_MAX_OUTPUT_TOKENS: int = 4096
DEFAULT_TIMEOUT_SECONDS: float = 60.0


@dataclass(frozen=True)
class StepPolicy:
    step_number: int
    draft_schema: type[BaseModel] | None
    validation_mode: ValidationMode = ValidationMode.STRICT
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def generates_draft(self) -> bool:
        return self.draft_schema is not None


STEP_POLICIES: dict[int, StepPolicy] = {
    1: StepPolicy(1, drafts.ProblemDefinitionDraft),
    2: StepPolicy(2, drafts.MarketResearchDraft),
    3: StepPolicy(3, drafts.ValuePropositionDraft),
    4: StepPolicy(4, drafts.CustomerValidationDraft),
    5: StepPolicy(5, drafts.BusinessModelDraft),
    6: StepPolicy(6, drafts.GoToMarketDraft),
    # Strategic recommendation is synthesised by the verdict action, not drafted
    7: StepPolicy(7, None),
    8: StepPolicy(8, drafts.BusinessPlanDraft, max_output_tokens=16000, timeout_seconds=180.0),
    9: StepPolicy(9, drafts.BrandingDraft, max_output_tokens=8000, timeout_seconds=120.0),
    10: StepPolicy(
        10,
        drafts.WebDesignDraft,
        validation_mode=ValidationMode.SOFT,
        max_output_tokens=12000,
        timeout_seconds=180.0,
    ),
    11: StepPolicy(11, drafts.MarketStrategyDraft),
    12: StepPolicy(12, drafts.OperationFlowDraft),
    # Graphics are produced on demand in the design tools
    13: StepPolicy(13, None),
    14: StepPolicy(14, drafts.LaunchDraft),
}

if set(STEP_POLICIES) != set(all_step_numbers()):
    raise RuntimeError("Every topology step needs exactly one StepPolicy")


def policy_for(step_number: int) -> StepPolicy:
    """Raises InvalidStepError for numbers outside the topology."""
    return STEP_POLICIES[require_step(step_number)]


def excluded_steps() -> list[int]:
    """Steps that never get an automatic draft."""
    return sorted(n for n, p in STEP_POLICIES.items() if not p.generates_draft)
