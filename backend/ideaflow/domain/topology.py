"""Workflow topology: phases, steps, and unlock rules.

Pure domain data with no external dependencies. Each step keeps the
internal step number that storage, the API and the draft pipeline use;
phases list their steps in display order, which is not numeric order.
"""
from dataclasses import dataclass
from enum import Enum

from ideaflow.core.exceptions import InvalidStepError


class UnlockRule(str, Enum):
    """How the steps of a phase become reachable."""

    SEQUENTIAL = "sequential"  # one at a time, in numeric order
    AFTER_PHASE = "after_phase"  # all at once, once the gating phase is done


@dataclass(frozen=True)
class Step:
    number: int
    name: str
    description: str
    phase_id: int


@dataclass(frozen=True)
class Phase:
    id: int
    name: str
    description: str
    unlock_rule: UnlockRule
    steps: tuple[Step, ...]
    gated_by: int | None = None  # phase id, only for AFTER_PHASE

    @property
    def step_numbers(self) -> tuple[int, ...]:
        return tuple(s.number for s in self.steps)


def _phase(
    phase_id: int,
    name: str,
    description: str,
    unlock_rule: UnlockRule,
    steps: list[tuple[int, str, str]],
    gated_by: int | None = None,
) -> Phase:
    return Phase(
        id=phase_id,
        name=name,
        description=description,
        unlock_rule=unlock_rule,
        steps=tuple(Step(number=n, name=sn, description=sd, phase_id=phase_id) for n, sn, sd in steps),
        gated_by=gated_by,
    )


PHASES: tuple[Phase, ...] = (
    _phase(
        1,
        "Validation",
        "Research, validate, and stress-test the idea",
        UnlockRule.SEQUENTIAL,
        [
            (1, "Problem Definition", "Articulate the core problem hypothesis and the target customer segment."),
            (2, "Market Research", "Quantify the market opportunity and map the competitive landscape."),
            (3, "Value Proposition", "Define the differentiated value proposition and positioning."),
            (4, "Customer Validation", "Validate assumptions with market evidence and customer intelligence."),
            (5, "Business Model", "Architect the revenue model, pricing strategy, and unit economics."),
            (6, "Go-to-Market", "Design the initial market entry plan and outreach strategy."),
            (7, "Strategic Recommendation", "Synthesise all evidence into a go/pivot/kill recommendation."),
        ],
    ),
    _phase(
        2,
        "Strategy",
        "Plan the brand, market approach, and operations",
        UnlockRule.AFTER_PHASE,
        [
            (9, "Branding", "Brand identity: colours, typography, tone, and visual direction."),
            (11, "Market Strategy", "Market positioning, channels, and competitive strategy."),
            (8, "Business Plan", "Full business plan with financial projections."),
            (12, "Operation Flow", "Customer journey and operational workflow."),
        ],
        gated_by=1,
    ),
    _phase(
        3,
        "Design",
        "Create the web presence and visual assets",
        UnlockRule.AFTER_PHASE,
        [
            (10, "Web Design", "Landing page copy for a live website template."),
            (13, "Graphics Design", "Logos, social media assets, and marketing graphics."),
        ],
        gated_by=1,
    ),
    _phase(
        4,
        "Launch",
        "Prepare and execute the launch",
        UnlockRule.AFTER_PHASE,
        [
            (14, "Launch", "Launch checklist, deployment, and go-live preparation."),
        ],
        gated_by=1,
    ),
)

_PHASES_BY_ID: dict[int, Phase] = {p.id: p for p in PHASES}
_STEPS_BY_NUMBER: dict[int, Step] = {s.number: s for p in PHASES for s in p.steps}


def _check_topology() -> None:
    """Fail at import if the table is malformed."""
    numbers = [s.number for p in PHASES for s in p.steps]
    if len(numbers) != len(set(numbers)):
        raise RuntimeError("Topology has duplicate step numbers")
    if sorted(numbers) != list(range(1, len(numbers) + 1)):
        raise RuntimeError("Topology step numbers must be contiguous from 1")
    if PHASES[0].unlock_rule != UnlockRule.SEQUENTIAL:
        raise RuntimeError("First phase must be sequential")
    for phase in PHASES[1:]:
        if phase.unlock_rule == UnlockRule.AFTER_PHASE and phase.gated_by not in _PHASES_BY_ID:
            raise RuntimeError(f"Phase {phase.id} is gated by unknown phase {phase.gated_by}")


_check_topology()

MAX_STEP: int = max(_STEPS_BY_NUMBER)

# Pointer value once every step has been passed
COMPLETE_POINTER: int = MAX_STEP + 1


def steps_in_phase(phase_id: int) -> tuple[int, ...]:
    """Step numbers of a phase, in phase order."""
    phase = _PHASES_BY_ID.get(phase_id)
    if phase is None:
        raise ValueError(f"Unknown phase: {phase_id}")
    return phase.step_numbers


def is_valid_step(step_number: object) -> bool:
    return isinstance(step_number, int) and not isinstance(step_number, bool) and step_number in _STEPS_BY_NUMBER


def require_step(step_number: object) -> int:
    """Return step_number unchanged, or raise InvalidStepError."""
    if not is_valid_step(step_number):
        raise InvalidStepError(step_number)
    return step_number  # type: ignore[return-value]


def get_step(step_number: int) -> Step:
    return _STEPS_BY_NUMBER[require_step(step_number)]


def phase_of(step_number: int) -> Phase:
    return _PHASES_BY_ID[get_step(step_number).phase_id]


def all_step_numbers() -> list[int]:
    """All step numbers in phase order."""
    return [s.number for p in PHASES for s in p.steps]


def max_step() -> int:
    return MAX_STEP


def sequential_boundary(phase_id: int | None = None) -> int:
    """Highest step number of a phase (the first phase by default).

    Later phases unlock once the pointer has moved past this value for
    the phase that gates them.
    """
    phase = _PHASES_BY_ID[phase_id if phase_id is not None else PHASES[0].id]
    return max(phase.step_numbers)
