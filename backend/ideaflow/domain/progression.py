"""Step progression and unlock rules.

Pure functions with no external dependencies: every status is derived
from (step_number, current_step, idea_status) and the topology table.
"""
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from ideaflow.core.exceptions import StepLockedError
from ideaflow.domain.topology import (
    COMPLETE_POINTER,
    PHASES,
    UnlockRule,
    all_step_numbers,
    get_step,
    phase_of,
    sequential_boundary,
)


class IdeaStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class StepStatus(str, Enum):
    COMPLETED = "completed"
    CURRENT = "current"
    AVAILABLE = "available"
    LOCKED = "locked"


@dataclass(frozen=True)
class StepProgress:
    step_number: int
    name: str
    phase_id: int
    status: StepStatus


@dataclass(frozen=True)
class PhaseProgress:
    phase_id: int
    name: str
    completed: int
    total: int


@dataclass(frozen=True)
class ProgressSnapshot:
    current_step: int
    idea_status: IdeaStatus
    steps: list[StepProgress] = field(default_factory=list)
    phases: list[PhaseProgress] = field(default_factory=list)

    @property
    def completed_steps(self) -> list[int]:
        return sorted(s.step_number for s in self.steps if s.status == StepStatus.COMPLETED)


@dataclass(frozen=True)
class PointerAdvance:
    """Result of confirming a step."""

    current_step: int
    idea_status: IdeaStatus
    advanced: bool


def step_status(step_number: int, current_step: int, idea_status: IdeaStatus | str) -> StepStatus:
    """Status of one step for an idea.

    Rules, in order:
        - Passed (step_number < current_step), or the idea is completed and the
          step sits in a phase that unlocks after the first phase -> COMPLETED
        - step_number == current_step -> CURRENT
        - Step in a later phase and current_step is past the last step of the
          phase gating it -> AVAILABLE
        - Otherwise -> LOCKED

    Raises:
        InvalidStepError: step_number is not part of the topology
    """
    phase = phase_of(step_number)
    later_phase = phase.unlock_rule == UnlockRule.AFTER_PHASE

    if step_number < current_step or (IdeaStatus(idea_status) == IdeaStatus.COMPLETED and later_phase):
        return StepStatus.COMPLETED
    if step_number == current_step:
        return StepStatus.CURRENT
    if later_phase and current_step > sequential_boundary(phase.gated_by):
        return StepStatus.AVAILABLE
    return StepStatus.LOCKED


def completed_steps(current_step: int, idea_status: IdeaStatus | str) -> list[int]:
    """Ascending list of completed step numbers."""
    return sorted(
        n for n in all_step_numbers() if step_status(n, current_step, idea_status) == StepStatus.COMPLETED
    )


def progress_snapshot(current_step: int, idea_status: IdeaStatus | str) -> ProgressSnapshot:
    """Status of every step (phase order) plus per-phase completion counts."""
    status = IdeaStatus(idea_status)
    steps: list[StepProgress] = []
    phases: list[PhaseProgress] = []

    for phase in PHASES:
        done = 0
        for step in phase.steps:
            s = step_status(step.number, current_step, status)
            if s == StepStatus.COMPLETED:
                done += 1
            steps.append(StepProgress(step.number, step.name, phase.id, s))
        phases.append(PhaseProgress(phase.id, phase.name, done, len(phase.steps)))

    return ProgressSnapshot(current_step=current_step, idea_status=status, steps=steps, phases=phases)


def advance_pointer(
    step_number: int,
    current_step: int,
    idea_status: IdeaStatus | str,
    confirmed_steps: Iterable[int] = (),
) -> PointerAdvance:
    """Decide the new pointer when the user confirms a step.

    The pointer only moves when the confirmed step is the current one. It then
    skips later-phase steps the user already confirmed out of order, so it never
    lands past a step without confirmed data. Reaching the end of the topology
    marks the idea completed. The pointer never decreases.

    Raises:
        InvalidStepError: step_number is not part of the topology
        StepLockedError: the step is not reachable yet
    """
    status = IdeaStatus(idea_status)
    if step_status(step_number, current_step, status) == StepStatus.LOCKED:
        raise StepLockedError(step_number, current_step)

    if step_number != current_step:
        return PointerAdvance(current_step=current_step, idea_status=status, advanced=False)

    confirmed = set(confirmed_steps)
    new_pointer = step_number + 1
    while (
        new_pointer < COMPLETE_POINTER
        and new_pointer in confirmed
        and phase_of(new_pointer).unlock_rule == UnlockRule.AFTER_PHASE
    ):
        new_pointer += 1

    new_status = IdeaStatus.COMPLETED if new_pointer >= COMPLETE_POINTER else status
    return PointerAdvance(current_step=new_pointer, idea_status=new_status, advanced=True)


def step_name(step_number: int) -> str:
    return get_step(step_number).name
