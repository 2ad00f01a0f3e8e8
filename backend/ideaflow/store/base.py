"""IdeaStore Protocol: the persistence seam used by the draft pipeline and orchestrator.

Implementations return frozen snapshots, never live ORM objects, so callers
cannot mutate idea state outside the store's own write operations.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from ideaflow.domain.progression import IdeaStatus


@dataclass(frozen=True)
class IdeaSnapshot:
    id: str
    owner_id: str
    idea_seed: str
    current_step: int
    status: IdeaStatus
    ai_profile: dict[int, Any] = field(default_factory=dict)
    is_profile_locked: bool = False
    report: dict | None = None
    verdict: dict | None = None


@dataclass(frozen=True)
class StepInputSnapshot:
    idea_id: str
    step_number: int
    content: dict[str, Any]
    updated_at: datetime


def profile_from_storage(raw: dict | None) -> dict[int, Any]:
    """JSON object keys are strings; the core works with int step numbers."""
    if not raw:
        return {}
    profile: dict[int, Any] = {}
    for key, value in raw.items():
        try:
            profile[int(key)] = value
        except (TypeError, ValueError):
            continue
    return profile


@runtime_checkable
class IdeaStore(Protocol):
    async def create_idea(self, owner_id: str, idea_seed: str) -> IdeaSnapshot:
        """Create an idea at step 1 with status active."""
        ...

    async def get_idea(self, idea_id: str, owner_id: str | None = None) -> IdeaSnapshot | None:
        """Fetch an idea, optionally restricted to its owner. None when absent."""
        ...

    async def get_step_input(self, idea_id: str, step_number: int) -> StepInputSnapshot | None:
        ...

    async def list_step_inputs(self, idea_id: str, before_step: int | None = None) -> list[StepInputSnapshot]:
        """Step inputs in ascending step order, optionally only steps < before_step."""
        ...

    async def upsert_step_input(
        self, idea_id: str, owner_id: str, step_number: int, content: dict[str, Any]
    ) -> StepInputSnapshot:
        """Create the row for (idea, step) or overwrite its content and timestamp."""
        ...

    async def set_ai_profile_entry(self, idea_id: str, step_number: int, value: Any) -> None:
        """Replace ai_profile[step_number] without touching other keys."""
        ...

    async def update_progress(self, idea_id: str, current_step: int, status: IdeaStatus) -> IdeaSnapshot:
        """Persist pointer and status. The pointer never moves backwards."""
        ...

    async def lock_profile(self, idea_id: str) -> bool:
        """Set is_profile_locked. False when another writer locked it first."""
        ...
