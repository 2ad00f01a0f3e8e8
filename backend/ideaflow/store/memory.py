"""InMemoryIdeaStore: process-local IdeaStore for local runs and tests.

Values are deep-copied on the way in and out, so it behaves like a real
store: callers only ever see snapshots. Writes to one idea are serialized
by a per-idea asyncio.Lock.
"""

import asyncio
import copy
import uuid
from datetime import UTC, datetime
from typing import Any

from ideaflow.core.exceptions import IdeaNotFoundError
from ideaflow.domain.progression import IdeaStatus
from ideaflow.store.base import IdeaSnapshot, StepInputSnapshot


class InMemoryIdeaStore:
    def __init__(self) -> None:
        self._ideas: dict[str, dict[str, Any]] = {}
        self._inputs: dict[tuple[str, int], dict[str, Any]] = {}
        # One lock per stored idea, created with it
        self._locks: dict[str, asyncio.Lock] = {}

    def _snapshot(self, row: dict[str, Any]) -> IdeaSnapshot:
        return IdeaSnapshot(
            id=row["id"],
            owner_id=row["owner_id"],
            idea_seed=row["idea_seed"],
            current_step=row["current_step"],
            status=IdeaStatus(row["status"]),
            ai_profile=copy.deepcopy(row["ai_profile"]),
            report=copy.deepcopy(row["report"]),
            verdict=copy.deepcopy(row["verdict"]),
            is_profile_locked=row["is_profile_locked"],
        )

    @staticmethod
    def _input_snapshot(row: dict[str, Any]) -> StepInputSnapshot:
        return StepInputSnapshot(
            idea_id=row["idea_id"],
            step_number=row["step_number"],
            content=copy.deepcopy(row["content"]),
            updated_at=row["updated_at"],
        )

    def _require(self, idea_id: str) -> dict[str, Any]:
        row = self._ideas.get(idea_id)
        if row is None:
            raise IdeaNotFoundError(idea_id)
        return row

    def _lock(self, idea_id: str) -> asyncio.Lock:
        self._require(idea_id)
        return self._locks[idea_id]

    async def create_idea(self, owner_id: str, idea_seed: str) -> IdeaSnapshot:
        idea_id = str(uuid.uuid4())
        self._ideas[idea_id] = {
            "id": idea_id,
            "owner_id": owner_id,
            "idea_seed": idea_seed,
            "current_step": 1,
            "status": IdeaStatus.ACTIVE.value,
            "ai_profile": {},
            "report": None,
            "verdict": None,
            "is_profile_locked": False,
        }
        self._locks[idea_id] = asyncio.Lock()
        return self._snapshot(self._ideas[idea_id])

    async def get_idea(self, idea_id: str, owner_id: str | None = None) -> IdeaSnapshot | None:
        row = self._ideas.get(idea_id)
        if row is None or (owner_id is not None and row["owner_id"] != owner_id):
            return None
        return self._snapshot(row)

    async def get_step_input(self, idea_id: str, step_number: int) -> StepInputSnapshot | None:
        row = self._inputs.get((idea_id, step_number))
        return self._input_snapshot(row) if row else None

    async def list_step_inputs(self, idea_id: str, before_step: int | None = None) -> list[StepInputSnapshot]:
        rows = [
            row
            for (iid, step), row in self._inputs.items()
            if iid == idea_id and (before_step is None or step < before_step)
        ]
        return [self._input_snapshot(r) for r in sorted(rows, key=lambda r: r["step_number"])]

    async def upsert_step_input(
        self, idea_id: str, owner_id: str, step_number: int, content: dict[str, Any]
    ) -> StepInputSnapshot:
        async with self._lock(idea_id):
            self._require(idea_id)
            row = {
                "idea_id": idea_id,
                "owner_id": owner_id,
                "step_number": step_number,
                "content": copy.deepcopy(content),
                "updated_at": datetime.now(UTC),
            }
            self._inputs[(idea_id, step_number)] = row
            return self._input_snapshot(row)

    async def set_ai_profile_entry(self, idea_id: str, step_number: int, value: Any) -> None:
        async with self._lock(idea_id):
            row = self._require(idea_id)
            row["ai_profile"][step_number] = copy.deepcopy(value)

    async def update_progress(self, idea_id: str, current_step: int, status: IdeaStatus) -> IdeaSnapshot:
        async with self._lock(idea_id):
            row = self._require(idea_id)
            row["current_step"] = max(row["current_step"], current_step)
            if row["status"] != IdeaStatus.COMPLETED.value:
                row["status"] = IdeaStatus(status).value
            return self._snapshot(row)

    async def lock_profile(self, idea_id: str) -> bool:
        async with self._lock(idea_id):
            row = self._require(idea_id)
            if row["is_profile_locked"]:
                return False
            row["is_profile_locked"] = True
            return True
