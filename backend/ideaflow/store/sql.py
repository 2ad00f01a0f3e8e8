"""SqlIdeaStore: IdeaStore backed by PostgreSQL through SQLAlchemy async.

- Step inputs upsert with INSERT ... ON CONFLICT (idea_id, step_number) DO UPDATE
- ai_profile entries are replaced under a row lock (SELECT ... FOR UPDATE), so
  concurrent drafts for different steps of one idea never drop each other's key
- The pointer is written with GREATEST() so it cannot move backwards
- Profile locking is a conditional UPDATE, so only one caller ever wins it
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.attributes import flag_modified

from ideaflow.core.exceptions import IdeaNotFoundError
from ideaflow.db.models.idea import Idea
from ideaflow.db.models.step_input import StepInput
from ideaflow.domain.progression import IdeaStatus
from ideaflow.store.base import IdeaSnapshot, StepInputSnapshot, profile_from_storage


def _as_uuid(idea_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(idea_id))
    except ValueError:
        return None


def _idea_snapshot(idea: Idea) -> IdeaSnapshot:
    return IdeaSnapshot(
        id=str(idea.id),
        owner_id=idea.owner_id,
        idea_seed=idea.idea_seed,
        current_step=idea.current_step,
        status=IdeaStatus(idea.status),
        ai_profile=profile_from_storage(idea.ai_profile),
        report=idea.report,
        verdict=idea.verdict,
        is_profile_locked=bool(idea.is_profile_locked),
    )


def _input_snapshot(row: StepInput) -> StepInputSnapshot:
    return StepInputSnapshot(
        idea_id=str(row.idea_id),
        step_number=row.step_number,
        content=row.content or {},
        updated_at=row.updated_at,
    )


class SqlIdeaStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_idea(self, owner_id: str, idea_seed: str) -> IdeaSnapshot:
        async with self.session_factory() as session:
            idea = Idea(
                owner_id=owner_id,
                idea_seed=idea_seed,
                current_step=1,
                status=IdeaStatus.ACTIVE.value,
                ai_profile={},
            )
            session.add(idea)
            await session.commit()
            await session.refresh(idea)
            return _idea_snapshot(idea)

    async def get_idea(self, idea_id: str, owner_id: str | None = None) -> IdeaSnapshot | None:
        key = _as_uuid(idea_id)
        if key is None:
            return None
        async with self.session_factory() as session:
            query = select(Idea).where(Idea.id == key)
            if owner_id is not None:
                query = query.where(Idea.owner_id == owner_id)
            idea = (await session.execute(query)).scalar_one_or_none()
            return _idea_snapshot(idea) if idea else None

    async def get_step_input(self, idea_id: str, step_number: int) -> StepInputSnapshot | None:
        key = _as_uuid(idea_id)
        if key is None:
            return None
        async with self.session_factory() as session:
            result = await session.execute(
                select(StepInput).where(StepInput.idea_id == key, StepInput.step_number == step_number)
            )
            row = result.scalar_one_or_none()
            return _input_snapshot(row) if row else None

    async def list_step_inputs(self, idea_id: str, before_step: int | None = None) -> list[StepInputSnapshot]:
        key = _as_uuid(idea_id)
        if key is None:
            return []
        async with self.session_factory() as session:
            query = select(StepInput).where(StepInput.idea_id == key)
            if before_step is not None:
                query = query.where(StepInput.step_number < before_step)
            result = await session.execute(query.order_by(StepInput.step_number.asc()))
            return [_input_snapshot(r) for r in result.scalars().all()]

    async def upsert_step_input(
        self, idea_id: str, owner_id: str, step_number: int, content: dict[str, Any]
    ) -> StepInputSnapshot:
        key = _as_uuid(idea_id)
        if key is None:
            raise IdeaNotFoundError(idea_id)
        now = datetime.now(UTC)
        stmt = insert(StepInput).values(
            id=uuid.uuid4(),
            idea_id=key,
            owner_id=owner_id,
            step_number=step_number,
            content=content,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[StepInput.idea_id, StepInput.step_number],
            set_={"content": stmt.excluded.content, "updated_at": stmt.excluded.updated_at},
        ).returning(StepInput)
        async with self.session_factory() as session:
            result = await session.scalars(stmt, execution_options={"populate_existing": True})
            row = result.one()
            await session.commit()
            return _input_snapshot(row)

    async def set_ai_profile_entry(self, idea_id: str, step_number: int, value: Any) -> None:
        key = _as_uuid(idea_id)
        if key is None:
            raise IdeaNotFoundError(idea_id)
        async with self.session_factory() as session:
            result = await session.execute(select(Idea).where(Idea.id == key).with_for_update())
            idea = result.scalar_one_or_none()
            if idea is None:
                raise IdeaNotFoundError(idea_id)

            profile = dict(idea.ai_profile or {})
            profile[str(step_number)] = value
            idea.ai_profile = profile
            flag_modified(idea, "ai_profile")
            await session.commit()

    async def update_progress(self, idea_id: str, current_step: int, status: IdeaStatus) -> IdeaSnapshot:
        key = _as_uuid(idea_id)
        if key is None:
            raise IdeaNotFoundError(idea_id)
        async with self.session_factory() as session:
            await session.execute(
                update(Idea)
                .where(Idea.id == key)
                .values(
                    current_step=func.greatest(Idea.current_step, current_step),
                    updated_at=datetime.now(UTC),
                )
            )
            if IdeaStatus(status) == IdeaStatus.COMPLETED:
                await session.execute(
                    update(Idea).where(Idea.id == key).values(status=IdeaStatus.COMPLETED.value)
                )
            await session.commit()

            idea = (await session.execute(select(Idea).where(Idea.id == key))).scalar_one_or_none()
            if idea is None:
                raise IdeaNotFoundError(idea_id)
            return _idea_snapshot(idea)

    async def lock_profile(self, idea_id: str) -> bool:
        key = _as_uuid(idea_id)
        if key is None:
            raise IdeaNotFoundError(idea_id)
        async with self.session_factory() as session:
            result = await session.execute(
                update(Idea)
                .where(Idea.id == key, Idea.is_profile_locked.is_(False))
                .values(is_profile_locked=True, updated_at=datetime.now(UTC))
            )
            await session.commit()
            if result.rowcount:
                return True

            exists = await session.scalar(select(Idea.id).where(Idea.id == key))
            if exists is None:
                raise IdeaNotFoundError(idea_id)
            return False
