"""Tests for InMemoryIdeaStore."""

import asyncio

import pytest
from fakes import OTHER_USER_ID, USER_ID

from ideaflow.core.exceptions import IdeaNotFoundError
from ideaflow.domain.progression import IdeaStatus
from ideaflow.store import IdeaStore, InMemoryIdeaStore

pytestmark = pytest.mark.unit


class TestInMemoryIdeaStore:
    def test_satisfies_protocol(self, store):
        assert isinstance(store, IdeaStore)

    async def test_create_and_get(self, store):
        idea = await store.create_idea(USER_ID, "seed")

        assert idea.current_step == 1
        assert idea.status == IdeaStatus.ACTIVE
        assert idea.ai_profile == {}
        assert await store.get_idea(idea.id) == idea

    async def test_owner_filter(self, store, idea):
        assert await store.get_idea(idea.id, owner_id=USER_ID) is not None
        assert await store.get_idea(idea.id, owner_id=OTHER_USER_ID) is None
        assert await store.get_idea("missing") is None

    async def test_upsert_overwrites(self, store, idea):
        first = await store.upsert_step_input(idea.id, USER_ID, 2, {"v": 1})
        second = await store.upsert_step_input(idea.id, USER_ID, 2, {"v": 2})

        assert second.content == {"v": 2}
        assert second.updated_at >= first.updated_at
        assert len(await store.list_step_inputs(idea.id)) == 1

    async def test_list_before_step_ascending(self, store, idea):
        for step in (5, 1, 3):
            await store.upsert_step_input(idea.id, USER_ID, step, {"s": step})

        rows = await store.list_step_inputs(idea.id, before_step=5)

        assert [r.step_number for r in rows] == [1, 3]

    async def test_snapshots_are_copies(self, store, idea):
        content = {"items": [1]}
        await store.upsert_step_input(idea.id, USER_ID, 1, content)
        content["items"].append(2)

        row = await store.get_step_input(idea.id, 1)
        row.content["items"].append(3)

        assert (await store.get_step_input(idea.id, 1)).content == {"items": [1]}

    async def test_profile_entries_replace_per_key(self, store, idea):
        await store.set_ai_profile_entry(idea.id, 1, {"a": 1})
        await store.set_ai_profile_entry(idea.id, 2, {"b": 2})
        await store.set_ai_profile_entry(idea.id, 1, {"a": 3})

        assert (await store.get_idea(idea.id)).ai_profile == {1: {"a": 3}, 2: {"b": 2}}

    async def test_concurrent_profile_writes_keep_every_key(self, store, idea):
        await asyncio.gather(*(store.set_ai_profile_entry(idea.id, n, {"n": n}) for n in range(1, 15)))

        assert sorted((await store.get_idea(idea.id)).ai_profile) == list(range(1, 15))

    async def test_pointer_never_moves_backwards(self, store, idea):
        await store.update_progress(idea.id, 5, IdeaStatus.ACTIVE)
        updated = await store.update_progress(idea.id, 3, IdeaStatus.ACTIVE)

        assert updated.current_step == 5

    async def test_completed_status_is_sticky(self, store, idea):
        await store.update_progress(idea.id, 15, IdeaStatus.COMPLETED)
        updated = await store.update_progress(idea.id, 15, IdeaStatus.ACTIVE)

        assert updated.status == IdeaStatus.COMPLETED

    async def test_writes_to_missing_idea_raise(self):
        store = InMemoryIdeaStore()
        with pytest.raises(IdeaNotFoundError):
            await store.set_ai_profile_entry("missing", 1, {})
        with pytest.raises(IdeaNotFoundError):
            await store.upsert_step_input("missing", USER_ID, 1, {})
        with pytest.raises(IdeaNotFoundError):
            await store.update_progress("missing", 2, IdeaStatus.ACTIVE)
        with pytest.raises(IdeaNotFoundError):
            await store.lock_profile("missing")

        assert store._locks == {}

    async def test_new_idea_profile_unlocked(self, idea):
        assert idea.is_profile_locked is False

    async def test_lock_profile_once(self, store, idea):
        assert await store.lock_profile(idea.id) is True
        assert await store.lock_profile(idea.id) is False

        assert (await store.get_idea(idea.id)).is_profile_locked is True

    async def test_concurrent_locks_have_one_winner(self, store, idea):
        results = await asyncio.gather(*(store.lock_profile(idea.id) for _ in range(5)))

        assert sorted(results) == [False, False, False, False, True]
