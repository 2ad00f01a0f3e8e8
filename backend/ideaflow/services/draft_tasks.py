"""Background draft generation.

DraftTaskQueue keeps a strong reference to every scheduled asyncio.Task until
it finishes, so submitted work is never garbage-collected mid-flight. The task
body never raises: quota failures are pushed onto the Redis retry list and
replayed later by replay_deferred_drafts().
"""

import asyncio
from typing import Any

import structlog

from ideaflow.agent.llm_helpers import enqueue_deferred_draft, pop_deferred_drafts
from ideaflow.core.exceptions import QuotaExceededError
from ideaflow.services.draft_service import DraftService

logger = structlog.get_logger(__name__)

REPLAY_BATCH_SIZE = 20


class DraftTaskQueue:
    """Runs DraftService.generate_draft calls in the background."""

    def __init__(self, draft_service: DraftService, redis: Any | None = None):
        self.draft_service = draft_service
        self.redis = redis
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, idea_id: str, step_number: int, owner_id: str | None = None) -> asyncio.Task:
        """Start generating the draft for (idea, step) without waiting for it."""
        task = asyncio.create_task(
            self._run(idea_id, step_number, owner_id),
            name=f"draft:{idea_id}:{step_number}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("draft_scheduled", idea_id=idea_id, step=step_number)
        return task

    async def _run(self, idea_id: str, step_number: int, owner_id: str | None) -> None:
        """Never raises."""
        try:
            await self.draft_service.generate_draft(idea_id, step_number, owner_id=owner_id)
        except QuotaExceededError as e:
            logger.warning("background_draft_quota_exceeded", idea_id=idea_id, step=step_number, retry_after=e.retry_after)
            if self.redis is not None:
                await enqueue_deferred_draft(self.redis, idea_id, step_number, reason="quota_exceeded")
        except Exception as e:
            logger.warning(
                "background_draft_failed",
                idea_id=idea_id,
                step=step_number,
                error=str(e),
                error_type=type(e).__name__,
            )

    def schedule_replay(self, limit: int = REPLAY_BATCH_SIZE) -> asyncio.Task | None:
        """Replay quota-deferred drafts in the background. No-op without Redis."""
        if self.redis is None:
            return None
        task = asyncio.create_task(self._replay(limit), name="draft:replay")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _replay(self, limit: int) -> None:
        """Never raises."""
        try:
            await replay_deferred_drafts(self.draft_service, self.redis, limit)
        except Exception as e:
            logger.warning("deferred_draft_replay_aborted", error=str(e), error_type=type(e).__name__)

    async def drain(self) -> None:
        """Wait for every scheduled task, including ones scheduled while waiting."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def replay_deferred_drafts(draft_service: DraftService, redis: Any, limit: int = REPLAY_BATCH_SIZE) -> int:
    """Re-run drafts that were postponed by quota errors.

    Stops at the first quota error and puts that entry back on the list.

    Returns:
        Number of entries processed (generated, skipped or failed)
    """
    entries = await pop_deferred_drafts(redis, limit)
    processed = 0
    for index, entry in enumerate(entries):
        try:
            await draft_service.generate_draft(entry["idea_id"], entry["step_number"])
        except QuotaExceededError:
            for remaining in entries[index:]:
                await enqueue_deferred_draft(redis, remaining["idea_id"], remaining["step_number"], reason="quota_exceeded")
            logger.warning("deferred_draft_replay_paused", requeued=len(entries) - index)
            break
        except Exception as e:
            logger.warning(
                "deferred_draft_replay_failed",
                idea_id=entry["idea_id"],
                step=entry["step_number"],
                error=str(e),
                error_type=type(e).__name__,
            )
        processed += 1

    logger.info("deferred_drafts_replayed", processed=processed, popped=len(entries))
    return processed
