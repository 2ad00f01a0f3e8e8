"""Idea persistence: the IdeaStore protocol and its SQL and in-memory implementations."""

from ideaflow.store.base import IdeaSnapshot, IdeaStore, StepInputSnapshot
from ideaflow.store.memory import InMemoryIdeaStore
from ideaflow.store.sql import SqlIdeaStore

__all__ = [
    "IdeaSnapshot",
    "IdeaStore",
    "InMemoryIdeaStore",
    "SqlIdeaStore",
    "StepInputSnapshot",
]
