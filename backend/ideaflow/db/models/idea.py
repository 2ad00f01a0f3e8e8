"""Idea model, the workflow aggregate holding pointer, status and AI profile."""

import uuid

from sqlalchemy import JSON, Boolean, Column, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID

from ideaflow.db.base import Base, TimestampMixin


class Idea(TimestampMixin, Base):
    __tablename__ = "ideas"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(String(255), nullable=False, index=True)

    idea_seed = Column(Text, nullable=False)

    # Progression state
    current_step = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="active")  # active, completed

    # {"<step_number>": draft}, sparse, one full value per step
    ai_profile = Column(JSONB, nullable=False, default=dict)
    is_profile_locked = Column(Boolean, nullable=False, default=False, server_default="false")

    # Written by the report/verdict aggregation actions
    report = Column(JSON, nullable=True)
    verdict = Column(JSON, nullable=True)
