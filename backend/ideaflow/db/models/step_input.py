"""StepInput model: the user's submitted answers, one row per (idea, step)."""

import uuid

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from ideaflow.db.base import Base, TimestampMixin


class StepInput(TimestampMixin, Base):
    __tablename__ = "step_inputs"
    __table_args__ = (UniqueConstraint("idea_id", "step_number", name="uq_step_inputs_idea_step"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    idea_id = Column(UUID(as_uuid=True), ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(String(255), nullable=False)
    step_number = Column(Integer, nullable=False)

    content = Column(JSON, nullable=False, default=dict)
