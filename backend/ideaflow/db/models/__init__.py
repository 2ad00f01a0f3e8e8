"""Re-export all models so Base.metadata sees them."""

from ideaflow.db.models.idea import Idea
from ideaflow.db.models.step_input import StepInput

__all__ = [
    "Idea",
    "StepInput",
]
