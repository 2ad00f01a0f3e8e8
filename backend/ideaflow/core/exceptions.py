class IdeaFlowError(Exception):
    """Base exception for the IdeaFlow core."""

    pass


class InvalidStepError(IdeaFlowError):
    """Raised when a step number is outside the workflow topology."""

    def __init__(self, step_number: object):
        self.step_number = step_number
        super().__init__(f"Invalid step: {step_number!r}")


class NotFoundError(IdeaFlowError):
    """Raised when a requested record does not exist or belongs to another owner."""

    pass


class IdeaNotFoundError(NotFoundError):
    def __init__(self, idea_id: object):
        self.idea_id = idea_id
        super().__init__(f"Idea not found: {idea_id}")


class StepInputNotFoundError(NotFoundError):
    def __init__(self, idea_id: object, step_number: int):
        self.idea_id = idea_id
        self.step_number = step_number
        super().__init__(f"No submitted answers for step {step_number} of idea {idea_id}")


class StepLockedError(IdeaFlowError):
    """Raised when confirming a step the idea has not unlocked yet."""

    def __init__(self, step_number: int, current_step: int):
        self.step_number = step_number
        self.current_step = current_step
        super().__init__(f"Step {step_number} is locked (current step is {current_step})")


class QuotaExceededError(IdeaFlowError):
    """Raised when the generative backend signals a quota or rate limit.

    Carries a retry-after hint in seconds so callers can tell the user
    when to try again instead of reporting a hard failure.
    """

    def __init__(self, retry_after: int = 60, message: str = "AI quota temporarily exceeded"):
        self.retry_after = retry_after
        super().__init__(message)


class GenerationError(IdeaFlowError):
    """Raised when a draft generation attempt fails for a non-quota reason."""

    pass


class ModelResponseParseError(GenerationError):
    """Raised when the backend returns output that is not a JSON object."""

    pass


class ModelTimeoutError(GenerationError):
    """Raised when the backend call exceeds its timeout."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Model call timed out after {timeout_seconds}s")


class DraftValidationError(GenerationError):
    """Raised when strict validation rejects a generated draft."""

    def __init__(self, step_number: int, issues: list[str]):
        self.step_number = step_number
        self.issues = issues
        super().__init__(f"Draft for step {step_number} failed validation ({len(issues)} issues)")


class DraftUnavailableError(IdeaFlowError):
    """Raised when an explicit regeneration produced no draft."""

    def __init__(self, step_number: int):
        self.step_number = step_number
        super().__init__(
            f"Draft generation for step {step_number} returned empty. The AI may have timed out, please try again."
        )


class ProfileLockedError(IdeaFlowError):
    """Raised when a locked AI profile would be locked again or regenerated."""

    def __init__(self, idea_id: object, message: str = "Profile already locked"):
        self.idea_id = idea_id
        super().__init__(message)
