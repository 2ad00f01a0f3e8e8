"""Step output validation against per-step draft schemas."""

from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from ideaflow.core.exceptions import DraftValidationError
from ideaflow.domain.step_policy import ValidationMode

logger = structlog.get_logger(__name__)


def _format_issues(err: ValidationError) -> list[str]:
    return [f"{'.'.join(str(p) for p in issue['loc'])}: {issue['msg']}" for issue in err.errors()]


def validate_output(
    result: dict[str, Any],
    schema: type[BaseModel],
    mode: ValidationMode,
    step_number: int = 0,
) -> dict[str, Any]:
    """Validate a gateway result against a step's schema.

    Strict mode raises on any schema violation. Soft mode logs the violations
    and returns the (already markup-stripped) input unchanged, for steps where
    an imperfect draft is more useful than none.

    Returns:
        The validated draft with unknown keys dropped and absent optionals
        left absent, or the raw result in soft mode when validation fails.

    Raises:
        DraftValidationError: Strict mode and the result does not match the schema
    """
    try:
        validated = schema.model_validate(result)
    except ValidationError as e:
        issues = _format_issues(e)
        logger.warning(
            "draft_validation_failed",
            step=step_number,
            schema=schema.__name__,
            mode=mode.value,
            issue_count=len(issues),
            issues="; ".join(issues[:20]),
        )
        if mode == ValidationMode.SOFT:
            logger.warning("draft_soft_validation_accepted", step=step_number, schema=schema.__name__)
            return result
        raise DraftValidationError(step_number, issues) from e

    return validated.model_dump(mode="json", exclude_unset=True)
