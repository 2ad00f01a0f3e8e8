"""ContextAssembler: builds the draft request for a target step from earlier steps.

Read-only: pulls submitted answers from the store and prior drafts from the
idea's ai_profile, keeps only steps strictly before the target, in ascending
order, and renders one prompt. Rendering is deterministic (sorted JSON keys,
fixed section order), so unchanged upstream data yields an identical prompt.
"""

import json
from dataclasses import dataclass
from typing import Any

from ideaflow.domain.progression import step_name
from ideaflow.domain.step_policy import ValidationMode, policy_for
from ideaflow.domain.topology import require_step
from ideaflow.services.prompts import (
    BRIEF_FORMATTING_RULES,
    DRAFT_RULES,
    PLAIN_COPY_FORMATTING_RULES,
    SYSTEM_PROMPT,
)
from ideaflow.store.base import IdeaSnapshot, IdeaStore

AI_OUTPUT_CHAR_LIMIT = 2000


@dataclass(frozen=True)
class StepContext:
    step_number: int
    user_input: dict[str, Any] | None
    ai_output: Any | None


@dataclass(frozen=True)
class AssembledContext:
    target_step: int
    system_context: str
    prompt: str
    steps: tuple[StepContext, ...]


def _dump(value: Any, indent: int | None = None) -> str:
    separators = None if indent else (",", ":")
    return json.dumps(value, sort_keys=True, ensure_ascii=False, indent=indent, separators=separators, default=str)


def _truncate(text: str, limit: int = AI_OUTPUT_CHAR_LIMIT) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def render_prompt(idea_seed: str, target_step: int, steps: list[StepContext] | tuple[StepContext, ...]) -> str:
    """Render the user prompt for a target step."""
    policy = policy_for(target_step)
    name = step_name(target_step)
    parts: list[str] = [
        f"Generate refined form defaults for Step {target_step} ({name}) based on the founder's actual progress so far.",
        "",
        f'IDEA SEED: "{idea_seed}"',
        "",
    ]

    if steps:
        parts.append(f"COMPLETED STEPS (use this data to make the Step {target_step} draft specific and informed):")
        parts.append("")
        for ctx in steps:
            parts.append(f"--- Step {ctx.step_number}: {step_name(ctx.step_number)} ---")
            if ctx.user_input:
                parts.append(f"User Inputs: {_dump(ctx.user_input, indent=2)}")
            if ctx.ai_output:
                parts.append(f"AI Analysis: {_truncate(_dump(ctx.ai_output))}")
            parts.append("")

    parts.append(f"GENERATE DEFAULTS FOR STEP {target_step}: {name}")
    parts.append("")
    if policy.draft_schema is not None:
        parts.append("Return a JSON object matching this JSON Schema (field descriptions are instructions):")
        parts.append(_dump(policy.draft_schema.model_json_schema(), indent=2))
        parts.append("")

    parts.append("RULES:")
    parts.extend(DRAFT_RULES)
    parts.append("")
    parts.append("FORMATTING STANDARDS (apply to all string values inside the JSON):")
    if policy.validation_mode == ValidationMode.SOFT:
        parts.extend(PLAIN_COPY_FORMATTING_RULES)
    else:
        parts.extend(BRIEF_FORMATTING_RULES)

    return "\n".join(parts)


class ContextAssembler:
    """Collects prior-step context for an idea and renders the draft request."""

    def __init__(self, store: IdeaStore):
        self.store = store

    async def collect(self, idea: IdeaSnapshot, target_step: int) -> list[StepContext]:
        """Prior steps with data, ascending; steps with neither input nor draft are omitted."""
        require_step(target_step)
        inputs = {
            row.step_number: row.content
            for row in await self.store.list_step_inputs(idea.id, before_step=target_step)
        }
        numbers = sorted(
            n for n in set(inputs) | set(idea.ai_profile)
            if n < target_step
        )

        contexts: list[StepContext] = []
        for n in numbers:
            user_input = inputs.get(n) or None
            ai_output = idea.ai_profile.get(n) or None
            if user_input is None and ai_output is None:
                continue
            contexts.append(StepContext(step_number=n, user_input=user_input, ai_output=ai_output))
        return contexts

    async def assemble(self, idea: IdeaSnapshot, target_step: int) -> AssembledContext:
        steps = tuple(await self.collect(idea, target_step))
        return AssembledContext(
            target_step=target_step,
            system_context=SYSTEM_PROMPT,
            prompt=render_prompt(idea.idea_seed, target_step, steps),
            steps=steps,
        )
