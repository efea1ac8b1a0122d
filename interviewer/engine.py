"""Interview turn state machine.

A turn is resolved in two phases. ``plan_turn`` is pure: it looks at the
current stage, the follow-up counter and the latest user input and decides
which stage's instruction (if any) to generate, the stage to move to and the
new counter. ``TurnEngine.advance`` then performs at most one generation call
for that plan.

Two transitions consult a second catalog stage within the same turn so the
caller always receives assistant-visible text:

- ``asking_follow_ups`` over budget generates ``pre_feedback`` right away;
- ``pre_feedback`` answered with "yes" generates ``asking_follow_ups`` right away.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence

from interviewer.core import prompt
from interviewer.core.memory import ConversationTurn
from interviewer.core.stages import Stage, StageName, get_stage
from interviewer.errors import UnknownStageError


logger = logging.getLogger(__name__)


class TextGenerationClient(Protocol):
    async def generate(
        self,
        instruction: str,
        history: Sequence[ConversationTurn],
        generation_config: Optional[Mapping[str, Any]] = None,
    ) -> str:
        ...


@dataclass(frozen=True)
class TurnResult:
    reply_text: str
    next_stage: str
    next_follow_up_count: int


@dataclass(frozen=True)
class TurnPlan:
    """Outcome of the pure decision step.

    Exactly one of ``generate_for`` and ``fixed_reply`` is set.
    """

    next_stage: str
    next_follow_up_count: int
    generate_for: Optional[Stage] = None
    fixed_reply: Optional[str] = None


def plan_turn(stage_name: str, follow_up_count: int, latest_user_input: str) -> TurnPlan:
    try:
        stage = get_stage(stage_name)
    except UnknownStageError:
        logger.warning("Unknown interview stage: %s", stage_name)
        return TurnPlan(
            next_stage=stage_name,
            next_follow_up_count=follow_up_count,
            fixed_reply=prompt.UNKNOWN_STAGE_REPLY,
        )

    if stage.name in (StageName.INITIAL, StageName.AWAITING_OPT_IN_RESPONSE):
        return TurnPlan(
            next_stage=stage.next_stage.value,
            next_follow_up_count=0,
            generate_for=stage,
        )

    if stage.name is StageName.ASKING_FOLLOW_UPS:
        count = follow_up_count + 1
        if count > stage.max_follow_ups:
            skip_to = get_stage(stage.next_stage)
            return TurnPlan(
                next_stage=skip_to.name.value,
                next_follow_up_count=count,
                generate_for=skip_to,
            )
        return TurnPlan(next_stage=stage.name.value, next_follow_up_count=count, generate_for=stage)

    if stage.name is StageName.PRE_FEEDBACK:
        answer = (latest_user_input or "").lower()
        if "yes" in answer:
            follow_ups = get_stage(StageName.ASKING_FOLLOW_UPS)
            return TurnPlan(
                next_stage=follow_ups.name.value,
                next_follow_up_count=0,
                generate_for=follow_ups,
            )
        if "no" in answer:
            feedback = get_stage(StageName.GENERATING_FEEDBACK)
            return TurnPlan(
                next_stage=feedback.name.value,
                next_follow_up_count=follow_up_count,
                generate_for=feedback,
            )
        return TurnPlan(
            next_stage=stage.name.value,
            next_follow_up_count=follow_up_count,
            fixed_reply=prompt.CLARIFY_PRE_FEEDBACK_REPLY,
        )

    next_stage = stage.next_stage or stage.name
    return TurnPlan(
        next_stage=next_stage.value,
        next_follow_up_count=follow_up_count,
        generate_for=stage,
    )


class TurnEngine:
    def __init__(self, client: TextGenerationClient) -> None:
        self._client = client

    async def advance(
        self,
        stage: str,
        follow_up_count: int,
        answers: Sequence[str],
        history: Sequence[ConversationTurn],
        latest_user_input: str,
    ) -> TurnResult:
        plan = plan_turn(stage, follow_up_count, latest_user_input)

        if plan.generate_for is None:
            reply = plan.fixed_reply or ""
        else:
            target = plan.generate_for
            instruction = target.build_instruction(answers, latest_user_input)
            # Backend failures propagate to the caller untouched.
            reply = await self._client.generate(
                instruction, list(history), target.generation_config()
            )

        if plan.next_stage != stage:
            logger.info("Stage transition: %s -> %s", stage, plan.next_stage)
        return TurnResult(
            reply_text=reply,
            next_stage=plan.next_stage,
            next_follow_up_count=plan.next_follow_up_count,
        )
