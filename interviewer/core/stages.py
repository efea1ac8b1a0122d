"""Static catalog of interview stages.

Each stage pairs a pure instruction builder with its generation limits and
the stage the interview moves to afterwards. The catalog is read-only for
the lifetime of the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Sequence

from interviewer.core import prompt
from interviewer.errors import UnknownStageError


InstructionBuilder = Callable[[Sequence[str], str], str]


class StageName(str, Enum):
    INITIAL = "initial"
    AWAITING_OPT_IN_RESPONSE = "awaiting_opt_in_response"
    ASKING_FOLLOW_UPS = "asking_follow_ups"
    PRE_FEEDBACK = "pre_feedback"
    GENERATING_FEEDBACK = "generating_feedback"
    INTERVIEW_COMPLETE = "interview_complete"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Stage:
    name: StageName
    instruction: InstructionBuilder
    next_stage: Optional[StageName] = None
    max_output_tokens: Optional[int] = None
    max_follow_ups: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.next_stage is None

    def build_instruction(self, answers: Sequence[str], latest_input: str = "") -> str:
        return self.instruction(list(answers), latest_input or "")

    def generation_config(self) -> Dict[str, Any]:
        if self.max_output_tokens is None:
            return {}
        return {"max_output_tokens": self.max_output_tokens}


_STAGES = (
    Stage(
        name=StageName.INITIAL,
        instruction=prompt.initial_instruction,
        next_stage=StageName.AWAITING_OPT_IN_RESPONSE,
    ),
    Stage(
        name=StageName.AWAITING_OPT_IN_RESPONSE,
        instruction=prompt.opt_in_instruction,
        next_stage=StageName.ASKING_FOLLOW_UPS,
    ),
    Stage(
        name=StageName.ASKING_FOLLOW_UPS,
        instruction=prompt.follow_up_instruction,
        next_stage=StageName.PRE_FEEDBACK,
        max_output_tokens=200,  # ~140 words
        max_follow_ups=prompt.MAX_FOLLOW_UP_QUESTIONS,
    ),
    Stage(
        name=StageName.PRE_FEEDBACK,
        instruction=prompt.pre_feedback_instruction,
        next_stage=StageName.GENERATING_FEEDBACK,
        max_output_tokens=100,
    ),
    Stage(
        name=StageName.GENERATING_FEEDBACK,
        instruction=prompt.feedback_instruction,
        next_stage=StageName.INTERVIEW_COMPLETE,
        max_output_tokens=500,
    ),
    Stage(
        name=StageName.INTERVIEW_COMPLETE,
        instruction=prompt.closing_instruction,
        max_output_tokens=50,
    ),
)

STAGE_CATALOG: Mapping[StageName, Stage] = MappingProxyType({s.name: s for s in _STAGES})

# User input given while in one of these stages is not a substantive answer.
EXCLUDED_ANSWER_STAGES: FrozenSet[StageName] = frozenset(
    {
        StageName.INITIAL,
        StageName.PRE_FEEDBACK,
        StageName.GENERATING_FEEDBACK,
        StageName.INTERVIEW_COMPLETE,
    }
)


def _check_catalog(catalog: Mapping[StageName, Stage]) -> None:
    for stage in catalog.values():
        if stage.next_stage is not None and stage.next_stage not in catalog:
            raise ValueError(f"Stage {stage.name} points at missing stage {stage.next_stage}")


_check_catalog(STAGE_CATALOG)


def resolve_stage_name(name: str) -> StageName:
    try:
        return StageName(name)
    except ValueError as exc:
        raise UnknownStageError(str(name)) from exc


def get_stage(name: str) -> Stage:
    return STAGE_CATALOG[resolve_stage_name(name)]


def collects_answer(stage_name: str) -> bool:
    """True when input given during ``stage_name`` counts as a substantive answer."""
    return stage_name not in {s.value for s in EXCLUDED_ANSWER_STAGES}
