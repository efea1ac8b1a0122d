from __future__ import annotations


class InterviewError(Exception):
    """Base class for interview service failures."""


class InvalidInputError(InterviewError):
    """Missing session identifier or user utterance."""


class UnknownStageError(InterviewError):
    def __init__(self, stage: str) -> None:
        super().__init__(f"Unknown interview stage: {stage}")
        self.stage = stage


class GenerationBackendError(InterviewError):
    """The text-generation backend failed or timed out."""


class MisconfigurationError(InterviewError):
    """Required credentials or configuration are absent at startup."""
