from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from interviewer.core.memory import ConversationTurn, InMemorySessionStore, Session
from interviewer.core.stages import collects_answer
from interviewer.engine import TextGenerationClient, TurnEngine
from interviewer.errors import GenerationBackendError, InvalidInputError


logger = logging.getLogger(__name__)

START_INTERVIEW = "start interview"


@dataclass(frozen=True)
class TurnOutcome:
    response: str
    history: List[ConversationTurn]
    interview_stage: str
    follow_up_count: int


class InterviewService:
    """Runs one interview turn per call against a session store.

    The session is read, advanced and written back while holding that
    session's lock. Nothing is written when the turn fails or times out, so
    the stored session always reflects either the pre-turn or the post-turn
    state.
    """

    def __init__(
        self,
        client: TextGenerationClient,
        store: Optional[InMemorySessionStore] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.engine = TurnEngine(client)
        self.store = store if store is not None else InMemorySessionStore()
        self.timeout_seconds = timeout_seconds

    async def handle_turn(self, session_id: str, user_response: Optional[str]) -> TurnOutcome:
        if not session_id or not isinstance(session_id, str) or user_response is None:
            raise InvalidInputError("Missing sessionId or userResponse.")

        async with self.store.lock(session_id):
            session = self.store.get_or_create(session_id)
            pre_stage = session.interview_stage

            if user_response != START_INTERVIEW:
                session.history.append(ConversationTurn(role="user", text=user_response))
                if collects_answer(pre_stage):
                    session.user_answers.append(user_response)

            turn = self.engine.advance(
                stage=pre_stage,
                follow_up_count=session.follow_up_count,
                answers=list(session.user_answers),
                history=list(session.history),
                latest_user_input=user_response,
            )
            try:
                if self.timeout_seconds:
                    result = await asyncio.wait_for(turn, timeout=self.timeout_seconds)
                else:
                    result = await turn
            except asyncio.TimeoutError as exc:
                raise GenerationBackendError(
                    f"Turn timed out after {self.timeout_seconds}s"
                ) from exc

            if result.reply_text:
                session.history.append(ConversationTurn(role="assistant", text=result.reply_text))
            session.interview_stage = result.next_stage
            session.follow_up_count = result.next_follow_up_count
            self.store.put(session_id, session)

        logger.info(
            "Turn complete: session=%s stage=%s -> %s follow_ups=%s answers=%s",
            session_id,
            pre_stage,
            session.interview_stage,
            session.follow_up_count,
            len(session.user_answers),
        )
        return TurnOutcome(
            response=result.reply_text,
            history=list(session.history),
            interview_stage=session.interview_stage,
            follow_up_count=session.follow_up_count,
        )

    def get_session(self, session_id: str) -> Optional[Session]:
        return self.store.get(session_id)

    async def reset_session(self, session_id: str) -> Session:
        if not session_id:
            raise InvalidInputError("Missing sessionId.")
        async with self.store.lock(session_id):
            session = Session(session_id=session_id)
            self.store.put(session_id, session)
        logger.info("Session reset: %s", session_id)
        return session
