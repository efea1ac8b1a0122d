"""Server-side interview memory.

Sessions live in process memory, keyed by the caller-supplied session id.
Each id has its own asyncio lock so that a turn can read, compute and write
back without another turn on the same id interleaving. Different ids never
share a lock.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from interviewer.core.stages import StageName


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    text: str


class Session(BaseModel):
    session_id: str
    history: List[ConversationTurn] = Field(default_factory=list)
    interview_stage: str = StageName.INITIAL.value
    follow_up_count: int = Field(default=0, ge=0)
    user_answers: List[str] = Field(default_factory=list)


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        # session_id -> [lock, holders+waiters]
        self._locks: Dict[str, list] = {}

    def get(self, session_id: str) -> Optional[Session]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        return session.model_copy(deep=True)

    def put(self, session_id: str, session: Session) -> None:
        self._sessions[session_id] = session.model_copy(deep=True)

    def get_or_create(self, session_id: str) -> Session:
        session = self.get(session_id)
        if session is None:
            session = Session(session_id=session_id)
        return session

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        entry = self._locks.get(session_id)
        if entry is None:
            entry = [asyncio.Lock(), 0]
            self._locks[session_id] = entry
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                self._locks.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
