from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pytest

from interviewer.core.memory import ConversationTurn, InMemorySessionStore
from interviewer.service import InterviewService


class FakeTextClient:
    """Records every generation call and answers with a numbered reply."""

    def __init__(self, fail: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.fail = fail
        self.delay = delay

    async def generate(
        self,
        instruction: str,
        history: Sequence[ConversationTurn],
        generation_config: Optional[Mapping[str, Any]] = None,
    ) -> str:
        self.calls.append(
            {
                "instruction": instruction,
                "history": list(history),
                "generation_config": dict(generation_config or {}),
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail is not None:
            raise self.fail
        return f"reply {len(self.calls)}"


@pytest.fixture
def fake_client() -> FakeTextClient:
    return FakeTextClient()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def service(fake_client: FakeTextClient, store: InMemorySessionStore) -> InterviewService:
    return InterviewService(client=fake_client, store=store)
