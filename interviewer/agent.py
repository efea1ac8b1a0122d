from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from config.settings import Settings, get_settings
from interviewer.core.memory import ConversationTurn
from interviewer.errors import GenerationBackendError, MisconfigurationError


logger = logging.getLogger(__name__)


def build_llm(settings: Optional[Settings] = None) -> ChatGoogleGenerativeAI:
    settings = settings or get_settings()
    if not settings.google_api_key:
        raise MisconfigurationError(
            "GOOGLE_API_KEY not set. Please configure it in environment or .env"
        )

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
    )


def to_lc_messages(history: Sequence[ConversationTurn]) -> List[BaseMessage]:
    """Map stored turns to LangChain messages.

    Empty turns are skipped, and the sent history never starts with an
    assistant message (the greeting is not a conversation seed).
    """
    messages: List[BaseMessage] = []
    for turn in history or []:
        if not turn.text:
            continue
        if turn.role == "assistant":
            messages.append(AIMessage(content=turn.text))
        else:
            messages.append(HumanMessage(content=turn.text))
    while messages and isinstance(messages[0], AIMessage):
        messages.pop(0)
    return messages


def _message_text(message: Any) -> str:
    content = getattr(message, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text") or "")
        return "".join(parts)
    raise GenerationBackendError(f"Unexpected model response: {type(content).__name__}")


class GeminiTextClient:
    """Sends one instruction, plus prior turns, to a chat model and returns the reply text."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GeminiTextClient":
        return cls(build_llm(settings))

    async def generate(
        self,
        instruction: str,
        history: Sequence[ConversationTurn],
        generation_config: Optional[Mapping[str, Any]] = None,
    ) -> str:
        messages = to_lc_messages(history)
        messages.append(HumanMessage(content=instruction))

        kwargs: Dict[str, Any] = {}
        if generation_config:
            kwargs["generation_config"] = dict(generation_config)

        try:
            result = await self._llm.ainvoke(messages, **kwargs)
        except Exception as exc:
            raise GenerationBackendError("Text generation failed") from exc

        text = _message_text(result)
        logger.debug("Model replied with %s chars", len(text))
        return text
