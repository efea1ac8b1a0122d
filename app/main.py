from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from pydantic import BaseModel, ConfigDict, Field

from config.settings import get_settings, validate_settings
from interviewer.agent import GeminiTextClient
from interviewer.core.memory import ConversationTurn
from interviewer.errors import InvalidInputError
from interviewer.service import InterviewService


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("interviewer")

INVALID_INPUT_MESSAGE = "Missing sessionId or userResponse."
INTERNAL_ERROR_MESSAGE = "Failed to process interview."


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to serve traffic without credentials.
    validate_settings(get_settings())
    logger.info("Config: model=%s env=%s", settings.gemini_model, settings.app_env)
    yield


app = FastAPI(title="Tina Insurance Interviewer", version="1.0.0", lifespan=lifespan)

# CORS: allow local frontend during development
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", min_length=1, description="Opaque session identifier")
    user_response: str = Field(
        ...,
        alias="userResponse",
        description="User's latest message, or 'start interview' to begin",
    )


@lru_cache(maxsize=1)
def get_interview_service() -> InterviewService:
    settings = get_settings()
    return InterviewService(
        client=GeminiTextClient.from_settings(settings),
        timeout_seconds=settings.generation_timeout_seconds,
    )


def _history_payload(history: List[ConversationTurn]) -> List[Dict[str, str]]:
    return [turn.model_dump() for turn in history]


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": INVALID_INPUT_MESSAGE})


@app.post("/api/chat")
async def chat(
    req: ChatRequest, service: InterviewService = Depends(get_interview_service)
) -> Any:
    logger.info(
        "Incoming chat: session_id=%s response_len=%s",
        req.session_id,
        len(req.user_response),
    )
    try:
        outcome = await service.handle_turn(req.session_id, req.user_response)
    except InvalidInputError:
        return JSONResponse(status_code=400, content={"error": INVALID_INPUT_MESSAGE})
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})

    return {
        "response": outcome.response,
        "history": _history_payload(outcome.history),
        "interviewStage": outcome.interview_stage,
        "followUpCount": outcome.follow_up_count,
    }


@app.get("/api/sessions/{session_id}")
def get_session(
    session_id: str, service: InterviewService = Depends(get_interview_service)
) -> Any:
    session = service.get_session(session_id)
    if session is None:
        return JSONResponse(status_code=404, content={"error": "Session not found."})
    return {
        "sessionId": session.session_id,
        "history": _history_payload(session.history),
        "interviewStage": session.interview_stage,
        "followUpCount": session.follow_up_count,
        "userAnswers": list(session.user_answers),
    }


@app.delete("/api/sessions/{session_id}")
async def reset_session(
    session_id: str, service: InterviewService = Depends(get_interview_service)
) -> Dict[str, Any]:
    session = await service.reset_session(session_id)
    return {
        "sessionId": session.session_id,
        "interviewStage": session.interview_stage,
        "followUpCount": session.follow_up_count,
    }


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
