import pytest
from fastapi.testclient import TestClient

from app.main import app, get_interview_service
from config.settings import Settings, get_settings, validate_settings
from interviewer.errors import GenerationBackendError, MisconfigurationError
from interviewer.service import InterviewService

from conftest import FakeTextClient


@pytest.fixture
def client_for():
    def make(text_client):
        service = InterviewService(client=text_client)
        app.dependency_overrides[get_interview_service] = lambda: service
        return TestClient(app)

    yield make
    app.dependency_overrides.clear()


def test_chat_turn_round_trip(client_for):
    client = client_for(FakeTextClient())

    first = client.post("/api/chat", json={"sessionId": "abc", "userResponse": "start interview"})
    second = client.post("/api/chat", json={"sessionId": "abc", "userResponse": "yes"})

    assert first.status_code == 200
    assert first.json() == {
        "response": "reply 1",
        "history": [{"role": "assistant", "text": "reply 1"}],
        "interviewStage": "awaiting_opt_in_response",
        "followUpCount": 0,
    }
    body = second.json()
    assert body["interviewStage"] == "asking_follow_ups"
    assert [t["role"] for t in body["history"]] == ["assistant", "user", "assistant"]


@pytest.mark.parametrize(
    "payload",
    [{"userResponse": "hi"}, {"sessionId": "abc"}, {"sessionId": "", "userResponse": "hi"}, {}],
)
def test_missing_fields_are_client_errors(client_for, payload):
    client = client_for(FakeTextClient())

    response = client.post("/api/chat", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing sessionId or userResponse."}


def test_backend_failure_is_generic_server_error(client_for):
    client = client_for(FakeTextClient(fail=GenerationBackendError("secret quota detail")))

    response = client.post("/api/chat", json={"sessionId": "abc", "userResponse": "start interview"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process interview."}
    assert "secret" not in response.text
    assert client.get("/api/sessions/abc").status_code == 404


def test_session_inspection_and_reset(client_for):
    client = client_for(FakeTextClient())
    client.post("/api/chat", json={"sessionId": "abc", "userResponse": "start interview"})
    client.post("/api/chat", json={"sessionId": "abc", "userResponse": "yes"})

    snapshot = client.get("/api/sessions/abc").json()
    assert snapshot["interviewStage"] == "asking_follow_ups"
    assert snapshot["userAnswers"] == ["yes"]

    reset = client.delete("/api/sessions/abc")
    assert reset.json() == {"sessionId": "abc", "interviewStage": "initial", "followUpCount": 0}
    assert client.get("/api/sessions/abc").json()["history"] == []


def test_health(client_for):
    assert client_for(FakeTextClient()).get("/health").json() == {"status": "ok"}


def test_startup_without_api_key_refuses_to_serve(monkeypatch):
    monkeypatch.setattr(get_settings(), "google_api_key", None)

    with pytest.raises(MisconfigurationError):
        with TestClient(app):
            pass


def test_missing_api_key_is_fatal():
    settings = Settings()
    settings.google_api_key = ""
    with pytest.raises(MisconfigurationError):
        validate_settings(settings)
