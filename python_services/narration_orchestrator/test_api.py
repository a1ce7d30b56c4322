import pytest
from fastapi.testclient import TestClient

from .conftest import FakeSlideServices
from .contracts import QuestionTriage
from .main import create_app
from .rate_limit import SlidingWindowRateLimiter


@pytest.fixture
def fake():
    return FakeSlideServices()


@pytest.fixture
def client(fake):
    app = create_app(services=fake, limiter=SlidingWindowRateLimiter(1, 60))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_id(client):
    response = client.post("/sessions")
    assert response.status_code == 200
    return response.json()["sessionId"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_unknown_session_is_404(client):
    assert client.get("/sessions/missing1/status").status_code == 404
    assert client.delete("/sessions/missing1").status_code == 404


def test_start_and_short_transcript(client, session_id):
    status = client.post(f"/sessions/{session_id}/start").json()
    assert status["isRecording"] is True

    status = client.post(
        f"/sessions/{session_id}/transcript",
        json={"text": "hello everyone", "isFinal": True},
    ).json()
    assert status["fullTranscript"] == "hello everyone"
    assert status["transcript"] == "hello everyone"


def test_mode_pause_and_resume(client, session_id):
    status = client.put(f"/sessions/{session_id}/mode", json={"mode": "stream-of-consciousness"}).json()
    assert status["mode"] == "stream-of-consciousness"

    assert client.post(f"/sessions/{session_id}/pause").json()["isGenerationPaused"] is True
    assert client.post(f"/sessions/{session_id}/resume").json()["isGenerationPaused"] is False


def test_deck_navigation_take_and_remove(client, session_id):
    body = {"slides": [{"headline": "Agenda"}, {"headline": "Goals"}, {"headline": "Risks"}]}
    response = client.post(f"/sessions/{session_id}/deck", json=body).json()
    assert response["added"] == 3
    assert response["channel"]["total"] == 3

    view = client.post(
        f"/sessions/{session_id}/channels/slides/navigate", json={"direction": "next"}
    ).json()
    assert view["cursor"] == 1
    assert view["current"]["headline"] == "Goals"
    assert view["current"]["source"] == "deck-upload"

    taken = client.post(f"/sessions/{session_id}/channels/slides/take").json()
    assert taken["slide"]["headline"] == "Goals"

    risks_id = client.get(f"/sessions/{session_id}/channels/slides").json()["current"]["id"]
    view = client.delete(f"/sessions/{session_id}/channels/slides/slides/{risks_id}").json()
    assert view["total"] == 1
    missing = client.delete(f"/sessions/{session_id}/channels/slides/slides/{risks_id}")
    assert missing.status_code == 404


def test_accept_records_slide(client, session_id):
    client.post(f"/sessions/{session_id}/start")
    status = client.post(f"/sessions/{session_id}/accept", json={"slide": {"headline": "Launch"}}).json()
    assert status["acceptedSlides"] == 1


def test_question_flow_and_rate_limit(client, session_id, fake):
    response = client.post(f"/sessions/{session_id}/questions", json={"question": "How does pricing work?"})
    assert response.status_code == 200
    body = response.json()
    assert body["accepted"] is True
    assert body["slide"]["source"] == "question"

    limited = client.post(f"/sessions/{session_id}/questions", json={"question": "And refunds?"})
    assert limited.status_code == 429


def test_rejected_question(client, session_id, fake):
    fake.triage_result = QuestionTriage(accept=False, reason="Off topic")
    body = client.post(f"/sessions/{session_id}/questions", json={"question": "Lunch?"}).json()
    assert body == {"accepted": False, "reason": "Off topic", "slide": None}


def test_blank_inputs_are_rejected(client, session_id):
    assert client.post(f"/sessions/{session_id}/questions", json={"question": "  "}).status_code == 400
    assert client.post(f"/sessions/{session_id}/prompt", json={"prompt": ""}).status_code == 400


def test_prompt_is_rate_limited(client, session_id):
    client.post(f"/sessions/{session_id}/start")
    assert client.post(f"/sessions/{session_id}/prompt", json={"prompt": "explain the risks"}).status_code == 200
    assert client.post(f"/sessions/{session_id}/prompt", json={"prompt": "and costs"}).status_code == 429


def test_delete_session(client, session_id):
    assert client.delete(f"/sessions/{session_id}").json() == {"deleted": session_id}
    assert client.get(f"/sessions/{session_id}/status").status_code == 404
