import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from mockly.core import database
from mockly.core.dependencies import get_current_user, get_interview_repository
from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.main import app
from mockly.services.interview_repository import InterviewRepository
from mockly.services.llm.base import BaseLLMClient
from mockly.services.stt_service import STTService
from mockly.services.tts_service import TTSService

CHAT_BODY = {"messages": [{"role": "user", "content": "Hello"}], "maxTokens": 50}


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


class StaticClient(BaseLLMClient):
    provider = "fake"

    def __init__(self, outcome):
        self.outcome = outcome

    async def chat(self, messages, max_tokens=500, temperature=0.7):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def use_llm(monkeypatch, outcome):
    monkeypatch.setattr("mockly.api.llm.get_llm_client", lambda provider=None: StaticClient(outcome))


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy", "service": "mockly"}


def test_chat_proxy_returns_content(client, monkeypatch):
    use_llm(monkeypatch, "Hi there")

    response = client.post("/llm/gemini/chat", json=CHAT_BODY)

    assert response.status_code == 200
    assert response.json() == {"content": "Hi there"}


def test_chat_proxy_passes_rate_limit_through(client, monkeypatch):
    use_llm(monkeypatch, ProviderError("cerebras", 429, "too many requests"))

    response = client.post("/llm/cerebras/chat", json=CHAT_BODY)

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Cerebras API error: 429"
    assert body["details"] == "too many requests"
    assert body["status"] == 429


def test_chat_proxy_maps_vendor_outage_to_500(client, monkeypatch):
    use_llm(monkeypatch, ProviderError("gemini", 503, "unavailable"))

    response = client.post("/llm/gemini/chat", json=CHAT_BODY)

    assert response.status_code == 500
    assert response.json()["status"] == 503


def test_chat_proxy_without_key(client, monkeypatch):
    use_llm(monkeypatch, ConfigurationError("GEMINI_API_KEY environment variable is required"))

    response = client.post("/llm/gemini/chat", json=CHAT_BODY)

    assert response.status_code == 500
    assert "GEMINI_API_KEY" in response.json()["error"]


def test_chat_proxy_rejects_bad_requests(client):
    assert client.post("/llm/gemini/chat", json={"messages": []}).status_code == 400
    assert client.post("/llm/openai/chat", json=CHAT_BODY).status_code == 404


def cartesia(monkeypatch, module, service_cls, handler):
    service = service_cls(api_key="sk-cartesia", transport=httpx.MockTransport(handler))
    monkeypatch.setattr(f"mockly.api.{module}.{module}_service", service)
    return service


def test_tts_returns_wav(client, monkeypatch):
    cartesia(monkeypatch, "tts", TTSService, lambda request: httpx.Response(200, content=b"RIFFdata"))

    response = client.post("/tts/generate", json={"text": "Welcome"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.content == b"RIFFdata"


def test_tts_passes_quota_status_through(client, monkeypatch):
    cartesia(monkeypatch, "tts", TTSService, lambda request: httpx.Response(402, text="out of credits"))

    response = client.post("/tts/generate", json={"text": "Welcome"})

    assert response.status_code == 402
    assert "402" in response.json()["error"]


def test_tts_validates_text_and_configuration(client, monkeypatch):
    cartesia(monkeypatch, "tts", TTSService, lambda request: httpx.Response(200, content=b""))
    assert client.post("/tts/generate", json={"text": "   "}).status_code == 400

    monkeypatch.setattr("mockly.api.tts.tts_service", TTSService())
    response = client.post("/tts/generate", json={"text": "Welcome"})
    assert response.status_code == 500
    assert response.json() == {"error": "CARTESIA_API_KEY not configured"}


def test_stt_transcribes_upload(client, monkeypatch):
    cartesia(monkeypatch, "stt", STTService, lambda request: httpx.Response(200, json={"text": "my answer", "language": "en"}))

    response = client.post("/stt/transcribe", files={"audio": ("answer.webm", b"\x1a\x45", "audio/webm")})

    assert response.status_code == 200
    assert response.json()["text"] == "my answer"
    assert response.json()["success"] is True


def test_stt_requires_audio(client, monkeypatch):
    cartesia(monkeypatch, "stt", STTService, lambda request: httpx.Response(200, json={}))

    response = client.post("/stt/transcribe")

    assert response.status_code == 400
    assert response.json() == {"error": "No audio file provided"}


def test_signup_sets_session_cookie_and_me_works(client, monkeypatch, collection):
    monkeypatch.setattr(database, "get_collection", lambda name: collection)

    response = client.post("/auth/signup", json={"name": "Dana", "email": "dana@example.com", "password": "pw-123456"})

    assert response.status_code == 200
    token = response.json()["token"]
    assert response.cookies.get("session") == token
    assert collection.docs[0]["hashed_password"] != "pw-123456"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "dana@example.com"

    duplicate = client.post("/auth/signup", json={"name": "Dana", "email": "dana@example.com", "password": "x"})
    assert duplicate.status_code == 400


def test_login_checks_password(client, monkeypatch, collection):
    monkeypatch.setattr(database, "get_collection", lambda name: collection)
    client.post("/auth/signup", json={"name": "Dana", "email": "dana@example.com", "password": "pw-123456"})

    assert client.post("/auth/login", json={"email": "dana@example.com", "password": "wrong"}).status_code == 401
    assert client.post("/auth/login", json={"email": "nobody@example.com", "password": "pw"}).status_code == 404
    ok = client.post("/auth/login", json={"email": "dana@example.com", "password": "pw-123456"})
    assert ok.status_code == 200
    assert "session" in ok.cookies


def test_me_requires_authentication(client):
    assert client.get("/auth/me").status_code == 401


@pytest.mark.parametrize("path", ["/auth/signout", "/auth/clear-session"])
def test_signout_reports_cleared_auth_cookies(client, path):
    client.cookies.set("auth_token", "abc")
    client.cookies.set("session", "def")
    client.cookies.set("theme", "dark")

    response = client.get(path)

    body = response.json()
    assert body["success"] is True
    assert sorted(body["clearedCookies"]) == ["auth_token", "session"]


def test_signout_without_cookies_still_succeeds(client):
    response = client.post("/auth/signout")
    assert response.json()["clearedCookies"] == []


INTERVIEW_BODY = {
    "interviewId": "iv-1",
    "candidateName": "Dana",
    "targetRole": "Backend Engineer",
    "experienceLevel": "Senior",
    "techStack": ["Python"],
    "totalScore": 0,
    "categoryScores": [{"name": "Technical Knowledge", "score": 70, "comment": "ok"}],
    "conversationHistory": [{"role": "assistant", "content": "Hi"}],
    "duration": 3,
}


def test_interviews_are_saved_and_scoped_to_owner(client, collection):
    repository = InterviewRepository(collection)
    app.dependency_overrides[get_interview_repository] = lambda: repository
    app.dependency_overrides[get_current_user] = lambda: {"id": "user-1", "email": "a@b.c", "name": "Dana"}

    saved = client.post("/interviews", json=INTERVIEW_BODY).json()
    assert saved["success"] is True
    interview_id = saved["interviewId"]

    listed = client.get("/interviews").json()
    assert [item["id"] for item in listed] == [interview_id]
    assert listed[0]["totalScore"] == 70

    assert client.get(f"/interviews/{interview_id}").json()["candidateName"] == "Dana"
    assert client.get("/interviews/not-an-id").status_code == 404

    app.dependency_overrides[get_current_user] = lambda: {"id": "user-2", "email": "x@y.z", "name": "Eve"}
    assert client.get(f"/interviews/{interview_id}").status_code == 404
    assert client.get("/interviews").json() == []


def test_interviews_require_authentication(client):
    assert client.get("/interviews").status_code == 401


def test_websocket_rejects_invalid_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/session/ws/interview?token=not-a-jwt"):
            pass
    assert exc_info.value.code == 403


def test_interview_without_category_scores_is_rejected(client, collection):
    app.dependency_overrides[get_interview_repository] = lambda: InterviewRepository(collection)
    app.dependency_overrides[get_current_user] = lambda: {"id": "user-1", "email": "a@b.c", "name": "Dana"}

    response = client.post("/interviews", json={**INTERVIEW_BODY, "categoryScores": []})

    assert response.status_code == 400
    assert collection.docs == []
