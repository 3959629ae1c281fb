"""API 엔드포인트 테스트."""

import pytest

from api import app_error_handler
from src.core.exceptions import NotFoundError


class TestHealthEndpoint:
    """헬스체크 엔드포인트 테스트."""

    def test_healthz_returns_200(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_root(self, client):
        data = client.get("/").json()
        assert data["name"] == "card-support-agent"
        assert data["links"]["greeting"] == "/greeting"

    def test_metrics(self, client):
        client.post("/chat", json={"message": "hello", "session_id": "metrics-s"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "dialogue_messages_total" in response.text


class TestChatEndpoint:
    """채팅 엔드포인트 테스트."""

    def test_greeting(self, client):
        response = client.post("/chat", json={"message": "Hello", "session_id": "s1"})
        assert response.status_code == 200
        data = response.json()
        assert data["branch"] == "greeting"
        assert data["intent"] is None
        assert data["message"].startswith("Good ")
        assert "timestamp" in data

    def test_classified_with_follow_up(self, client):
        first = client.post("/chat", json={"message": "I need to increase limit", "session_id": "s2"}).json()
        assert first["branch"] == "classified"
        assert first["intent"] == "CREDIT_LIMIT"

        assert first["context"]["pending_action"] == "CREDIT_LIMIT_REQUEST"
        assert first["context"]["context_data"] == "limit_increase"

        second = client.post("/chat", json={"message": "yes", "session_id": "s2"}).json()
        assert second["branch"] == "follow_up"
        assert "submitted your credit limit increase request" in second["message"]
        assert second["context"] is None

    def test_shortcut_reports_pending_context(self, client):
        client.post("/chat", json={"message": "increase limit please", "session_id": "s4"})
        data = client.post("/chat", json={"message": "credit balance", "session_id": "s4"}).json()
        assert data["branch"] == "shortcut"
        assert data["context"]["pending_action"] == "CREDIT_LIMIT_REQUEST"

    def test_shortcut(self, client):
        data = client.post("/chat", json={"message": "check available credit"}).json()
        assert data["branch"] == "shortcut"
        assert "THB total credit limit" in data["message"]

    def test_chat_empty_message(self, client):
        response = client.post("/chat", json={"message": "   "})
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_chat_missing_message(self, client):
        response = client.post("/chat", json={"session_id": "s3"})
        assert response.status_code == 400

    def test_chat_too_long(self, client):
        response = client.post("/chat", json={"message": "a" * 1001})
        assert response.status_code == 400
        assert "too long" in response.json()["message"]


class TestFurtherAssistanceEndpoint:
    """추가 도움 확인 엔드포인트 테스트."""

    def test_offer_then_decline(self, client):
        offer = client.post("/conversation/s5/further-assistance")
        assert offer.status_code == 200
        data = offer.json()
        assert data["message"] == "Do you need any further assistance?"
        assert data["context"]["pending_action"] == "FURTHER_ASSISTANCE"

        reply = client.post("/chat", json={"message": "no", "session_id": "s5"}).json()
        assert reply["branch"] == "follow_up"
        assert reply["message"].endswith("Have a great day!")
        assert reply["context"] is None


class TestGreetingEndpoint:
    """인사 엔드포인트 테스트."""

    def test_greeting_with_condition(self, client):
        data = client.get("/greeting", params={"condition": "rainy"}).json()
        assert data["weather_condition"] == "rainy"
        assert data["message"].endswith("stay dry out there!")
        assert data["time_of_day"] in {"morning", "afternoon", "evening"}


class TestPredictionEndpoint:
    """의도 예측 엔드포인트 테스트."""

    def test_overdue_user(self, client):
        data = client.get("/predictions", params={"user_id": "user_overdue"}).json()
        assert data["top"]["intent_id"] == "OVERDUE_PAYMENT"
        assert data["predictions"][0]["priority"] == "HIGH"

    def test_normal_user(self, client):
        data = client.get("/predictions", params={"user_id": "user_normal"}).json()
        assert data == {"predictions": [], "top": None}

    def test_unknown_user(self, client):
        response = client.get("/predictions", params={"user_id": "nobody"})
        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_without_user(self, client):
        assert client.get("/predictions").status_code == 200


class TestClassifyEndpoint:
    """의도 분류 엔드포인트 테스트."""

    def test_classify_with_user(self, client):
        data = client.post(
            "/intents/classify", json={"message": "What's my current balance?", "user_id": "user_overdue"}
        ).json()
        assert data["intent_id"] == "PAYMENT_INQUIRY"
        assert data["confidence"] == 0.95
        assert {"type": "CURRENT_BALANCE", "value": "120000.00", "confidence": 1.0} in data["entities"]
        assert data["user_id"] == "user_overdue"

    def test_classify_does_not_set_context(self, client):
        client.post("/intents/classify", json={"message": "increase limit"})
        data = client.post("/chat", json={"message": "maybe"}).json()
        assert data["branch"] != "follow_up"

    def test_classify_unknown_user(self, client):
        response = client.post("/intents/classify", json={"message": "hi", "user_id": "nobody"})
        assert response.status_code == 404

    def test_classify_empty(self, client):
        assert client.post("/intents/classify", json={"message": ""}).status_code == 400


class TestExceptionHandler:
    """예외 핸들러 테스트."""

    @pytest.mark.asyncio
    async def test_app_error_handler(self):
        response = await app_error_handler(None, NotFoundError("missing"))
        assert response.status_code == 404
        assert b'"error":"NOT_FOUND"' in response.body
