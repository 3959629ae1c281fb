"""모니터링 모듈 테스트."""

import pytest
from unittest.mock import MagicMock
from prometheus_client import REGISTRY
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from src.monitoring.metrics import (
    set_app_info,
    timed_dialogue,
    track_dialogue,
    track_follow_up,
    track_intent,
    track_request,
)
from src.monitoring.middleware import PrometheusMiddleware


def _sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetrics:
    """메트릭 테스트."""

    def test_track_request(self):
        labels = {"method": "GET", "endpoint": "/api/test", "status": "200"}
        before = _sample("http_requests_total", labels)
        track_request(method="GET", endpoint="/api/test", status=200, duration=0.123)
        assert _sample("http_requests_total", labels) == before + 1

    def test_track_dialogue(self):
        before = _sample("dialogue_messages_total", {"branch": "shortcut"})
        track_dialogue("shortcut", 0.002, active_contexts=3)
        assert _sample("dialogue_messages_total", {"branch": "shortcut"}) == before + 1
        assert _sample("active_conversation_contexts", {}) == 3

    def test_track_intent(self):
        labels = {"intent": "CARD_MANAGEMENT"}
        before = _sample("intent_classifications_total", labels)
        track_intent("CARD_MANAGEMENT", 0.92)
        assert _sample("intent_classifications_total", labels) == before + 1
        assert _sample("intent_confidence_count", labels) >= 1

    def test_track_follow_up(self):
        labels = {"action": "PAYMENT_CONFIRMATION", "answer": "positive"}
        before = _sample("follow_ups_total", labels)
        track_follow_up("PAYMENT_CONFIRMATION", "positive")
        assert _sample("follow_ups_total", labels) == before + 1

    def test_set_app_info(self):
        set_app_info(name="card-support-agent", version="1.0.0", environment="test")
        assert _sample(
            "app_info", {"name": "card-support-agent", "version": "1.0.0", "environment": "test"}
        ) == 1.0


class TestTimedDialogue:
    """timed_dialogue 컨텍스트 매니저 테스트."""

    def test_records_branch(self):
        before = _sample("dialogue_messages_total", {"branch": "greeting"})
        with timed_dialogue({}) as holder:
            holder["branch"] = "greeting"
        assert _sample("dialogue_messages_total", {"branch": "greeting"}) == before + 1

    def test_exception_still_recorded(self):
        before = _sample("dialogue_messages_total", {"branch": "fallback"})
        with pytest.raises(ValueError):
            with timed_dialogue({}):
                raise ValueError("boom")
        assert _sample("dialogue_messages_total", {"branch": "fallback"}) == before + 1


class TestPrometheusMiddleware:
    """Prometheus 미들웨어 테스트."""

    @pytest.fixture
    def test_app(self):
        """테스트 앱."""
        async def homepage(request):
            return PlainTextResponse("Hello")

        async def error_endpoint(request):
            raise ValueError("Test error")

        app = Starlette(
            routes=[
                Route("/", homepage),
                Route("/error", error_endpoint),
                Route("/healthz", homepage),
                Route("/metrics", homepage),
            ]
        )
        app.add_middleware(PrometheusMiddleware)
        return app

    def test_middleware_normal_request(self, test_app):
        client = TestClient(test_app, raise_server_exceptions=False)
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "Hello"
        assert len(response.headers["X-Request-ID"]) == 8

    def test_middleware_keeps_request_id(self, test_app):
        client = TestClient(test_app, raise_server_exceptions=False)
        response = client.get("/", headers={"X-Request-ID": "req-abc"})
        assert response.headers["X-Request-ID"] == "req-abc"

    def test_middleware_records_errors(self, test_app):
        labels = {"method": "GET", "endpoint": "/error", "status": "500"}
        before = _sample("http_requests_total", labels)
        client = TestClient(test_app, raise_server_exceptions=False)
        response = client.get("/error")
        assert response.status_code == 500
        assert _sample("http_requests_total", labels) == before + 1

    def test_middleware_excludes_healthz(self, test_app):
        labels = {"method": "GET", "endpoint": "/healthz", "status": "200"}
        before = _sample("http_requests_total", labels)
        client = TestClient(test_app, raise_server_exceptions=False)
        assert client.get("/healthz").status_code == 200
        assert _sample("http_requests_total", labels) == before

    def test_middleware_path_normalization(self):
        middleware = PrometheusMiddleware(app=MagicMock())

        assert middleware._normalize_path("/accounts/user_overdue") == "/accounts/{user_id}"
        assert middleware._normalize_path("/transactions/TXN005") == "/transactions/{transaction_id}"
        assert middleware._normalize_path("/sessions/3f2a9c7e-1b4d-4e8a") == "/sessions/{id}"
        assert middleware._normalize_path("/intents/classify") == "/intents/classify"
        assert middleware._normalize_path("/healthz") == "/healthz"

    def test_long_words_are_not_ids(self):
        middleware = PrometheusMiddleware(app=MagicMock())

        assert middleware._normalize_path("/conversation/s1/further-assistance") == (
            "/conversation/s1/further-assistance"
        )
        assert middleware._normalize_path("/transactions") == "/transactions"
        assert middleware._normalize_path("/sessions/a1b2c3d4e5f6a7b8") == "/sessions/{id}"
