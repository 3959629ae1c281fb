"""Prometheus 메트릭 정의.

HTTP 요청과 대화 처리(분기, 의도 분류) 메트릭을 정의합니다.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, Info

# ============================================
# HTTP 메트릭
# ============================================

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ============================================
# 대화 메트릭
# ============================================

DIALOGUE_MESSAGES_TOTAL = Counter(
    "dialogue_messages_total",
    "Total messages handled by the dialogue orchestrator",
    ["branch"],  # greeting, follow_up, shortcut, classified, fallback
)

DIALOGUE_DURATION = Histogram(
    "dialogue_duration_seconds",
    "Dialogue handling time in seconds",
    ["branch"],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1),
)

INTENT_CLASSIFICATIONS_TOTAL = Counter(
    "intent_classifications_total",
    "Total intent classifications",
    ["intent"],
)

INTENT_CONFIDENCE = Histogram(
    "intent_confidence",
    "Confidence of classified intents",
    ["intent"],
    buckets=(0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.85, 0.9, 0.95, 1.0),
)

FOLLOW_UPS_TOTAL = Counter(
    "follow_ups_total",
    "Total resolved follow-up responses",
    ["action", "answer"],  # answer: positive, negative, unhandled
)

ACTIVE_CONTEXTS = Gauge(
    "active_conversation_contexts",
    "Number of pending conversation contexts",
)

# 앱 정보
APP_INFO = Info(
    "app",
    "Application information",
)


def set_app_info(name: str, version: str, environment: str) -> None:
    """앱 정보 설정."""
    APP_INFO.info({
        "name": name,
        "version": version,
        "environment": environment,
    })


# ============================================
# 편의 함수
# ============================================


def track_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """HTTP 요청 메트릭 기록.

    Args:
        method: HTTP 메서드
        endpoint: 엔드포인트 경로
        status: HTTP 상태 코드
        duration: 요청 소요 시간 (초)
    """
    HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, status=status).inc()
    HTTP_REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)


def track_dialogue(branch: str, duration: float, active_contexts: Optional[int] = None) -> None:
    """대화 처리 메트릭 기록.

    Args:
        branch: 처리 분기
        duration: 처리 시간 (초)
        active_contexts: 현재 대기 중인 컨텍스트 수 (있으면)
    """
    DIALOGUE_MESSAGES_TOTAL.labels(branch=branch).inc()
    DIALOGUE_DURATION.labels(branch=branch).observe(duration)
    if active_contexts is not None:
        ACTIVE_CONTEXTS.set(active_contexts)


def track_intent(intent: str, confidence: float) -> None:
    """의도 분류 메트릭 기록."""
    INTENT_CLASSIFICATIONS_TOTAL.labels(intent=intent).inc()
    INTENT_CONFIDENCE.labels(intent=intent).observe(confidence)


def track_follow_up(action: str, answer: str) -> None:
    """후속 응답 처리 메트릭 기록."""
    FOLLOW_UPS_TOTAL.labels(action=action, answer=answer).inc()


@contextmanager
def timed_dialogue(branch_holder: dict):
    """대화 처리 시간 측정 컨텍스트 매니저.

    블록 안에서 branch_holder["branch"]에 처리 분기를 기록합니다.
    """
    start_time = time.time()
    try:
        yield branch_holder
    finally:
        duration = time.time() - start_time
        track_dialogue(
            branch_holder.get("branch", "fallback"),
            duration,
            branch_holder.get("active_contexts"),
        )
