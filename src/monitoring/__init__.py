"""모니터링 모듈.

Prometheus 메트릭 및 HTTP 요청 추적 미들웨어를 제공합니다.
"""

from .metrics import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION,
    DIALOGUE_MESSAGES_TOTAL,
    INTENT_CLASSIFICATIONS_TOTAL,
    INTENT_CONFIDENCE,
    FOLLOW_UPS_TOTAL,
    ACTIVE_CONTEXTS,
    set_app_info,
    track_request,
    track_dialogue,
    track_intent,
    track_follow_up,
    timed_dialogue,
)
from .middleware import PrometheusMiddleware

__all__ = [
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION",
    "DIALOGUE_MESSAGES_TOTAL",
    "INTENT_CLASSIFICATIONS_TOTAL",
    "INTENT_CONFIDENCE",
    "FOLLOW_UPS_TOTAL",
    "ACTIVE_CONTEXTS",
    "set_app_info",
    "track_request",
    "track_dialogue",
    "track_intent",
    "track_follow_up",
    "timed_dialogue",
    "PrometheusMiddleware",
]
