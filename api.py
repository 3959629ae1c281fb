"""FastAPI 서버 (신용카드 고객지원 대화).

구성
- 대화: 입력 검증 → 오케스트레이터 (인사/후속 응답/단축 경로/의도 분류)
- 인사/의도 예측: 인사말과 계정 상태 기반 예측 의도
- 의도 분류: 분류 결과만 조회 (컨텍스트 변경 없음)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel
from starlette.responses import Response as StarletteResponse

from src.agents.nodes.intent_classifier import classify, enhance_account_context
from src.agents.orchestrator import get_orchestrator
from src.agents.predictions import get_intent_predictor
from src.agents.state import DialogueResult
from src.config import get_config
from src.conversation.context import ConversationContext
from src.conversation.greeting import GreetingService
from src.core.exceptions import AppError, NotFoundError
from src.core.logging import setup_logging
from src.guardrails.input_guards import validate_message
from src.mock_system.account_service import get_account_service
from src.monitoring import PrometheusMiddleware
from src.monitoring.metrics import set_app_info

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = get_config().app
    setup_logging(level=cfg.log_level, log_file=cfg.log_file, json_format=cfg.log_json)
    set_app_info(cfg.name, cfg.version, cfg.environment)
    logger.info(f"서버 시작: {cfg.name} v{cfg.version} ({cfg.environment})")

    yield


app = FastAPI(title="Card Support Agent API", version=get_config().app.version, lifespan=lifespan)

# CORS 미들웨어
# 프로덕션에서는 allow_origins를 특정 도메인으로 제한
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus 모니터링 미들웨어
app.add_middleware(PrometheusMiddleware)


# -------- 전역 예외 핸들러 --------


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """애플리케이션 예외 핸들러."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """일반 예외 핸들러."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An internal error occurred",
        },
    )


class ChatRequest(BaseModel):
    message: Optional[str] = None
    session_id: Optional[str] = None


class ClassifyRequest(BaseModel):
    message: Optional[str] = None
    user_id: Optional[str] = None


greeting_service = GreetingService()


@app.get("/healthz")
async def healthz() -> Dict[str, str]:
    return {"status": "ok"}


# -------- Monitoring --------


@app.get("/metrics")
async def metrics() -> StarletteResponse:
    """Prometheus 메트릭 엔드포인트."""
    return StarletteResponse(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


@app.get("/", include_in_schema=False)
async def root() -> Dict[str, Any]:
    """루트 엔드포인트: 간단한 안내 정보 제공."""
    cfg = get_config().app
    return {
        "name": cfg.name,
        "version": cfg.version,
        "links": {
            "docs": "/docs",
            "healthz": "/healthz",
            "metrics": "/metrics",
            "greeting": "/greeting",
            "predictions_sample": "/predictions?user_id=user_overdue",
        },
        "message": "API is running. See /docs for details.",
    }


# -------- Chat --------


def _require_account(user_id: str):
    account = get_account_service().get_account_context(user_id)
    if account is None:
        raise NotFoundError(f"Unknown user: {user_id}", details={"user_id": user_id})
    return account


def _context_payload(context: Optional[ConversationContext]) -> Optional[Dict[str, Any]]:
    if context is None:
        return None
    return {
        "pending_action": context.last_action,
        "intent_id": context.last_intent_id,
        "context_data": context.context_data,
        "expected_responses": list(context.expected_responses),
        "created_at": context.created_at.isoformat(),
    }


def _dialogue_payload(result: DialogueResult) -> Dict[str, Any]:
    return {
        "message": result.reply_text,
        "intent": result.intent.intent_id if result.intent else None,
        "branch": result.branch.value,
        "context": _context_payload(result.updated_context),
        "timestamp": datetime.now().isoformat(),
    }


@app.post("/chat")
def chat(req: ChatRequest) -> Dict[str, Any]:
    """발화 처리 (인사 → 후속 응답 → 단축 경로 → 의도 분류)."""
    validate_message(req.message)
    result = get_orchestrator().handle_message(req.message, req.session_id)
    return _dialogue_payload(result)


@app.post("/conversation/{session_id}/further-assistance")
def further_assistance(session_id: str) -> Dict[str, Any]:
    """사용자 침묵 시 추가 도움 여부 질문 (다음 yes/no 응답 대기)."""
    return _dialogue_payload(get_orchestrator().offer_further_assistance(session_id))


@app.get("/greeting")
def greeting(condition: Optional[str] = None) -> Dict[str, Any]:
    """시간대/날씨 기반 인사말."""
    result = greeting_service.generate_greeting(weather_condition=condition)
    return {
        "message": result.message,
        "time_of_day": result.time_of_day,
        "weather_condition": result.weather_condition,
        "timestamp": result.timestamp.isoformat(),
    }


@app.get("/predictions")
def predictions(user_id: Optional[str] = Query(None)) -> Dict[str, Any]:
    """계정 상태 기반 예측 의도 (우선순위 높은 순)."""
    if user_id:
        _require_account(user_id)
    items = get_intent_predictor().predict_intents(user_id)
    return {
        "predictions": [p.to_dict() for p in items],
        "top": items[0].to_dict() if items else None,
    }


@app.post("/intents/classify")
def classify_intent(req: ClassifyRequest) -> Dict[str, Any]:
    """의도 분류 결과 조회 (대화 컨텍스트는 변경하지 않음)."""
    validate_message(req.message)
    account = _require_account(req.user_id) if req.user_id else None
    account = enhance_account_context(account, get_account_service())
    intent = classify(req.message, account)
    return {
        "intent_id": intent.intent_id,
        "category": intent.category,
        "display_name": intent.display_name,
        "confidence": intent.confidence,
        "entities": [
            {"type": e.type.value, "value": e.value, "confidence": e.confidence} for e in intent.entities
        ],
        "context": intent.context,
        "response_template": intent.response_template,
        "follow_up_actions": list(intent.follow_up_actions),
        "user_id": account.user_id,
        "timestamp": intent.timestamp.isoformat(),
    }
