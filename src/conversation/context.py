"""대화 컨텍스트 저장소.

"네/아니오" 형태의 후속 응답을 기다리는 세션별 상태를 메모리에 보관합니다.

- 세션당 컨텍스트는 하나이며, 새로 설정하면 이전 값을 대체합니다.
- 생성 후 TTL(기본 5분)이 지나면 조회 시 제거되고 None을 반환합니다.
- 조회(get)는 비파괴적입니다. 후속 응답을 처리한 쪽에서 clear를 호출합니다.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from src.config import get_config

logger = logging.getLogger(__name__)


class PendingAction(str, Enum):
    """후속 확인을 기다리는 시스템 동작."""

    PAYMENT_CONFIRMATION = "PAYMENT_CONFIRMATION"
    CREDIT_LIMIT_REQUEST = "CREDIT_LIMIT_REQUEST"
    CARD_BLOCK_CONFIRMATION = "CARD_BLOCK_CONFIRMATION"
    DUPLICATE_REPORT_CONFIRMATION = "DUPLICATE_REPORT_CONFIRMATION"
    STATEMENT_REQUEST = "STATEMENT_REQUEST"
    SECURITY_PHONE_CONFIRMATION = "SECURITY_PHONE_CONFIRMATION"
    FURTHER_ASSISTANCE = "FURTHER_ASSISTANCE"


EXPECTED_RESPONSES: List[str] = ["yes", "no", "ok", "sure", "cancel", "maybe"]


@dataclass(frozen=True)
class ConversationContext:
    """세션 컨텍스트."""

    user_id: str
    last_action: str
    last_intent_id: Optional[str] = None
    context_data: str = ""
    expected_responses: List[str] = field(default_factory=lambda: list(EXPECTED_RESPONSES))
    created_at: datetime = field(default_factory=datetime.now)

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.created_at > ttl


def _normalize(message: Optional[str]) -> str:
    return (message or "").lower().strip()


class ContextStore:
    """세션별 대화 컨텍스트 저장소.

    단일 락으로 get/set/clear 각각을 원자적으로 처리합니다.
    """

    def __init__(
        self,
        ttl_minutes: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
        positive_responses: Optional[Iterable[str]] = None,
        negative_responses: Optional[Iterable[str]] = None,
    ):
        """초기화.

        Args:
            ttl_minutes: 컨텍스트 만료 시간(분), 없으면 설정값
            clock: 현재 시각 함수 (테스트에서 주입)
            positive_responses: 긍정 응답 토큰 (없으면 설정값)
            negative_responses: 부정 응답 토큰 (없으면 설정값)
        """
        cfg = get_config().conversation
        self._ttl = timedelta(minutes=ttl_minutes if ttl_minutes is not None else cfg.context_ttl_minutes)
        self._clock = clock
        self._contexts: Dict[str, ConversationContext] = {}
        self._lock = threading.Lock()
        self._positive: FrozenSet[str] = frozenset(
            _normalize(t) for t in (positive_responses or cfg.positive_responses)
        )
        self._negative: FrozenSet[str] = frozenset(
            _normalize(t) for t in (negative_responses or cfg.negative_responses)
        )

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def set(
        self,
        session_id: str,
        action: PendingAction | str,
        intent_id: Optional[str] = None,
        context_data: str = "",
    ) -> ConversationContext:
        """세션 컨텍스트 저장 (기존 값 대체)."""
        context = ConversationContext(
            user_id=session_id,
            last_action=action.value if isinstance(action, PendingAction) else str(action),
            last_intent_id=intent_id,
            context_data=context_data,
            created_at=self._clock(),
        )
        with self._lock:
            self._contexts[session_id] = context
        logger.debug(f"컨텍스트 설정: session={session_id}, action={context.last_action}")
        return context

    def get(self, session_id: str) -> Optional[ConversationContext]:
        """세션 컨텍스트 조회.

        만료된 컨텍스트는 제거 후 None을 반환합니다.
        """
        with self._lock:
            context = self._contexts.get(session_id)
            if context is None:
                return None
            if context.is_expired(self._clock(), self._ttl):
                del self._contexts[session_id]
                logger.debug(f"컨텍스트 만료: session={session_id}")
                return None
            return context

    def clear(self, session_id: str) -> bool:
        """세션 컨텍스트 삭제."""
        with self._lock:
            return self._contexts.pop(session_id, None) is not None

    def refresh(self, session_id: str) -> Optional[ConversationContext]:
        """컨텍스트 생성 시각을 갱신하여 만료 연장."""
        with self._lock:
            context = self._contexts.get(session_id)
            if context is None:
                return None
            refreshed = replace(context, created_at=self._clock())
            self._contexts[session_id] = refreshed
            return refreshed

    def purge_expired(self) -> int:
        """만료된 컨텍스트 일괄 정리."""
        now = self._clock()
        with self._lock:
            expired = [sid for sid, ctx in self._contexts.items() if ctx.is_expired(now, self._ttl)]
            for sid in expired:
                del self._contexts[sid]
        return len(expired)

    def count(self) -> int:
        """저장된 컨텍스트 수 반환."""
        with self._lock:
            return len(self._contexts)

    # 응답 판별
    def is_positive_response(self, message: Optional[str]) -> bool:
        return _normalize(message) in self._positive

    def is_negative_response(self, message: Optional[str]) -> bool:
        return _normalize(message) in self._negative

    def is_simple_response(self, message: Optional[str]) -> bool:
        """확인/거절 형태의 짧은 응답인지 확인."""
        msg = _normalize(message)
        return msg in self._positive or msg in self._negative


# 전역 컨텍스트 저장소
_context_store: Optional[ContextStore] = None


def get_context_store() -> ContextStore:
    """전역 컨텍스트 저장소 반환."""
    global _context_store
    if _context_store is None:
        _context_store = ContextStore()
    return _context_store
