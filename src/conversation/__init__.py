"""대화 상태 모듈.

후속 응답 대기 컨텍스트 저장소와 인사 메시지 생성을 제공합니다.
"""

from .context import (
    ContextStore,
    ConversationContext,
    PendingAction,
    get_context_store,
)
from .greeting import Greeting, GreetingService, get_time_of_day, is_greeting

__all__ = [
    "ContextStore",
    "ConversationContext",
    "PendingAction",
    "get_context_store",
    "Greeting",
    "GreetingService",
    "get_time_of_day",
    "is_greeting",
]
