"""대화 처리 상태 모델.

의도 분류 결과, 추출 엔티티, 오케스트레이터 처리 결과를 정의합니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from src.conversation.context import ConversationContext


class EntityType(str, Enum):
    """추출 엔티티 유형."""

    AMOUNT = "AMOUNT"
    MERCHANT = "MERCHANT"
    MONTH = "MONTH"
    ACTION = "ACTION"
    CURRENT_BALANCE = "CURRENT_BALANCE"
    REQUESTED_AMOUNT = "REQUESTED_AMOUNT"
    RECENT_TRANSACTION = "RECENT_TRANSACTION"


class DialogueBranch(str, Enum):
    """오케스트레이터가 메시지를 처리한 분기."""

    GREETING = "greeting"
    FOLLOW_UP = "follow_up"
    SHORTCUT = "shortcut"
    CLASSIFIED = "classified"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Entity:
    """메시지에서 추출한 엔티티."""

    type: EntityType
    value: str
    confidence: float


@dataclass(frozen=True)
class ClassifiedIntent:
    """의도 분류 결과.

    분류 호출마다 새로 생성되며 반환 후에는 변경되지 않습니다.
    """

    intent_id: str
    category: str
    display_name: str
    confidence: float
    entities: Tuple[Entity, ...] = ()
    context: str = ""
    response_template: str = ""
    follow_up_actions: Tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=datetime.now)

    def first_entity(self, *types: EntityType) -> Optional[Entity]:
        """주어진 유형 중 처음 나타나는 엔티티 반환."""
        for entity in self.entities:
            if entity.type in types:
                return entity
        return None

    def entity_value(self, *types: EntityType, default: Optional[str] = None) -> Optional[str]:
        """주어진 유형 중 처음 나타나는 엔티티 값 반환."""
        entity = self.first_entity(*types)
        return entity.value if entity else default


@dataclass
class DialogueResult:
    """메시지 처리 결과."""

    reply_text: str
    branch: DialogueBranch
    updated_context: Optional["ConversationContext"] = None
    intent: Optional[ClassifiedIntent] = None
