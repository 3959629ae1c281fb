"""정규식 기반 엔티티 추출기.

금액, 가맹점, 월, 카드 조치 유형을 메시지에서 추출합니다.
모든 함수는 부수효과가 없으며 매칭이 없으면 빈 리스트를 반환합니다.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Tuple

from src.agents.state import Entity, EntityType

# 1,000 / 1,000.00 / 250 형태의 금액
AMOUNT_PATTERN = re.compile(r"\b\d{1,3}(?:,\d{3})*(?:\.\d{2})?\b")
MERCHANT_PATTERN = re.compile(r"(?:at|from)\s+([A-Za-z\s]+)")

MONTHS: Tuple[str, ...] = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

# (키워드 목록, 조치) - 순서대로 평가
CARD_ACTIONS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("block", "lost", "stolen"), "block"),
    (("replace", "new card"), "replace"),
    (("activate",), "activate"),
    (("cancel",), "cancel"),
)
DEFAULT_CARD_ACTION = "manage"


def _normalize(text: Optional[str]) -> str:
    return (text or "").lower().strip()


def _extract_amount(text: str, entity_type: EntityType, confidence: float) -> List[Entity]:
    match = AMOUNT_PATTERN.search(text)
    if not match:
        return []
    return [Entity(entity_type, match.group(0), confidence)]


def extract_amount(text: Optional[str]) -> List[Entity]:
    """결제 문맥의 금액 추출 (confidence 0.9)."""
    return _extract_amount(_normalize(text), EntityType.AMOUNT, 0.9)


def extract_requested_amount(text: Optional[str]) -> List[Entity]:
    """한도 증액 문맥의 요청 금액 추출 (confidence 0.85)."""
    return _extract_amount(_normalize(text), EntityType.REQUESTED_AMOUNT, 0.85)


def extract_merchant(text: Optional[str]) -> List[Entity]:
    """'at'/'from' 뒤의 가맹점명 추출."""
    match = MERCHANT_PATTERN.search(_normalize(text))
    if not match:
        return []
    merchant = match.group(1).strip()
    if not merchant:
        return []
    return [Entity(EntityType.MERCHANT, merchant, 0.8)]


def extract_month(text: Optional[str]) -> List[Entity]:
    """달력 순서로 처음 발견되는 월 이름 추출."""
    message = _normalize(text)
    for month in MONTHS:
        if month in message:
            return [Entity(EntityType.MONTH, month, 0.9)]
    return []


def determine_card_action(text: Optional[str]) -> str:
    """카드 조치 유형 판별 (기본값 manage)."""
    message = _normalize(text)
    for keywords, action in CARD_ACTIONS:
        if any(k in message for k in keywords):
            return action
    return DEFAULT_CARD_ACTION


def extract_action(text: Optional[str]) -> List[Entity]:
    """카드 관리 조치 엔티티 (항상 1개)."""
    return [Entity(EntityType.ACTION, determine_card_action(text), 0.9)]


_EXTRACTORS: Dict[EntityType, Callable[[Optional[str]], List[Entity]]] = {
    EntityType.AMOUNT: extract_amount,
    EntityType.REQUESTED_AMOUNT: extract_requested_amount,
    EntityType.MERCHANT: extract_merchant,
    EntityType.MONTH: extract_month,
    EntityType.ACTION: extract_action,
}


def extract(kind: EntityType | str, text: Optional[str]) -> List[Entity]:
    """엔티티 유형별 추출.

    Args:
        kind: 추출할 엔티티 유형
        text: 원문 메시지

    Returns:
        추출된 엔티티 리스트 (지원하지 않는 유형이거나 매칭이 없으면 빈 리스트)
    """
    if not text:
        return []
    try:
        entity_type = EntityType(kind)
    except ValueError:
        return []
    extractor = _EXTRACTORS.get(entity_type)
    if extractor is None:
        return []
    return extractor(text)
