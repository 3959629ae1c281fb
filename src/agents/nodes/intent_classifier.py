"""의도 분류기 모듈.

신용카드 고객지원 메시지를 키워드 규칙으로 분류합니다.

규칙은 (판별 함수, 결과 생성 함수) 쌍의 목록이며 고정된 순서로 평가됩니다.
키워드 집합이 서로 겹치므로(예: "report"는 이의제기, "payment"는 결제 문의)
먼저 매칭된 규칙이 채택됩니다. 결제 문의/거래 이의제기는 계정 컨텍스트에 따라
신뢰도가 보정됩니다.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from src.agents.nodes import entity_extractor
from src.agents.state import ClassifiedIntent, Entity, EntityType
from src.config import get_config
from src.mock_system.account_service import TransactionRecord, UserAccountContext

logger = logging.getLogger(__name__)


# 의도 ID
PAYMENT_INQUIRY = "PAYMENT_INQUIRY"
TRANSACTION_DISPUTE = "TRANSACTION_DISPUTE"
CARD_MANAGEMENT = "CARD_MANAGEMENT"
CREDIT_LIMIT = "CREDIT_LIMIT"
ACCOUNT_SECURITY = "ACCOUNT_SECURITY"
STATEMENT_INQUIRY = "STATEMENT_INQUIRY"
REWARD_POINTS = "REWARD_POINTS"
TECHNICAL_SUPPORT = "TECHNICAL_SUPPORT"
UNRECOGNIZED_INQUIRY = "UNRECOGNIZED_INQUIRY"
GENERAL_INQUIRY = "GENERAL_INQUIRY"


class AccountContextProvider(Protocol):
    """계정 컨텍스트 제공자 인터페이스."""

    def get_account_context(self, user_id: str) -> Optional[UserAccountContext]:
        ...

    def get_default_or_random_account_context(self) -> UserAccountContext:
        ...


Predicate = Callable[[str], bool]
Builder = Callable[[str, Optional[UserAccountContext]], ClassifiedIntent]


def _get_intent_config():
    """의도 분류 설정 로드."""
    return get_config().intents


def _keywords(intent_id: str) -> List[str]:
    return _get_intent_config().keywords.get(intent_id, [])


def contains_keywords(message: str, keywords: Sequence[str]) -> bool:
    """키워드 중 하나라도 부분 문자열로 포함되는지 확인."""
    return any(k in message for k in keywords)


def _keyword_predicate(intent_id: str) -> Predicate:
    def predicate(message: str) -> bool:
        return contains_keywords(message, _keywords(intent_id))

    predicate.__name__ = f"matches_{intent_id.lower()}"
    return predicate


# ============================================
# 계정 컨텍스트 보강
# ============================================

def enhance_account_context(
    account_context: Optional[UserAccountContext],
    provider: AccountContextProvider,
) -> UserAccountContext:
    """분류 전에 계정 컨텍스트를 보강.

    - 컨텍스트가 없으면 제공자의 기본/임의 시나리오 사용
    - 잔액/거래 상세가 없고 사용자 ID가 있으면 ID로 전체 컨텍스트 조회
    - 보강할 수 없으면 원래 컨텍스트 반환
    """
    if account_context is None:
        return provider.get_default_or_random_account_context()

    if not account_context.has_detail() and account_context.user_id:
        full_context = provider.get_account_context(account_context.user_id)
        if full_context is not None:
            return full_context

    return account_context


def has_duplicate_transactions(
    transactions: Optional[Sequence[TransactionRecord]],
    window_minutes: Optional[int] = None,
) -> bool:
    """같은 금액/설명의 거래가 짧은 간격으로 두 번 이상 있는지 확인.

    모든 거래 쌍을 비교합니다.
    """
    if not transactions or len(transactions) < 2:
        return False
    if window_minutes is None:
        window_minutes = _get_intent_config().duplicate_window_minutes

    for i, tx1 in enumerate(transactions):
        for tx2 in transactions[i + 1:]:
            if tx1.amount != tx2.amount:
                continue
            if tx1.description.lower() != tx2.description.lower():
                continue
            minutes_apart = int(abs(tx1.timestamp - tx2.timestamp) // timedelta(minutes=1))
            if minutes_apart <= window_minutes:
                return True
    return False


# ============================================
# 의도별 결과 생성
# ============================================

def _build_payment_inquiry(message: str, ctx: Optional[UserAccountContext]) -> ClassifiedIntent:
    entities: List[Entity] = entity_extractor.extract(EntityType.AMOUNT, message)

    confidence = 0.9
    context_info = "General payment inquiry"
    template = "I can help you with your payment information. Let me check your account details."

    if ctx is not None:
        if ctx.account_status == "OVERDUE":
            confidence = 0.95
            context_info = "User account is overdue - urgent payment needed"
            template = "I see your account is overdue. Let me help you with your payment immediately."
        elif ctx.outstanding_balance is not None and ctx.outstanding_balance > Decimal("0"):
            confidence = 0.92
            context_info = f"User has outstanding balance of {ctx.outstanding_balance:.2f}"
            template = "I can help you with your current balance and payment options."

        if ctx.outstanding_balance is not None:
            entities.append(Entity(EntityType.CURRENT_BALANCE, f"{ctx.outstanding_balance:.2f}", 1.0))

    return ClassifiedIntent(
        intent_id=PAYMENT_INQUIRY,
        category="PAYMENT",
        display_name="Payment and Balance Inquiry",
        confidence=confidence,
        entities=tuple(entities),
        context=context_info,
        response_template=template,
        follow_up_actions=("Show current balance", "Show due date", "Payment options"),
    )


def _build_transaction_dispute(message: str, ctx: Optional[UserAccountContext]) -> ClassifiedIntent:
    cfg = _get_intent_config()
    entities: List[Entity] = entity_extractor.extract(EntityType.MERCHANT, message)

    confidence = 0.95
    context_info = "Potential fraudulent activity"
    template = "I understand you want to dispute a transaction. Let me help you with that immediately."

    if ctx is not None and ctx.recent_transactions is not None:
        if has_duplicate_transactions(ctx.recent_transactions, cfg.duplicate_window_minutes):
            confidence = 0.98
            context_info = "User has duplicate transactions - likely dispute case"
            template = (
                "I see you have similar transactions. "
                "Let me help you identify and dispute any unauthorized charges."
            )

        for tx in ctx.recent_transactions[: cfg.max_recent_transaction_entities]:
            entities.append(
                Entity(EntityType.RECENT_TRANSACTION, f"{tx.description} - {tx.amount:.2f}", 0.9)
            )

    return ClassifiedIntent(
        intent_id=TRANSACTION_DISPUTE,
        category="TRANSACTION",
        display_name="Transaction Dispute",
        confidence=confidence,
        entities=tuple(entities),
        context=context_info,
        response_template=template,
        follow_up_actions=("Identify transaction", "Block card if needed", "File dispute"),
    )


def _build_card_management(message: str, ctx: Optional[UserAccountContext]) -> ClassifiedIntent:
    entities = entity_extractor.extract(EntityType.ACTION, message)
    action = entities[0].value
    return ClassifiedIntent(
        intent_id=CARD_MANAGEMENT,
        category="ACCOUNT",
        display_name="Card Management",
        confidence=0.92,
        entities=tuple(entities),
        context="Card security or replacement needed",
        response_template=f"I'll help you with your card {action}. For security, I need to verify your identity first.",
        follow_up_actions=("Verify identity", "Process card action", "Provide timeline"),
    )


def _build_credit_limit(message: str, ctx: Optional[UserAccountContext]) -> ClassifiedIntent:
    return ClassifiedIntent(
        intent_id=CREDIT_LIMIT,
        category="ACCOUNT",
        display_name="Credit Limit Inquiry",
        confidence=0.88,
        entities=tuple(entity_extractor.extract(EntityType.REQUESTED_AMOUNT, message)),
        context="Credit limit modification request",
        response_template="I can help you with your credit limit. Let me review your account eligibility.",
        follow_up_actions=("Check eligibility", "Show current limit", "Process request"),
    )


def _build_account_security(message: str, ctx: Optional[UserAccountContext]) -> ClassifiedIntent:
    return ClassifiedIntent(
        intent_id=ACCOUNT_SECURITY,
        category="SECURITY",
        display_name="Account Security Concern",
        confidence=0.96,
        context="Security threat detected",
        response_template="I take security very seriously. Let me immediately secure your account and investigate.",
        follow_up_actions=("Secure account", "Review recent activity", "Update security"),
    )


def _build_statement_inquiry(message: str, ctx: Optional[UserAccountContext]) -> ClassifiedIntent:
    return ClassifiedIntent(
        intent_id=STATEMENT_INQUIRY,
        category="ACCOUNT",
        display_name="Statement and History Request",
        confidence=0.85,
        entities=tuple(entity_extractor.extract(EntityType.MONTH, message)),
        context="Statement or transaction history needed",
        response_template="I can provide your statement and transaction history. What time period do you need?",
        follow_up_actions=("Specify date range", "Generate statement", "Send via email"),
    )


def _build_reward_points(message: str, ctx: Optional[UserAccountContext]) -> ClassifiedIntent:
    return ClassifiedIntent(
        intent_id=REWARD_POINTS,
        category="REWARDS",
        display_name="Reward Points Inquiry",
        confidence=0.83,
        context="Rewards program inquiry",
        response_template="I can help you with your reward points and redemption options.",
        follow_up_actions=("Show points balance", "Redemption options", "Points history"),
    )


def _build_technical_support(message: str, ctx: Optional[UserAccountContext]) -> ClassifiedIntent:
    return ClassifiedIntent(
        intent_id=TECHNICAL_SUPPORT,
        category="SUPPORT",
        display_name="Technical Support",
        confidence=0.80,
        context="Technical assistance needed",
        response_template="I'll help you resolve this technical issue. Can you describe what's happening?",
        follow_up_actions=("Troubleshoot issue", "Reset credentials", "Escalate if needed"),
    )


def create_fallback_intent() -> ClassifiedIntent:
    """인식 실패 시 폴백 의도."""
    cfg = _get_intent_config()
    return ClassifiedIntent(
        intent_id=cfg.fallback_intent,
        category="SUPPORT",
        display_name="Unrecognized Inquiry",
        confidence=cfg.fallback_confidence,
        context="User message not understood",
        response_template="I'm sorry, I didn't understand that. Let me show you what I can help with.",
        follow_up_actions=("Show available services", "Ask for clarification"),
    )


# 평가 순서가 곧 우선순위 (변경 금지)
INTENT_RULES: Tuple[Tuple[str, Predicate, Builder], ...] = (
    (REWARD_POINTS, _keyword_predicate(REWARD_POINTS), _build_reward_points),
    (TRANSACTION_DISPUTE, _keyword_predicate(TRANSACTION_DISPUTE), _build_transaction_dispute),
    (CARD_MANAGEMENT, _keyword_predicate(CARD_MANAGEMENT), _build_card_management),
    (CREDIT_LIMIT, _keyword_predicate(CREDIT_LIMIT), _build_credit_limit),
    (ACCOUNT_SECURITY, _keyword_predicate(ACCOUNT_SECURITY), _build_account_security),
    (STATEMENT_INQUIRY, _keyword_predicate(STATEMENT_INQUIRY), _build_statement_inquiry),
    (PAYMENT_INQUIRY, _keyword_predicate(PAYMENT_INQUIRY), _build_payment_inquiry),
    (TECHNICAL_SUPPORT, _keyword_predicate(TECHNICAL_SUPPORT), _build_technical_support),
)


def classify(
    utterance: Optional[str],
    account_context: Optional[UserAccountContext] = None,
) -> ClassifiedIntent:
    """메시지를 의도로 분류.

    Args:
        utterance: 사용자 메시지 (None/빈 문자열이면 폴백)
        account_context: 신뢰도 보정에 사용할 계정 컨텍스트 (선택)

    Returns:
        ClassifiedIntent
    """
    message = (utterance or "").lower().strip()
    if not message:
        return create_fallback_intent()

    for intent_id, predicate, builder in INTENT_RULES:
        if predicate(message):
            result = builder(message, account_context)
            logger.debug(f"의도 분류: {result.intent_id} (confidence: {result.confidence})")
            return result

    logger.debug("키워드 매칭 실패, 폴백 의도 반환")
    return create_fallback_intent()
