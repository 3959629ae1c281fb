"""의도 예측.

계정 상태를 보고 사용자가 인사 직후 물어볼 가능성이 높은 의도를 제안합니다.

- 납부 기한 경과 + 잔액 있음 -> OVERDUE_PAYMENT (HIGH)
- 24시간 내 결제 확인 -> RECENT_PAYMENT (MEDIUM)
- 최근 2시간 내 같은 금액 구매가 30분 이내 간격으로 2건 이상 -> DUPLICATE_TRANSACTION (MEDIUM)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from itertools import groupby
from typing import Any, Callable, Dict, List, Optional, Tuple

from src.mock_system.account_service import AccountService, UserAccountContext, get_account_service

logger = logging.getLogger(__name__)

DUPLICATE_LOOKBACK = timedelta(hours=2)
DUPLICATE_GAP = timedelta(minutes=30)
RECENT_PAYMENT_WINDOW = timedelta(hours=24)


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


PRIORITY_ORDER = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


@dataclass(frozen=True)
class IntentPrediction:
    """예측 의도."""

    intent_id: str
    category: str
    predicted_intent: str
    suggested_message: str
    confidence: float
    priority: Priority
    trigger_context: str
    suggested_actions: Tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=datetime.now)
    show_after_greeting: bool = True

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["priority"] = self.priority.value
        data["suggested_actions"] = list(self.suggested_actions)
        data["timestamp"] = self.timestamp.isoformat()
        return data


def check_overdue_payment(ctx: UserAccountContext, now: datetime) -> Optional[IntentPrediction]:
    today = now.date()
    balance = ctx.outstanding_balance or Decimal("0")
    if ctx.due_date is None or ctx.due_date >= today or balance <= 0:
        return None

    days_overdue = (today - ctx.due_date).days
    plural = "s" if days_overdue > 1 else ""
    return IntentPrediction(
        intent_id="OVERDUE_PAYMENT",
        category="PAYMENT",
        predicted_intent="Get Payment Amount",
        suggested_message=(
            f"Looks like your payment is overdue by {days_overdue} day{plural}. "
            "Would you like to check your current outstanding balance?"
        ),
        confidence=0.95,
        priority=Priority.HIGH,
        trigger_context="User is past due date",
        suggested_actions=("Check Balance", "Make Payment", "View Due Date"),
        timestamp=now,
    )


def check_recent_payment(ctx: UserAccountContext, now: datetime) -> Optional[IntentPrediction]:
    if ctx.last_payment_confirmation is None:
        return None
    if now - ctx.last_payment_confirmation > RECENT_PAYMENT_WINDOW:
        return None

    return IntentPrediction(
        intent_id="RECENT_PAYMENT",
        category="BALANCE",
        predicted_intent="Get Updated Credit Balance",
        suggested_message=(
            "I see you made a payment recently. "
            "Would you like to check your updated available credit balance?"
        ),
        confidence=0.85,
        priority=Priority.MEDIUM,
        trigger_context="User received payment confirmation today",
        suggested_actions=("Check Available Credit", "View Payment History", "Account Summary"),
        timestamp=now,
    )


def check_duplicate_transactions(ctx: UserAccountContext, now: datetime) -> Optional[IntentPrediction]:
    cutoff = now - DUPLICATE_LOOKBACK
    purchases = sorted(
        (tx for tx in ctx.recent_transactions or [] if tx.type == "PURCHASE" and tx.timestamp > cutoff),
        key=lambda tx: (tx.amount, tx.timestamp),
    )

    for amount, group in groupby(purchases, key=lambda tx: tx.amount):
        txs = list(group)
        for first, second in zip(txs, txs[1:]):
            if second.timestamp - first.timestamp <= DUPLICATE_GAP:
                return IntentPrediction(
                    intent_id="DUPLICATE_TRANSACTION",
                    category="TRANSACTION",
                    predicted_intent="Check for Duplicate/Cancel Transaction",
                    suggested_message=(
                        f"I noticed you have similar transactions of {amount:,.2f} THB within a short time. "
                        "Would you like to check if this might be a duplicate charge?"
                    ),
                    confidence=0.80,
                    priority=Priority.MEDIUM,
                    trigger_context="User has 2+ similar transaction amounts close in time",
                    suggested_actions=("Review Transactions", "Report Duplicate", "Cancel Transaction"),
                    timestamp=now,
                )
    return None


PREDICTION_CHECKS = (check_overdue_payment, check_recent_payment, check_duplicate_transactions)


class IntentPredictor:
    """계정 상태 기반 의도 예측기."""

    def __init__(
        self,
        account_service: Optional[AccountService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.account_service = account_service or get_account_service()
        self._clock = clock or self.account_service.now

    def predict_intents(self, user_id: Optional[str] = None) -> List[IntentPrediction]:
        """예측 의도 목록 (우선순위 높은 순).

        Args:
            user_id: 사용자 ID (없거나 모르는 ID면 데모 시나리오)
        """
        ctx = self.account_service.get_account_context_or_default(user_id)
        now = self._clock()

        predictions = [p for p in (check(ctx, now) for check in PREDICTION_CHECKS) if p is not None]
        predictions.sort(key=lambda p: PRIORITY_ORDER[p.priority], reverse=True)
        logger.debug(f"의도 예측: user={ctx.user_id}, count={len(predictions)}")
        return predictions

    def get_top_priority_intent(self, user_id: Optional[str] = None) -> Optional[IntentPrediction]:
        """가장 우선순위가 높은 예측 의도 (없으면 None)."""
        predictions = self.predict_intents(user_id)
        return predictions[0] if predictions else None


# 전역 예측기
_predictor: Optional[IntentPredictor] = None


def get_intent_predictor() -> IntentPredictor:
    """전역 예측기 반환."""
    global _predictor
    if _predictor is None:
        _predictor = IntentPredictor()
    return _predictor
