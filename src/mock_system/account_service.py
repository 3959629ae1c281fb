"""메모리 기반 카드 계정 Mock 서비스.

설계 요약
- 시나리오: 연체(user_overdue), 최근 결제(user_recent_payment),
  중복 거래(user_duplicate_transactions), 일반(user_normal) 4종을 제공합니다.
- 날짜/시간은 서비스 생성 시점의 시계를 기준으로 계산합니다(결정적 테스트를 위해 주입 가능).
- 코어는 반환된 계정 컨텍스트를 읽기만 합니다.

주의
- 사용자 ID를 모르는 경우 데모 목적으로 임의 시나리오를 반환합니다.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from src.core.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionRecord:
    transaction_id: str
    amount: Decimal
    timestamp: datetime
    type: str  # PAYMENT | PURCHASE | REFUND
    status: str  # PENDING | COMPLETED | FAILED
    description: str


@dataclass(frozen=True)
class UserAccountContext:
    user_id: Optional[str]
    outstanding_balance: Optional[Decimal] = None
    due_date: Optional[date] = None
    available_credit: Optional[Decimal] = None
    credit_limit: Optional[Decimal] = None
    account_status: str = "ACTIVE"  # ACTIVE | OVERDUE | SUSPENDED
    last_payment_confirmation: Optional[datetime] = None
    recent_transactions: List[TransactionRecord] = field(default_factory=list)

    def has_detail(self) -> bool:
        """잔액/거래 상세가 채워져 있는지 여부."""
        return self.outstanding_balance is not None and bool(self.recent_transactions)


def _tx(tx_id: str, amount: str, ts: datetime, tx_type: str, description: str) -> TransactionRecord:
    return TransactionRecord(
        transaction_id=tx_id,
        amount=Decimal(amount),
        timestamp=ts,
        type=tx_type,
        status="COMPLETED",
        description=description,
    )


def build_demo_accounts(now: datetime) -> Dict[str, UserAccountContext]:
    """데모 시나리오 계정 생성."""
    today = now.date()
    return {
        # 시나리오 1: 결제일이 지난 연체 사용자
        "user_overdue": UserAccountContext(
            user_id="user_overdue",
            outstanding_balance=Decimal("120000.00"),
            due_date=today - timedelta(days=45),
            available_credit=Decimal("80000.00"),
            credit_limit=Decimal("200000.00"),
            account_status="OVERDUE",
            last_payment_confirmation=now - timedelta(days=62),
            recent_transactions=[
                _tx("TXN001", "50000.00", now - timedelta(days=52), "PURCHASE", "Online shopping"),
                _tx("TXN002", "70000.00", now - timedelta(days=49), "PURCHASE", "Electronics store"),
            ],
        ),
        # 시나리오 2: 오늘 결제 확인을 받은 사용자
        "user_recent_payment": UserAccountContext(
            user_id="user_recent_payment",
            outstanding_balance=Decimal("25000.00"),
            due_date=today + timedelta(days=14),
            available_credit=Decimal("175000.00"),
            credit_limit=Decimal("200000.00"),
            account_status="ACTIVE",
            last_payment_confirmation=now - timedelta(hours=2),
            recent_transactions=[
                _tx("TXN003", "95000.00", now - timedelta(hours=3), "PAYMENT", "Credit card payment"),
                _tx("TXN004", "15000.00", now - timedelta(days=1), "PURCHASE", "Restaurant"),
            ],
        ),
        # 시나리오 3: 짧은 간격의 중복 거래가 있는 사용자
        "user_duplicate_transactions": UserAccountContext(
            user_id="user_duplicate_transactions",
            outstanding_balance=Decimal("45000.00"),
            due_date=today + timedelta(days=19),
            available_credit=Decimal("155000.00"),
            credit_limit=Decimal("200000.00"),
            account_status="ACTIVE",
            last_payment_confirmation=now - timedelta(days=38),
            recent_transactions=[
                _tx("TXN005", "12500.00", now - timedelta(minutes=15), "PURCHASE", "Online subscription"),
                _tx("TXN006", "12500.00", now - timedelta(minutes=8), "PURCHASE", "Online subscription"),
                _tx("TXN007", "8000.00", now - timedelta(hours=1), "PURCHASE", "Grocery store"),
            ],
        ),
        # 시나리오 4: 특이사항 없는 일반 사용자
        "user_normal": UserAccountContext(
            user_id="user_normal",
            outstanding_balance=Decimal("35000.00"),
            due_date=today + timedelta(days=24),
            available_credit=Decimal("165000.00"),
            credit_limit=Decimal("200000.00"),
            account_status="ACTIVE",
            last_payment_confirmation=now - timedelta(days=43),
            recent_transactions=[
                _tx("TXN008", "5000.00", now - timedelta(days=2), "PURCHASE", "Coffee shop"),
                _tx("TXN009", "18000.00", now - timedelta(days=5), "PURCHASE", "Gas station"),
            ],
        ),
    }


class AccountService:
    """계정 컨텍스트 Mock 서비스."""

    def __init__(
        self,
        accounts: Optional[Dict[str, UserAccountContext]] = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._clock = clock
        self._accounts: Dict[str, UserAccountContext] = (
            dict(accounts) if accounts is not None else build_demo_accounts(clock())
        )
        self._rng = rng or random.Random()

    @property
    def user_ids(self) -> List[str]:
        return list(self._accounts.keys())

    def now(self) -> datetime:
        return self._clock()

    def get_account_context(self, user_id: str) -> Optional[UserAccountContext]:
        """사용자 ID로 계정 컨텍스트 조회 (없으면 None)."""
        return self._accounts.get(user_id)

    def get_default_or_random_account_context(self) -> UserAccountContext:
        """데모용 임의 시나리오 반환.

        Raises:
            ServiceUnavailableError: 등록된 시나리오가 없는 경우 (설정 오류)
        """
        if not self._accounts:
            raise ServiceUnavailableError("No demo account scenarios are configured")
        user_id = self._rng.choice(sorted(self._accounts))
        logger.debug(f"임의 계정 시나리오 선택: {user_id}")
        return self._accounts[user_id]

    def get_account_context_or_default(self, user_id: Optional[str]) -> UserAccountContext:
        """사용자 ID로 조회하고, 없으면 임의 시나리오 반환."""
        if user_id:
            ctx = self.get_account_context(user_id)
            if ctx is not None:
                return ctx
        return self.get_default_or_random_account_context()


# 싱글톤 서비스
_account_service: Optional[AccountService] = None


def get_account_service() -> AccountService:
    """계정 서비스 반환."""
    global _account_service
    if _account_service is None:
        _account_service = AccountService()
    return _account_service
