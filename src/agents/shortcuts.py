"""예측 의도 응답 단축 경로.

인사 후 표시되는 예측 의도 버튼("Check Balance" 등)의 문구를
분류기 없이 바로 처리합니다. 분류기 응답과는 문구가 다릅니다.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from src.config import get_config
from src.mock_system.account_service import AccountService

logger = logging.getLogger(__name__)

PAYMENT_PHRASES = ("get payment amount", "check balance", "payment")
CREDIT_PHRASES = ("get updated credit balance", "check available credit", "credit balance")
DUPLICATE_PHRASES = ("check for duplicate", "duplicate transaction", "cancel transaction")
REPORT_PHRASES = ("report duplicate", "report this", "duplicate charge")

NO_MENU_MESSAGE = (
    "No problem! I'm here to help with whatever you need. You can ask me about:\n"
    "• Account information and balances\n"
    "• Payment history and due dates\n"
    "• Transaction details and reports\n"
    "• Credit limit and available credit\n"
    "\nWhat would you like to know about?"
)

REPORT_FILED_MESSAGE = (
    "I've initiated a duplicate transaction report for you. Our fraud team will review the transactions "
    "and contact you within 2-3 business days. You'll receive an email confirmation shortly with your "
    "case reference number."
)


def _contains_any(message: str, phrases: Tuple[str, ...]) -> bool:
    return any(p in message for p in phrases)


def _payment_amount(accounts: AccountService) -> Optional[str]:
    ctx = accounts.get_account_context(get_config().conversation.demo_overdue_user)
    if ctx is None or ctx.outstanding_balance is None:
        return None
    due = ctx.due_date.isoformat() if ctx.due_date else "not set"
    return f"Your current outstanding balance is {ctx.outstanding_balance:,.2f} THB, and your due date was {due}."


def _credit_balance(accounts: AccountService) -> Optional[str]:
    ctx = accounts.get_account_context(get_config().conversation.demo_recent_payment_user)
    if ctx is None or ctx.available_credit is None or ctx.credit_limit is None:
        return None
    return (
        f"Your available credit is {ctx.available_credit:,.2f} THB "
        f"out of {ctx.credit_limit:,.2f} THB total credit limit."
    )


def _duplicate_transaction(accounts: AccountService) -> Optional[str]:
    ctx = accounts.get_account_context(get_config().conversation.demo_duplicate_user)
    if ctx is None or not ctx.recent_transactions:
        return None
    tx = ctx.recent_transactions[0]
    return (
        f"I found duplicate transactions of {tx.amount:,.2f} THB. Transaction ID: {tx.transaction_id}. "
        "Would you like me to help you report this as a duplicate charge?"
    )


def _overdue_summary(accounts: AccountService) -> Optional[str]:
    ctx = accounts.get_account_context(get_config().conversation.demo_overdue_user)
    if ctx is None or ctx.outstanding_balance is None or ctx.due_date is None:
        return None
    due = f"{ctx.due_date.day} {ctx.due_date:%B %Y}"
    return f"Your current outstanding balance is {ctx.outstanding_balance:,.0f} THB, and your due date was {due}."


# (판별 함수, 응답 함수) - 순서대로 평가
SHORTCUTS: Tuple[Tuple[Callable[[str], bool], Callable[[AccountService], Optional[str]]], ...] = (
    (lambda m: _contains_any(m, PAYMENT_PHRASES), _payment_amount),
    (lambda m: _contains_any(m, CREDIT_PHRASES), _credit_balance),
    (lambda m: _contains_any(m, DUPLICATE_PHRASES), _duplicate_transaction),
    (lambda m: m == "yes", _overdue_summary),
    (lambda m: m == "no", lambda accounts: NO_MENU_MESSAGE),
    (lambda m: _contains_any(m, REPORT_PHRASES), lambda accounts: REPORT_FILED_MESSAGE),
)


def handle_shortcut(message: Optional[str], accounts: AccountService) -> Optional[str]:
    """단축 경로 응답 반환.

    매칭된 단축 경로가 응답을 만들지 못하면(데모 계정 없음 등)
    다음 단축 경로를 계속 확인합니다. 해당 없으면 None.
    """
    normalized = (message or "").lower().strip()
    if not normalized:
        return None

    for matches, respond in SHORTCUTS:
        if matches(normalized):
            reply = respond(accounts)
            if reply is not None:
                logger.debug(f"단축 경로 처리: {normalized[:30]}")
                return reply
    return None
