"""의도별 응답 생성기.

분류된 의도와 계정 컨텍스트를 고객 응답 문장으로 변환합니다.
참조 번호(DSP-/BLK-/SEC-/DUP-)는 표시용이며 저장되지 않습니다.
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, Optional

from src.agents.nodes import intent_classifier as ic
from src.agents.state import ClassifiedIntent, EntityType
from src.config import get_config
from src.mock_system.account_service import AccountService, UserAccountContext, get_account_service

logger = logging.getLogger(__name__)

CURRENCY = "THB"
MINIMUM_PAYMENT_RATE = Decimal("0.05")
POINT_CASH_VALUE = 0.01

SERVICES_MENU = (
    "• Account & Payments: Check balance, due dates, payment options\n"
    "• Security: Report fraud, block cards, dispute transactions\n"
    "• Statements: Transaction history, monthly statements\n"
    "• Credit: Limit increases, available credit\n"
    "• Rewards: Points balance, redemption options\n"
    "• Support: Technical issues, account access\n"
)

UNRECOGNIZED_MESSAGE = (
    "I'm sorry, I didn't quite understand that. Let me help you with what I can do!\n\n"
    "I can assist you with:\n"
    + SERVICES_MENU
    + "\nCould you please rephrase your question or let me know which of these areas you'd like help with?"
)

GENERAL_MESSAGE = (
    "I'm here to help with all your credit card needs! I can assist you with:\n\n"
    "• Account & Payments: Balance, due dates, payment options\n"
    "• Security: Report fraud, block cards, dispute transactions\n"
    "• Statements: Transaction history, monthly statements\n"
    "• Credit: Limit increases, available credit\n"
    "• Rewards: Points balance, redemption options\n"
    "• Support: Technical issues, account access\n\n"
    "What would you like help with today?"
)


def format_amount(amount: Optional[Decimal]) -> str:
    """천 단위 구분자와 소수점 두 자리로 포맷."""
    return f"{Decimal(amount or 0):,.2f}"


def format_long_date(d: date) -> str:
    """'October 25, 2026' 형식."""
    return f"{d:%B} {d.day}, {d.year}"


def make_reference(prefix: str, now: Optional[datetime] = None) -> str:
    """PREFIX-NNNNN 형식의 표시용 참조 번호."""
    now = now or datetime.now()
    millis = int(now.timestamp() * 1000)
    return f"{prefix}-{millis % 100000:05d}"


class ResponseGenerator:
    """의도별 응답 생성기."""

    def __init__(
        self,
        account_service: Optional[AccountService] = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ):
        self.account_service = account_service or get_account_service()
        self._clock = clock
        self._rng = rng or random.Random()
        self._handlers: Dict[str, Callable[[ClassifiedIntent, Optional[UserAccountContext]], str]] = {
            ic.PAYMENT_INQUIRY: self._payment_inquiry,
            ic.TRANSACTION_DISPUTE: self._transaction_dispute,
            ic.CARD_MANAGEMENT: self._card_management,
            ic.CREDIT_LIMIT: self._credit_limit,
            ic.ACCOUNT_SECURITY: self._account_security,
            ic.STATEMENT_INQUIRY: self._statement_inquiry,
            ic.REWARD_POINTS: self._reward_points,
            ic.TECHNICAL_SUPPORT: self._technical_support,
            ic.UNRECOGNIZED_INQUIRY: self._unrecognized,
            ic.GENERAL_INQUIRY: self._general,
        }

    def generate(self, intent: ClassifiedIntent, account_context: Optional[UserAccountContext] = None) -> str:
        """의도에 맞는 응답 문장 생성."""
        handler = self._handlers.get(intent.intent_id, self._unrecognized)
        return handler(intent, account_context)

    def _demo_account(self, ctx: Optional[UserAccountContext], user_id: str) -> UserAccountContext:
        if ctx is not None:
            return ctx
        return self.account_service.get_account_context_or_default(user_id)

    def _payment_inquiry(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        ctx = self._demo_account(ctx, get_config().conversation.demo_overdue_user)
        balance = ctx.outstanding_balance or Decimal("0")
        today = self._clock().date()

        if balance <= 0:
            next_statement = today + timedelta(days=15)
            return (
                "Great news! Your account has a zero balance. "
                f"Your next statement will be generated on {format_long_date(next_statement)}."
            )

        due_text = format_long_date(ctx.due_date) if ctx.due_date else "your next due date"
        if ctx.due_date and ctx.due_date < today:
            return (
                f"Your current outstanding balance is {format_amount(balance)} {CURRENCY}, "
                f"and it was due on {due_text}. "
                "To avoid additional late fees, I recommend making a payment as soon as possible. "
                "Would you like me to help you set up a payment?"
            )
        minimum = balance * MINIMUM_PAYMENT_RATE
        return (
            f"Your current outstanding balance is {format_amount(balance)} {CURRENCY}, due on {due_text}. "
            f"The minimum payment required is {format_amount(minimum)} {CURRENCY}. "
            "Would you like to make a payment now?"
        )

    def _transaction_dispute(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        merchant = intent.entity_value(EntityType.MERCHANT)
        amount = intent.entity_value(EntityType.AMOUNT, EntityType.REQUESTED_AMOUNT)

        parts = ["I understand you want to dispute a transaction. This is a serious matter and I'll help you immediately. "]
        if merchant and amount:
            parts.append(f"I see you're referring to a charge from {merchant} for {amount} {CURRENCY}. ")
        parts.append("For your security, I'm temporarily blocking your card to prevent any additional unauthorized charges. ")
        parts.append(f"I've initiated a dispute case (Reference: {make_reference('DSP', self._clock())}). ")
        parts.append("You'll receive a provisional credit within 2 business days while we investigate. ")
        parts.append("A new card will be expedited to you within 24 hours. Is there anything else I can help secure?")
        return "".join(parts)

    def _card_management(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        action = intent.entity_value(EntityType.ACTION, default="manage")

        if action == "block":
            return (
                "I've immediately blocked your card for security. No new transactions can be processed. "
                "A replacement card will be expedited to your registered address and should arrive within 1-2 business days. "
                "For urgent needs, you can visit any of our branches for a temporary card. "
                f"Reference number: {make_reference('BLK', self._clock())}"
            )
        if action == "replace":
            return (
                "I'll order a replacement card for you right away. Your current card will remain active until you receive "
                "and activate the new one. The new card will arrive at your registered address within 3-5 business days. "
                "Would you like to update your address or expedite delivery for an additional fee?"
            )
        if action == "activate":
            return (
                "I can help you activate your new card. For security, I'll need to verify the last 4 digits of your new card "
                "and the 3-digit security code. Once activated, your old card will be automatically deactivated. "
                "Please have your new card ready."
            )
        if action == "cancel":
            return (
                "I understand you want to cancel your card. Before I proceed, I want to make sure this is what you need. "
                "Canceling will close your account permanently. If you're concerned about security, I can block the card instead. "
                "If you're sure about canceling, I'll need to transfer you to our retention specialist."
            )
        return (
            "I can help you with various card services including blocking, replacement, activation, or cancellation. "
            "What specific action would you like me to take with your card?"
        )

    def _credit_limit(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        ctx = self._demo_account(ctx, get_config().conversation.demo_normal_user)
        requested = intent.entity_value(EntityType.REQUESTED_AMOUNT, EntityType.AMOUNT)

        parts = [
            f"Your current credit limit is {format_amount(ctx.credit_limit)} {CURRENCY} "
            f"with {format_amount(ctx.available_credit)} {CURRENCY} available. "
        ]
        if requested:
            parts.append(f"I see you're interested in increasing your limit to {requested} {CURRENCY}. ")
        parts.append("Based on your account history and payment behavior, you may be eligible for a credit limit increase. ")
        parts.append("I can submit a request for review, which typically takes 2-3 business days. ")
        parts.append("The decision is based on your credit score, income, and payment history. ")
        parts.append("Would you like me to submit this request for you?")
        return "".join(parts)

    def _account_security(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        return (
            "🚨 SECURITY ALERT: I'm taking immediate action to protect your account. "
            "I've temporarily locked your card and flagged your account for security review. "
            "Our fraud team will contact you within 30 minutes at your registered phone number. "
            "In the meantime, please do NOT share any account information with anyone. "
            "If you receive any suspicious calls claiming to be from us, hang up and call our official number. "
            f"Your security reference number is: {make_reference('SEC', self._clock())}. "
            "Is your registered phone number still current?"
        )

    def _statement_inquiry(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        month = intent.entity_value(EntityType.MONTH)
        parts = ["I can provide your statement and transaction history. "]
        if month:
            parts.append(f"I see you're looking for {month.capitalize()}'s statement. ")
        parts.append(
            "I can generate statements for the past 24 months.\n\n"
            "Would you like me to:\n"
            "• Email your latest statement\n"
            "• Show recent transactions (last 30 days)\n"
            "• Generate a custom date range report\n"
            "• Set up automatic monthly statement delivery\n\n"
            "Which option would be most helpful?"
        )
        return "".join(parts)

    def _reward_points(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        # Mock 포인트 데이터
        points = 15750 + self._rng.randrange(10000)
        cash_value = points * POINT_CASH_VALUE
        earned = 450 + self._rng.randrange(200)
        return (
            f"Your current reward points balance is {points:,} points (worth approximately {cash_value:,.2f} {CURRENCY}).\n\n"
            "Here are your redemption options:\n"
            "• Cash Back: Redeem points for statement credit\n"
            "• Shopping: Use points at partner merchants\n"
            "• Travel: Convert to airline miles or hotel points\n"
            "• Gifts: Redeem from our rewards catalog\n\n"
            f"You've earned {earned} points this month from your purchases. "
            "Would you like to redeem points or learn about earning more rewards?"
        )

    def _technical_support(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        return (
            "I'm sorry you're experiencing technical difficulties. Let me help you troubleshoot:\n\n"
            "Quick fixes to try:\n"
            "• Clear your browser cache or restart the mobile app\n"
            "• Check your internet connection\n"
            "• Try using a different browser or device\n"
            "• Update the app to the latest version\n\n"
            "If these don't work, I can:\n"
            "• Reset your login credentials\n"
            "• Guide you through step-by-step troubleshooting\n"
            "• Connect you with our technical support team\n\n"
            "What specific issue are you experiencing?"
        )

    def _unrecognized(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        return UNRECOGNIZED_MESSAGE

    def _general(self, intent: ClassifiedIntent, ctx: Optional[UserAccountContext]) -> str:
        return GENERAL_MESSAGE
