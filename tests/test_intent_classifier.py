"""의도 분류기 테스트."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from src.agents.nodes import intent_classifier as ic
from src.agents.nodes.intent_classifier import (
    INTENT_RULES,
    classify,
    contains_keywords,
    create_fallback_intent,
    enhance_account_context,
    has_duplicate_transactions,
)
from src.agents.state import EntityType
from src.mock_system.account_service import TransactionRecord, UserAccountContext


def _tx(tx_id: str, amount: str, ts: datetime, description: str) -> TransactionRecord:
    return TransactionRecord(tx_id, Decimal(amount), ts, "PURCHASE", "COMPLETED", description)


class TestRuleOrder:
    """규칙 평가 순서 테스트."""

    def test_rule_order_is_fixed(self):
        assert [rule[0] for rule in INTENT_RULES] == [
            ic.REWARD_POINTS,
            ic.TRANSACTION_DISPUTE,
            ic.CARD_MANAGEMENT,
            ic.CREDIT_LIMIT,
            ic.ACCOUNT_SECURITY,
            ic.STATEMENT_INQUIRY,
            ic.PAYMENT_INQUIRY,
            ic.TECHNICAL_SUPPORT,
        ]

    def test_rewards_beats_payment(self):
        # "points"(보상)가 "payment"(결제)보다 먼저 평가됨
        result = classify("can I use points for my payment")
        assert result.intent_id == ic.REWARD_POINTS
        assert result.confidence == 0.83

    def test_dispute_beats_security(self):
        # "fraud"는 이의제기 키워드로 먼저 매칭됨
        result = classify("I want to set a fraud alert")
        assert result.intent_id == ic.TRANSACTION_DISPUTE

    def test_statement_beats_payment(self):
        result = classify("show my payment history")
        assert result.intent_id == ic.STATEMENT_INQUIRY
        assert result.confidence == 0.85


class TestClassifyBasic:
    """기본 분류 테스트."""

    def test_dispute_keyword(self):
        result = classify("There is an unauthorized charge on my card")
        assert result.intent_id == ic.TRANSACTION_DISPUTE
        assert result.confidence >= 0.95

    def test_card_stolen_block(self):
        result = classify("My card was stolen, I need to block it")
        assert result.intent_id == ic.CARD_MANAGEMENT
        assert result.confidence == 0.92
        assert result.entity_value(EntityType.ACTION) == "block"

    def test_credit_limit_requested_amount(self):
        result = classify("Please increase limit to 250,000")
        assert result.intent_id == ic.CREDIT_LIMIT
        assert result.confidence == 0.88
        assert result.entity_value(EntityType.REQUESTED_AMOUNT) == "250,000"

    def test_account_security(self):
        result = classify("I think my account was hacked")
        assert result.intent_id == ic.ACCOUNT_SECURITY
        assert result.confidence == 0.96

    def test_statement_month(self):
        result = classify("I need my statement for january")
        assert result.intent_id == ic.STATEMENT_INQUIRY
        assert result.entity_value(EntityType.MONTH) == "january"

    def test_technical_support(self):
        result = classify("I forgot my password")
        assert result.intent_id == ic.TECHNICAL_SUPPORT
        assert result.confidence == 0.80

    def test_case_and_whitespace_insensitive(self):
        result = classify("   REDEEM my Rewards   ")
        assert result.intent_id == ic.REWARD_POINTS

    def test_unrecognized(self):
        result = classify("what is the meaning of life")
        assert result.intent_id == ic.UNRECOGNIZED_INQUIRY
        assert result.confidence == 0.3

    @pytest.mark.parametrize("utterance", [None, "", "   "])
    def test_empty_input_falls_back(self, utterance):
        result = classify(utterance)
        assert result.intent_id == ic.UNRECOGNIZED_INQUIRY
        assert result.confidence == 0.3

    def test_result_is_immutable(self):
        result = classify("check my balance")
        with pytest.raises(Exception):
            result.confidence = 1.0


class TestPaymentConfidence:
    """결제 문의 신뢰도 보정 테스트."""

    def test_no_context(self):
        result = classify("when is my payment due date")
        assert result.intent_id == ic.PAYMENT_INQUIRY
        assert result.confidence == 0.9
        assert result.first_entity(EntityType.CURRENT_BALANCE) is None

    def test_overdue_account(self, overdue_account):
        result = classify("What's my current balance?", overdue_account)
        assert result.intent_id == ic.PAYMENT_INQUIRY
        assert result.confidence == 0.95
        balance = result.first_entity(EntityType.CURRENT_BALANCE)
        assert balance is not None
        assert balance.value == "120000.00"
        assert balance.confidence == 1.0

    def test_active_account_with_balance(self, normal_account):
        result = classify("check my balance", normal_account)
        assert result.confidence == 0.92
        assert "35000.00" in result.context

    def test_zero_balance(self):
        ctx = UserAccountContext(user_id="u1", outstanding_balance=Decimal("0"))
        result = classify("how much do I owe", ctx)
        assert result.confidence == 0.9
        assert result.entity_value(EntityType.CURRENT_BALANCE) == "0.00"


class TestDisputeConfidence:
    """이의제기 신뢰도 보정 테스트."""

    def test_duplicate_boost(self, duplicate_account):
        result = classify("I want to dispute a charge", duplicate_account)
        assert result.intent_id == ic.TRANSACTION_DISPUTE
        assert result.confidence == 0.98

    def test_no_boost_for_different_descriptions(self):
        now = datetime(2026, 3, 10, 9, 0)
        ctx = UserAccountContext(
            user_id="u1",
            outstanding_balance=Decimal("100.00"),
            recent_transactions=[
                _tx("T1", "12500.00", now, "Online subscription"),
                _tx("T2", "12500.00", now + timedelta(minutes=5), "Grocery store"),
            ],
        )
        result = classify("I want to dispute a charge", ctx)
        assert result.confidence == 0.95

    def test_recent_transaction_entities_capped(self):
        now = datetime(2026, 3, 10, 9, 0)
        ctx = UserAccountContext(
            user_id="u1",
            recent_transactions=[_tx(f"T{i}", f"{i}00.00", now, f"Shop {i}") for i in range(1, 6)],
        )
        result = classify("dispute", ctx)
        recent = [e for e in result.entities if e.type == EntityType.RECENT_TRANSACTION]
        assert len(recent) == 3
        assert recent[0].value == "Shop 1 - 100.00"

    def test_merchant_entity(self):
        result = classify("I didn't make this purchase at Happy Mart")
        assert result.entity_value(EntityType.MERCHANT) == "happy mart"


class TestDuplicateDetection:
    """중복 거래 판별 테스트."""

    def test_pairwise_over_all(self):
        now = datetime(2026, 3, 10, 9, 0)
        txs = [
            _tx("T1", "500.00", now, "Cafe"),
            _tx("T2", "900.00", now + timedelta(minutes=3), "Books"),
            _tx("T3", "500.00", now + timedelta(minutes=20), "CAFE"),
        ]
        assert has_duplicate_transactions(txs) is True

    def test_outside_window(self):
        now = datetime(2026, 3, 10, 9, 0)
        txs = [_tx("T1", "500.00", now, "Cafe"), _tx("T2", "500.00", now + timedelta(minutes=31), "Cafe")]
        assert has_duplicate_transactions(txs) is False

    def test_boundary_inclusive(self):
        now = datetime(2026, 3, 10, 9, 0)
        txs = [_tx("T1", "500.00", now, "Cafe"), _tx("T2", "500.00", now + timedelta(minutes=30, seconds=59), "Cafe")]
        assert has_duplicate_transactions(txs) is True

    @pytest.mark.parametrize("txs", [None, []])
    def test_empty(self, txs):
        assert has_duplicate_transactions(txs) is False


class TestEnhanceAccountContext:
    """계정 컨텍스트 보강 테스트."""

    def test_none_uses_default_provider(self, account_service):
        ctx = enhance_account_context(None, account_service)
        assert ctx.user_id in account_service.user_ids

    def test_partial_context_is_filled(self, account_service):
        partial = UserAccountContext(user_id="user_normal")
        ctx = enhance_account_context(partial, account_service)
        assert ctx.outstanding_balance == Decimal("35000.00")

    def test_unknown_user_keeps_original(self, account_service):
        partial = UserAccountContext(user_id="nobody")
        assert enhance_account_context(partial, account_service) is partial

    def test_full_context_untouched(self, account_service, overdue_account):
        assert enhance_account_context(overdue_account, account_service) is overdue_account


class TestKeywordConfig:
    """키워드 설정 테스트."""

    def test_contains_keywords(self):
        assert contains_keywords("my bill is late", ["bill"])
        assert not contains_keywords("hello", ["bill"])

    def test_fallback_intent(self):
        fallback = create_fallback_intent()
        assert fallback.intent_id == ic.UNRECOGNIZED_INQUIRY
        assert fallback.follow_up_actions == ("Show available services", "Ask for clarification")
