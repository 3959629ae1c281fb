"""계정 Mock 서비스 테스트."""

import random
from decimal import Decimal

import pytest

from src.core.exceptions import ServiceUnavailableError
from src.mock_system.account_service import AccountService, build_demo_accounts


class TestDemoAccounts:
    """데모 시나리오 테스트."""

    def test_four_scenarios(self, account_service):
        assert sorted(account_service.user_ids) == [
            "user_duplicate_transactions",
            "user_normal",
            "user_overdue",
            "user_recent_payment",
        ]

    def test_overdue_scenario(self, overdue_account, clock):
        assert overdue_account.account_status == "OVERDUE"
        assert overdue_account.outstanding_balance == Decimal("120000.00")
        assert overdue_account.due_date < clock.now.date()

    def test_duplicate_scenario(self, duplicate_account):
        first, second = duplicate_account.recent_transactions[:2]
        assert first.amount == second.amount
        assert first.description == second.description

    def test_dates_relative_to_clock(self, clock):
        accounts = build_demo_accounts(clock.now)
        assert accounts["user_normal"].due_date > clock.now.date()

    def test_has_detail(self, normal_account):
        assert normal_account.has_detail()


class TestLookup:
    """조회 테스트."""

    def test_unknown_user(self, account_service):
        assert account_service.get_account_context("nobody") is None

    def test_or_default_known(self, account_service):
        assert account_service.get_account_context_or_default("user_normal").user_id == "user_normal"

    def test_or_default_unknown(self, account_service):
        ctx = account_service.get_account_context_or_default("nobody")
        assert ctx.user_id in account_service.user_ids

    def test_random_is_seeded(self, clock):
        a = AccountService(clock=clock, rng=random.Random(5))
        b = AccountService(clock=clock, rng=random.Random(5))
        assert a.get_default_or_random_account_context() == b.get_default_or_random_account_context()

    def test_empty_provider_raises(self):
        service = AccountService(accounts={})
        with pytest.raises(ServiceUnavailableError):
            service.get_default_or_random_account_context()
