"""엔티티 추출기 테스트."""

import pytest

from src.agents.nodes.entity_extractor import (
    determine_card_action,
    extract,
    extract_merchant,
    extract_month,
)
from src.agents.state import EntityType


class TestAmount:
    """금액 추출 테스트."""

    def test_extract_amount_with_separators(self):
        entities = extract(EntityType.AMOUNT, "I was charged 1,250.00 yesterday")
        assert len(entities) == 1
        assert entities[0].type == EntityType.AMOUNT
        assert entities[0].value == "1,250.00"
        assert entities[0].confidence == 0.9

    def test_extract_first_amount_only(self):
        entities = extract(EntityType.AMOUNT, "pay 500 or 700")
        assert [e.value for e in entities] == ["500"]

    def test_requested_amount_type_and_confidence(self):
        entities = extract(EntityType.REQUESTED_AMOUNT, "increase my limit to 300,000")
        assert entities[0].type == EntityType.REQUESTED_AMOUNT
        assert entities[0].value == "300,000"
        assert entities[0].confidence == 0.85

    def test_no_amount(self):
        assert extract(EntityType.AMOUNT, "what is my balance") == []

    def test_idempotent(self):
        text = "Dispute the 4,999.99 charge"
        assert extract(EntityType.AMOUNT, text) == extract(EntityType.AMOUNT, text)


class TestMerchant:
    """가맹점 추출 테스트."""

    def test_extract_merchant_after_at(self):
        entities = extract_merchant("Unknown charge at Coffee Palace")
        assert entities[0].value == "coffee palace"
        assert entities[0].confidence == 0.8

    def test_extract_merchant_after_from(self):
        entities = extract_merchant("a charge from Grocery Mart")
        assert entities[0].value == "grocery mart"

    def test_no_merchant(self):
        assert extract_merchant("dispute this charge") == []


class TestMonth:
    """월 추출 테스트."""

    def test_extract_month(self):
        entities = extract_month("Send me the March statement")
        assert entities[0].type == EntityType.MONTH
        assert entities[0].value == "march"

    def test_calendar_order_wins(self):
        # 문장 순서가 아닌 달력 순서 기준
        entities = extract_month("statements for june and february")
        assert entities[0].value == "february"

    def test_no_month(self):
        assert extract_month("latest statement") == []


class TestCardAction:
    """카드 조치 판별 테스트."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("my card was stolen", "block"),
            ("I lost my card", "block"),
            ("I need a new card", "replace"),
            ("replace my card please", "replace"),
            ("how do I activate it", "activate"),
            ("cancel card", "cancel"),
            ("card not working", "manage"),
        ],
    )
    def test_determine_card_action(self, text, expected):
        assert determine_card_action(text) == expected

    def test_extract_action_always_one_entity(self):
        entities = extract(EntityType.ACTION, "something about my card")
        assert len(entities) == 1
        assert entities[0].value == "manage"
        assert entities[0].confidence == 0.9


class TestExtractDispatch:
    """유형별 추출 진입점 테스트."""

    def test_none_text_returns_empty(self):
        assert extract(EntityType.AMOUNT, None) == []
        assert extract(EntityType.ACTION, None) == []

    def test_empty_text_returns_empty(self):
        assert extract(EntityType.MONTH, "") == []

    def test_unknown_kind_returns_empty(self):
        assert extract("NOT_A_KIND", "100") == []

    def test_kind_as_string(self):
        entities = extract("AMOUNT", "pay 100")
        assert entities[0].value == "100"

    def test_unsupported_kind_returns_empty(self):
        assert extract(EntityType.CURRENT_BALANCE, "100") == []
