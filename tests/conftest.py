"""pytest 설정 및 공통 fixture."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from api import app
from src.config import Config

# pytest-asyncio 모드 설정
pytest_plugins = ["pytest_asyncio"]

# 테스트 기준 시각 (오전, 고정)
FIXED_NOW = datetime(2026, 3, 10, 9, 30, 0)


class FakeClock:
    """테스트용 시계. advance()로 시간을 진행합니다."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def reset_config():
    """각 테스트 전/후에 Config 싱글톤 리셋."""
    Config.reset_instance()
    yield
    Config.reset_instance()


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """전역 서비스 인스턴스 리셋 (테스트 간 대화 상태 공유 방지)."""
    monkeypatch.setattr("src.conversation.context._context_store", None)
    monkeypatch.setattr("src.mock_system.account_service._account_service", None)
    monkeypatch.setattr("src.agents.orchestrator._orchestrator", None)
    monkeypatch.setattr("src.agents.predictions._predictor", None)


@pytest.fixture
def client():
    """FastAPI TestClient fixture."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def clock():
    """고정 시계."""
    return FakeClock()


@pytest.fixture
def account_service(clock):
    """고정 시계 기준 데모 계정 서비스."""
    import random

    from src.mock_system.account_service import AccountService

    return AccountService(clock=clock, rng=random.Random(7))


@pytest.fixture
def context_store(clock):
    """고정 시계 기준 컨텍스트 저장소."""
    from src.conversation.context import ContextStore

    return ContextStore(ttl_minutes=5, clock=clock)


@pytest.fixture
def overdue_account(account_service):
    return account_service.get_account_context("user_overdue")


@pytest.fixture
def normal_account(account_service):
    return account_service.get_account_context("user_normal")


@pytest.fixture
def duplicate_account(account_service):
    return account_service.get_account_context("user_duplicate_transactions")
