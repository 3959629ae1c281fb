"""Mock 시스템 패키지.

카드 계정/거래 데이터와 날씨 정보를 메모리 기반으로 제공합니다.
"""

from .account_service import (
    AccountService,
    TransactionRecord,
    UserAccountContext,
    get_account_service,
)
from .weather_service import WeatherReport, WeatherService

__all__ = [
    "AccountService",
    "TransactionRecord",
    "UserAccountContext",
    "get_account_service",
    "WeatherReport",
    "WeatherService",
]
