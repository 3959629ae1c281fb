"""Core 모듈.

공통 예외 클래스와 로깅 설정을 제공합니다.
"""

from src.core.exceptions import (
    AppError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)

__all__ = [
    "AppError",
    "NotFoundError",
    "ServiceUnavailableError",
    "ValidationError",
]
