"""커스텀 예외 클래스 모듈.

애플리케이션 전역에서 사용되는 예외 클래스를 정의합니다.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    """애플리케이션 기본 예외.

    모든 커스텀 예외의 기반 클래스입니다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(AppError):
    """입력 검증 실패 예외."""

    status_code = 400
    error_code = "VALIDATION_ERROR"
    message = "Invalid input"


class NotFoundError(AppError):
    """리소스를 찾을 수 없음 예외."""

    status_code = 404
    error_code = "NOT_FOUND"
    message = "The requested resource was not found"


class ServiceUnavailableError(AppError):
    """서비스 이용 불가 예외.

    계정 데이터 제공자에 사용 가능한 시나리오가 없는 경우 등
    외부 협력자의 설정 오류를 나타냅니다.
    """

    status_code = 503
    error_code = "SERVICE_UNAVAILABLE"
    message = "The service is temporarily unavailable"
