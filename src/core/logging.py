"""JSON 구조화 로깅 모듈.

요청 ID와 세션 ID를 포함하는 JSON 포맷 로깅을 제공합니다.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# 요청/세션 컨텍스트
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
session_id_var: ContextVar[Optional[str]] = ContextVar("session_id", default=None)


def get_request_id() -> Optional[str]:
    """현재 요청 ID 반환."""
    return request_id_var.get()


def set_request_id(request_id: Optional[str] = None) -> str:
    """요청 ID 설정."""
    if request_id is None:
        request_id = str(uuid.uuid4())[:8]
    request_id_var.set(request_id)
    return request_id


def get_session_id() -> Optional[str]:
    """현재 세션 ID 반환."""
    return session_id_var.get()


def set_session_id(session_id: Optional[str]) -> None:
    """세션 ID 설정."""
    session_id_var.set(session_id)


class JSONFormatter(logging.Formatter):
    """JSON 포맷 로그 포매터."""

    def format(self, record: logging.LogRecord) -> str:
        """로그 레코드를 JSON 문자열로 포맷."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        session_id = get_session_id()
        if session_id:
            log_data["session_id"] = session_id

        # 추가 필드
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    json_format: bool = True,
) -> logging.Logger:
    """로깅 설정.

    Args:
        level: 로그 레벨
        log_file: 로그 파일 경로 (None이면 콘솔만)
        max_bytes: 로그 파일 최대 크기
        backup_count: 백업 파일 수
        json_format: JSON 포맷 사용 여부

    Returns:
        설정된 루트 로거
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # 기존 핸들러 제거
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # 파일 핸들러 (로테이션)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


def log_event(message: str, level: int = logging.INFO, **fields: Any) -> None:
    """구조화 필드를 포함한 대화 이벤트 로그.

    요청/세션 ID는 JSONFormatter가 컨텍스트에서 채웁니다.
    fields에는 "message" 키를 쓰지 않습니다.
    """
    logging.getLogger("dialogue").log(level, message, extra={"extra_fields": fields})
