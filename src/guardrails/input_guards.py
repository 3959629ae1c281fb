"""입력 가드레일 모듈.

기능:
- 입력 길이 검증 (빈 메시지, 최대 길이)
- 로그 기록용 PII(카드 번호 등) 탐지 및 마스킹
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from src.config import get_config
from src.core.exceptions import ValidationError


def _get_guardrails_config():
    """가드레일 설정 로드."""
    return get_config().guardrails


@dataclass
class InputGuardResult:
    """입력 가드 결과."""

    ok: bool
    original_text: str
    masked_text: str = ""
    block_reason: Optional[str] = None
    pii_detected: List[Dict[str, str]] = field(default_factory=list)


def _get_pii_patterns() -> Dict[str, Dict[str, str]]:
    """PII 패턴 로드 (설정 기반, 기본값 폴백)."""
    patterns = _get_guardrails_config().pii_patterns
    if patterns:
        return patterns

    # 기본값 (설정 파일 없는 경우)
    return {
        "card_number": {
            "pattern": r"(\d{4}[-.\s]?\d{4}[-.\s]?\d{4}[-.\s]?\d{4})",
            "mask": "****-****-****-****",
            "description": "카드 번호",
        },
        "email": {
            "pattern": r"([a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+)",
            "mask": "***@***.***",
            "description": "이메일 주소",
        },
    }


def _get_length_limits() -> Tuple[int, int]:
    """길이 제한 로드."""
    cfg = _get_guardrails_config()
    return cfg.min_input_length, cfg.max_input_length


def detect_pii(text: str) -> Tuple[str, List[Dict[str, str]]]:
    """PII 탐지 및 마스킹.

    Args:
        text: 입력 텍스트

    Returns:
        (마스킹된 텍스트, 탐지된 PII 목록)
    """
    masked_text = text
    detected = []

    for pii_type, config in _get_pii_patterns().items():
        for match in re.findall(config["pattern"], masked_text):
            detected.append({
                "type": pii_type,
                "description": config.get("description", pii_type),
                "masked": config.get("mask", "***"),
            })
            masked_text = masked_text.replace(match, config.get("mask", "***"))

    return masked_text, detected


def validate_length(text: Optional[str]) -> Tuple[bool, Optional[str]]:
    """입력 길이 검증.

    공백만 있는 메시지는 빈 메시지로 취급합니다.

    Returns:
        (유효 여부, 오류 메시지)
    """
    min_length, max_length = _get_length_limits()

    if text is None or len(text.strip()) < min_length:
        return False, "Message cannot be empty"

    if len(text) > max_length:
        return False, f"Message too long (max {max_length} characters)"

    return True, None


def apply_input_guards(text: Optional[str]) -> InputGuardResult:
    """입력 가드 적용.

    Args:
        text: 사용자 입력 텍스트

    Returns:
        InputGuardResult
    """
    length_ok, length_error = validate_length(text)
    if not length_ok:
        return InputGuardResult(ok=False, original_text=text or "", block_reason=length_error)

    masked_text, pii_detected = detect_pii(text)
    return InputGuardResult(
        ok=True,
        original_text=text,
        masked_text=masked_text,
        pii_detected=pii_detected,
    )


def validate_message(text: Optional[str]) -> InputGuardResult:
    """메시지 검증.

    Raises:
        ValidationError: 빈 메시지이거나 최대 길이를 초과한 경우
    """
    result = apply_input_guards(text)
    if not result.ok:
        raise ValidationError(result.block_reason or "Invalid message", details={"field": "message"})
    return result


def mask_pii(text: str) -> str:
    """로그 기록용 PII 마스킹."""
    masked, _ = detect_pii(text)
    return masked
