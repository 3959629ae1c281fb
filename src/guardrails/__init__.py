"""가드레일 모듈.

기능:
- 입력 검증: 빈 메시지/최대 길이 검사
- 로그 기록 전 PII(카드 번호 등) 마스킹
"""

from .input_guards import (
    InputGuardResult,
    apply_input_guards,
    detect_pii,
    mask_pii,
    validate_length,
    validate_message,
)

__all__ = [
    "InputGuardResult",
    "apply_input_guards",
    "detect_pii",
    "mask_pii",
    "validate_length",
    "validate_message",
]
