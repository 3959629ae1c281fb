"""통합 설정 로더 모듈.

모든 YAML 설정 파일을 로드하고 관리합니다.
환경변수 오버라이드를 지원합니다.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


# 기본 설정 디렉토리
DEFAULT_CONFIG_DIR = Path("configs")


DEFAULT_INTENT_KEYWORDS: Dict[str, List[str]] = {
    "PAYMENT_INQUIRY": [
        "payment", "due date", "amount due", "outstanding balance",
        "minimum payment", "pay", "owe", "bill", "account balance",
        "check balance", "my balance", "current balance",
    ],
    "TRANSACTION_DISPUTE": [
        "dispute", "unauthorized", "fraud", "wrong charge", "didn't make",
        "unknown transaction", "suspicious", "report", "charge back",
    ],
    "CARD_MANAGEMENT": [
        "block card", "lost card", "stolen", "replace card", "new card",
        "activate", "deactivate", "cancel card", "card not working",
    ],
    "CREDIT_LIMIT": [
        "credit limit", "increase limit", "raise limit", "available credit",
        "credit line", "spending limit", "limit increase",
    ],
    "ACCOUNT_SECURITY": [
        "fraud alert", "security", "suspicious activity", "hacked",
        "compromised", "unusual activity", "security breach", "protect account",
    ],
    "STATEMENT_INQUIRY": [
        "statement", "transaction history", "monthly statement", "download",
        "transactions", "activity", "history", "past purchases",
    ],
    "REWARD_POINTS": [
        "points", "rewards", "cashback", "redeem", "points balance",
        "reward program", "miles", "loyalty",
    ],
    "TECHNICAL_SUPPORT": [
        "app not working", "login", "password", "technical issue", "website",
        "mobile app", "can't access", "error", "bug", "system down",
    ],
}


def load_yaml(path: Path | str) -> Dict[str, Any]:
    """YAML 파일 로드."""
    path = Path(path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_env_or_default(key: str, default: Any) -> Any:
    """환경변수 또는 기본값 반환."""
    env_val = os.environ.get(key)
    if env_val is not None:
        # 타입 변환
        if isinstance(default, bool):
            return env_val.lower() in ("true", "1", "yes")
        if isinstance(default, int):
            return int(env_val)
        if isinstance(default, float):
            return float(env_val)
        return env_val
    return default


@dataclass
class AppConfig:
    """앱 전역 설정."""

    name: str = "card-support-agent"
    version: str = "1.0.0"
    description: str = "신용카드 고객지원 규칙 기반 상담 에이전트"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_json: bool = True
    log_file: Optional[str] = None


@dataclass
class IntentsConfig:
    """의도 분류 설정."""

    keywords: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_INTENT_KEYWORDS.items()}
    )
    fallback_intent: str = "UNRECOGNIZED_INQUIRY"
    fallback_confidence: float = 0.3
    # 이 값을 초과해야 의도별 응답을 생성
    confidence_threshold: float = 0.4
    duplicate_window_minutes: int = 30
    max_recent_transaction_entities: int = 3


@dataclass
class ConversationConfig:
    """대화 컨텍스트 설정."""

    context_ttl_minutes: int = 5
    positive_responses: List[str] = field(
        default_factory=lambda: ["yes", "ok", "okay", "sure", "yep", "yeah"]
    )
    negative_responses: List[str] = field(
        default_factory=lambda: [
            "no", "nope", "cancel", "not now", "later", "maybe later", "not sure", "maybe",
        ]
    )
    # 데모 계정 (요청 경로에서 사용자 ID를 모를 때)
    default_user_id: str = "default_user"
    demo_overdue_user: str = "user_overdue"
    demo_recent_payment_user: str = "user_recent_payment"
    demo_duplicate_user: str = "user_duplicate_transactions"
    demo_normal_user: str = "user_normal"


@dataclass
class GuardrailsConfig:
    """입력 검증 설정."""

    max_input_length: int = 1000
    min_input_length: int = 1
    pii_patterns: Dict[str, Dict[str, str]] = field(default_factory=dict)


class Config:
    """통합 설정 클래스."""

    _instance: Optional["Config"] = None

    def __init__(self, config_dir: Path | str = DEFAULT_CONFIG_DIR):
        self.config_dir = Path(config_dir)
        self._app: Optional[AppConfig] = None
        self._intents: Optional[IntentsConfig] = None
        self._conversation: Optional[ConversationConfig] = None
        self._guardrails: Optional[GuardrailsConfig] = None
        self._raw: Dict[str, Dict[str, Any]] = {}
        self._load_all()

    @classmethod
    def get_instance(cls, config_dir: Path | str = DEFAULT_CONFIG_DIR) -> "Config":
        """싱글톤 인스턴스 반환."""
        if cls._instance is None:
            cls._instance = cls(config_dir)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """싱글톤 인스턴스 리셋 (테스트용)."""
        cls._instance = None

    def _load_all(self) -> None:
        """모든 설정 파일 로드."""
        self._raw["app"] = load_yaml(self.config_dir / "app.yaml")
        self._raw["intents"] = load_yaml(self.config_dir / "intents.yaml")
        self._raw["conversation"] = load_yaml(self.config_dir / "conversation.yaml")
        self._raw["guardrails"] = load_yaml(self.config_dir / "guardrails.yaml")

    @property
    def app(self) -> AppConfig:
        """앱 설정."""
        if self._app is None:
            raw = self._raw.get("app", {})
            app_cfg = raw.get("app", {})
            server_cfg = raw.get("server", {})
            logging_cfg = raw.get("logging", {})

            self._app = AppConfig(
                name=app_cfg.get("name", "card-support-agent"),
                version=app_cfg.get("version", "1.0.0"),
                description=app_cfg.get("description", ""),
                environment=get_env_or_default("APP_ENV", app_cfg.get("environment", "development")),
                host=get_env_or_default("APP_HOST", server_cfg.get("host", "0.0.0.0")),
                port=get_env_or_default("APP_PORT", server_cfg.get("port", 8000)),
                log_level=get_env_or_default("LOG_LEVEL", logging_cfg.get("level", "INFO")),
                log_json=get_env_or_default("LOG_JSON", logging_cfg.get("json", True)),
                log_file=logging_cfg.get("file"),
            )
        return self._app

    @property
    def intents(self) -> IntentsConfig:
        """의도 분류 설정."""
        if self._intents is None:
            raw = self._raw.get("intents", {})
            fallback = raw.get("fallback", {})
            rules = raw.get("rules", {})

            # 설정 파일의 키워드는 기본값을 의도 단위로 덮어씀
            keywords = {k: list(v) for k, v in DEFAULT_INTENT_KEYWORDS.items()}
            for intent_id, rule_cfg in rules.items():
                if rule_cfg and rule_cfg.get("keywords"):
                    keywords[intent_id] = [str(k).lower() for k in rule_cfg["keywords"]]

            self._intents = IntentsConfig(
                keywords=keywords,
                fallback_intent=fallback.get("intent", "UNRECOGNIZED_INQUIRY"),
                fallback_confidence=fallback.get("confidence", 0.3),
                confidence_threshold=get_env_or_default(
                    "INTENT_CONFIDENCE_THRESHOLD", raw.get("confidence_threshold", 0.4)
                ),
                duplicate_window_minutes=raw.get("duplicate_window_minutes", 30),
                max_recent_transaction_entities=raw.get("max_recent_transaction_entities", 3),
            )
        return self._intents

    @property
    def conversation(self) -> ConversationConfig:
        """대화 컨텍스트 설정."""
        if self._conversation is None:
            raw = self._raw.get("conversation", {})
            context_cfg = raw.get("context", {})
            responses_cfg = raw.get("responses", {})
            demo_cfg = raw.get("demo_accounts", {})
            defaults = ConversationConfig()

            self._conversation = ConversationConfig(
                context_ttl_minutes=get_env_or_default(
                    "CONTEXT_TTL_MINUTES", context_cfg.get("ttl_minutes", 5)
                ),
                positive_responses=responses_cfg.get("positive", defaults.positive_responses),
                negative_responses=responses_cfg.get("negative", defaults.negative_responses),
                default_user_id=context_cfg.get("default_user_id", defaults.default_user_id),
                demo_overdue_user=demo_cfg.get("overdue", defaults.demo_overdue_user),
                demo_recent_payment_user=demo_cfg.get("recent_payment", defaults.demo_recent_payment_user),
                demo_duplicate_user=demo_cfg.get("duplicate_transactions", defaults.demo_duplicate_user),
                demo_normal_user=demo_cfg.get("normal", defaults.demo_normal_user),
            )
        return self._conversation

    @property
    def guardrails(self) -> GuardrailsConfig:
        """입력 검증 설정."""
        if self._guardrails is None:
            raw = self._raw.get("guardrails", {})
            input_cfg = raw.get("input", {})

            self._guardrails = GuardrailsConfig(
                max_input_length=input_cfg.get("max_length", 1000),
                min_input_length=input_cfg.get("min_length", 1),
                pii_patterns=raw.get("pii", {}) or {},
            )
        return self._guardrails


# 편의 함수
def get_config(config_dir: Path | str = DEFAULT_CONFIG_DIR) -> Config:
    """설정 인스턴스 반환."""
    return Config.get_instance(config_dir)
