"""대화 오케스트레이터.

한 번의 사용자 발화를 다음 순서로 처리합니다. 순서는 바뀌지 않습니다.

1. 인사: 컨텍스트를 지우고 시간대/날씨 인사말 반환
2. 후속 응답: 대기 중인 컨텍스트가 있고 "yes"/"no" 형태의 짧은 응답이면
   대기 동작에 맞는 응답 후 컨텍스트 삭제
3. 단축 경로: 예측 의도 버튼 문구 처리
4. 의도 분류: 신뢰도가 기준을 넘으면 의도별 응답, 일부 의도는 후속 확인 대기
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from src.agents.nodes import intent_classifier as ic
from src.agents.nodes.intent_classifier import classify, enhance_account_context
from src.agents.responses import UNRECOGNIZED_MESSAGE, ResponseGenerator, make_reference
from src.agents.shortcuts import handle_shortcut
from src.agents.state import ClassifiedIntent, DialogueBranch, DialogueResult
from src.config import get_config
from src.conversation.context import ContextStore, ConversationContext, PendingAction, get_context_store
from src.conversation.greeting import GreetingService, is_greeting
from src.core.logging import log_event, set_session_id
from src.guardrails.input_guards import mask_pii
from src.mock_system.account_service import AccountService, UserAccountContext, get_account_service
from src.monitoring.metrics import timed_dialogue, track_follow_up, track_intent

logger = logging.getLogger(__name__)


# 후속 확인이 필요한 의도 -> (대기 동작, 컨텍스트 데이터)
INTENT_FOLLOW_UPS: Dict[str, Tuple[PendingAction, str]] = {
    ic.PAYMENT_INQUIRY: (PendingAction.PAYMENT_CONFIRMATION, "payment_setup"),
    ic.CREDIT_LIMIT: (PendingAction.CREDIT_LIMIT_REQUEST, "limit_increase"),
    ic.TRANSACTION_DISPUTE: (PendingAction.DUPLICATE_REPORT_CONFIRMATION, "dispute_report"),
    ic.ACCOUNT_SECURITY: (PendingAction.SECURITY_PHONE_CONFIRMATION, "phone_verification"),
}

# 대기 동작 -> (긍정 응답, 부정 응답)
FOLLOW_UP_REPLIES: Dict[str, Tuple[str, str]] = {
    PendingAction.PAYMENT_CONFIRMATION.value: (
        "Great! I'll help you set up a payment. You can make payments through:\n"
        "• Online banking\n"
        "• Mobile app\n"
        "• Phone banking\n"
        "• Visit any branch\n\n"
        "Would you like me to guide you through the online payment process?",
        "No problem! Your payment is not due immediately. I'm here if you need help with anything else. "
        "You can always make a payment later through our app or website.",
    ),
    PendingAction.CREDIT_LIMIT_REQUEST.value: (
        "Perfect! I've submitted your credit limit increase request for review. "
        "You'll receive an email confirmation shortly with your reference number. "
        "Our team will review your application within 2-3 business days and contact you with the decision. "
        "Is there anything else I can help you with?",
        "No worries! You can always request a credit limit increase later when you're ready. "
        "Your current limit and available credit remain the same. "
        "Is there anything else I can help you with today?",
    ),
    PendingAction.DUPLICATE_REPORT_CONFIRMATION.value: (
        "I've successfully submitted your duplicate transaction report. "
        "Reference number: {reference}. "
        "Our fraud team will investigate and contact you within 2-3 business days. "
        "You'll receive an email confirmation shortly with all the details.",
        "Understood. I won't file a duplicate transaction report at this time. "
        "If you change your mind or notice any other suspicious activity, "
        "please don't hesitate to contact us immediately.",
    ),
    PendingAction.SECURITY_PHONE_CONFIRMATION.value: (
        "Thank you for confirming. Our fraud team will contact you at your registered number within 30 minutes. "
        "Please answer the call to verify the recent activity on your account. "
        "If you don't receive a call within 30 minutes, please contact us directly.",
        "I understand your phone number may have changed. For security purposes, "
        "please visit any of our branches with valid ID to update your contact information. "
        "In the meantime, your account remains secured.",
    ),
    PendingAction.FURTHER_ASSISTANCE.value: (
        "I'm here to help with whatever you need. You can ask me about:\n\n"
        "• Account & Payments: Check balance, due dates, payment options\n"
        "• Security: Report fraud, block cards, dispute transactions\n"
        "• Statements: Transaction history, monthly statements\n"
        "• Credit: Limit increases, available credit\n"
        "• Rewards: Points balance, redemption options\n"
        "• Support: Technical issues, account access\n\n"
        "What would you like to know about?",
        "Perfect! It looks like you have everything you need. "
        "Thank you for using our service today. "
        "Feel free to reach out anytime if you have questions. Have a great day!",
    ),
}

UNHANDLED_FOLLOW_UP_MESSAGE = (
    "I'm not sure how to handle that response in this context. "
    "Could you please be more specific about what you'd like me to help you with?"
)

FURTHER_ASSISTANCE_PROMPT = "Do you need any further assistance?"
FURTHER_ASSISTANCE_INTENT = "SILENCE_CHECK"


class DialogueOrchestrator:
    """발화 단위 대화 처리기."""

    def __init__(
        self,
        context_store: Optional[ContextStore] = None,
        account_service: Optional[AccountService] = None,
        greeting_service: Optional[GreetingService] = None,
        response_generator: Optional[ResponseGenerator] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.context_store = context_store or get_context_store()
        self.account_service = account_service or get_account_service()
        self.greeting_service = greeting_service or GreetingService()
        self.response_generator = response_generator or ResponseGenerator(self.account_service, clock=clock)
        self._clock = clock

    def handle_message(
        self,
        utterance: Optional[str],
        session_id: Optional[str] = None,
        account_context: Optional[UserAccountContext] = None,
    ) -> DialogueResult:
        """발화 처리.

        Args:
            utterance: 사용자 발화
            session_id: 세션 ID (없으면 기본 사용자 ID)
            account_context: 분류에 사용할 계정 컨텍스트 (없으면 데모 시나리오)

        Returns:
            DialogueResult
        """
        session_id = session_id or get_config().conversation.default_user_id
        set_session_id(session_id)

        with timed_dialogue({}) as timing:
            result = self._dispatch(utterance, session_id, account_context)
            timing["branch"] = result.branch.value
            self.context_store.purge_expired()
            timing["active_contexts"] = self.context_store.count()

        log_event(
            "발화 처리 완료",
            branch=result.branch.value,
            intent=result.intent.intent_id if result.intent else None,
            confidence=result.intent.confidence if result.intent else None,
            pending_action=result.updated_context.last_action if result.updated_context else None,
            utterance=mask_pii(utterance or "")[:100],
        )
        return result

    def offer_further_assistance(self, session_id: Optional[str] = None) -> DialogueResult:
        """추가 도움 여부 질문 (사용자 침묵 시 외부에서 호출).

        다음 "yes"/"no" 응답은 FURTHER_ASSISTANCE 후속 응답으로 처리됩니다.
        """
        session_id = session_id or get_config().conversation.default_user_id
        set_session_id(session_id)
        context = self.context_store.set(
            session_id,
            PendingAction.FURTHER_ASSISTANCE,
            FURTHER_ASSISTANCE_INTENT,
            "further_assistance_inquiry",
        )
        log_event("추가 도움 확인 요청", pending_action=context.last_action)
        return DialogueResult(
            reply_text=FURTHER_ASSISTANCE_PROMPT,
            branch=DialogueBranch.FOLLOW_UP,
            updated_context=context,
        )

    def _dispatch(
        self,
        utterance: Optional[str],
        session_id: str,
        account_context: Optional[UserAccountContext],
    ) -> DialogueResult:
        if utterance is None or not utterance.strip():
            return DialogueResult(
                reply_text=UNRECOGNIZED_MESSAGE,
                branch=DialogueBranch.FALLBACK,
                updated_context=self.context_store.get(session_id),
            )

        # 1. 인사
        if is_greeting(utterance):
            self.context_store.clear(session_id)
            greeting = self.greeting_service.generate_greeting(now=self._clock())
            return DialogueResult(reply_text=greeting.message, branch=DialogueBranch.GREETING)

        # 2. 후속 응답
        pending = self.context_store.get(session_id)
        if pending is not None and self.context_store.is_simple_response(utterance):
            reply = self._resolve_follow_up(utterance, pending, session_id)
            return DialogueResult(reply_text=reply, branch=DialogueBranch.FOLLOW_UP)

        # 3. 단축 경로
        shortcut_reply = handle_shortcut(utterance, self.account_service)
        if shortcut_reply is not None:
            return DialogueResult(
                reply_text=shortcut_reply,
                branch=DialogueBranch.SHORTCUT,
                updated_context=self.context_store.get(session_id),
            )

        # 4. 의도 분류
        return self._classify_and_respond(utterance, session_id, account_context)

    def _resolve_follow_up(self, utterance: str, pending: ConversationContext, session_id: str) -> str:
        """대기 동작에 대한 긍정/부정 응답 처리. 처리 후 컨텍스트는 항상 삭제."""
        is_positive = self.context_store.is_positive_response(utterance)
        is_negative = self.context_store.is_negative_response(utterance)
        self.context_store.clear(session_id)

        replies = FOLLOW_UP_REPLIES.get(pending.last_action)
        if replies is None or not (is_positive or is_negative):
            logger.warning(f"처리할 수 없는 후속 응답: action={pending.last_action}")
            track_follow_up(pending.last_action, "unhandled")
            return UNHANDLED_FOLLOW_UP_MESSAGE

        track_follow_up(pending.last_action, "positive" if is_positive else "negative")
        positive_reply, negative_reply = replies
        if not is_positive:
            return negative_reply
        if pending.last_action == PendingAction.DUPLICATE_REPORT_CONFIRMATION.value:
            return positive_reply.format(reference=make_reference("DUP", self._clock()))
        return positive_reply

    def _classify_and_respond(
        self,
        utterance: str,
        session_id: str,
        account_context: Optional[UserAccountContext],
    ) -> DialogueResult:
        account_context = enhance_account_context(account_context, self.account_service)
        intent = classify(utterance, account_context)
        track_intent(intent.intent_id, intent.confidence)

        if intent.confidence > get_config().intents.confidence_threshold:
            reply = self.response_generator.generate(intent, account_context)
            updated = self._set_follow_up_context(session_id, intent)
            return DialogueResult(
                reply_text=reply,
                branch=DialogueBranch.CLASSIFIED,
                updated_context=updated,
                intent=intent,
            )

        self.context_store.clear(session_id)
        return DialogueResult(reply_text=UNRECOGNIZED_MESSAGE, branch=DialogueBranch.FALLBACK, intent=intent)

    def _set_follow_up_context(self, session_id: str, intent: ClassifiedIntent) -> Optional[ConversationContext]:
        """후속 확인 대기 설정. 대상 의도가 아니면 기존 컨텍스트 유지."""
        follow_up = INTENT_FOLLOW_UPS.get(intent.intent_id)
        if follow_up is None:
            return self.context_store.get(session_id)
        action, context_data = follow_up
        return self.context_store.set(session_id, action, intent.intent_id, context_data)


# 전역 오케스트레이터
_orchestrator: Optional[DialogueOrchestrator] = None


def get_orchestrator() -> DialogueOrchestrator:
    """전역 오케스트레이터 반환."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = DialogueOrchestrator()
    return _orchestrator
