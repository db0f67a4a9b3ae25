from __future__ import annotations

import logging

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import complete_chat
from .config import DEFAULT_CHAT_CONFIG, ChatConfig
from .conversations import InMemoryConversationStore, get_conversation_store
from .faq import FaqMatcher
from .models import ChatResponse, ChatResponseType, ConversationState, ConversationTurn
from .prompt import SystemPromptProvider

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "죄송합니다. 지금은 답변을 준비할 수 없습니다. "
    "요금제 진단을 이용하시거나 잠시 후 다시 질문해주세요."
)


def update_conversation_state(
    state: ConversationState,
    user_message: str,
    assistant_message: str,
    max_turns: int = DEFAULT_CHAT_CONFIG.max_turns,
) -> ConversationState:
    turns = list(state.turns)
    turns.append(ConversationTurn(role="user", content=user_message))
    turns.append(ConversationTurn(role="assistant", content=assistant_message))

    # Keep only last max_turns messages
    if len(turns) > max_turns:
        turns = turns[-max_turns:]

    return ConversationState(turns=turns)


class ChatAssistant:
    """Answers a chat message from the FAQ list, falling back to the LLM."""

    def __init__(
        self,
        faq_matcher: FaqMatcher,
        prompts: SystemPromptProvider,
        llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
        config: ChatConfig = DEFAULT_CHAT_CONFIG,
        conversations: InMemoryConversationStore | None = None,
    ) -> None:
        self.faq_matcher = faq_matcher
        self.prompts = prompts
        self.llm_config = llm_config
        self.config = config
        self.conversations = conversations or get_conversation_store()

    def _llm_messages(self, message: str, state: ConversationState) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": self.prompts.get()}]
        messages.extend({"role": t.role, "content": t.content} for t in state.turns)
        messages.append({"role": "user", "content": message})
        return messages

    def reply(
        self,
        message: str,
        state: ConversationState | None = None,
    ) -> tuple[ChatResponse, ConversationState]:
        message = message.strip()
        state = state or ConversationState()

        match = self.faq_matcher.match(message)
        if match:
            logger.info("Chat answered from FAQ %s (%s)", match.faq.id, match.method)
            response = ChatResponse(
                type=ChatResponseType.faq,
                message=match.faq.answer,
                faq_id=match.faq.id,
            )
        else:
            answer = complete_chat(self._llm_messages(message, state), config=self.llm_config)
            if answer:
                response = ChatResponse(type=ChatResponseType.assistant, message=answer)
            else:
                response = ChatResponse(type=ChatResponseType.fallback, message=FALLBACK_REPLY)

        new_state = update_conversation_state(
            state, message, response.message, self.config.max_turns,
        )
        return response, new_state

    def converse(self, message: str, session_id: str) -> ChatResponse:
        """Reply within a stored chat session and record the exchange."""
        state = self.conversations.recent_state(session_id, self.config.max_turns)
        response, _ = self.reply(message, state)
        self.conversations.append_exchange(session_id, message.strip(), response.message)
        return response.model_copy(update={"session_id": session_id})
