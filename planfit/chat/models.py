from __future__ import annotations

import time
from enum import Enum

from pydantic import AliasChoices, BaseModel, Field

from ..diagnosis.models import SESSION_ID_PATTERN


class Faq(BaseModel):
    id: str
    question: str
    variations: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    category: str | None = None
    answer: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000)
    session_id: str | None = Field(
        default=None,
        pattern=SESSION_ID_PATTERN,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )


class ChatResponseType(str, Enum):
    faq = "faq"
    assistant = "assistant"
    fallback = "fallback"


class ChatResponse(BaseModel):
    type: ChatResponseType
    message: str
    faq_id: str | None = None
    session_id: str | None = None


class ConversationTurn(BaseModel):
    role: str
    content: str


class ConversationState(BaseModel):
    turns: list[ConversationTurn] = Field(default_factory=list)


class ConversationMessage(ConversationTurn):
    timestamp: float = Field(default_factory=time.time)


class Conversation(BaseModel):
    session_id: str
    messages: list[ConversationMessage] = Field(default_factory=list)
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)
