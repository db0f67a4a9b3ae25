from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ChatConfig:
    prompt_cache_ttl: float = float(os.getenv("PROMPT_CACHE_TTL", "300"))
    max_turns: int = 6  # 3 exchanges
    max_stored_messages: int = 100
    plan_summary_limit: int = 50
    faq_similarity_threshold: float = 0.6


DEFAULT_CHAT_CONFIG = ChatConfig()
