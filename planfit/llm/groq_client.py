from __future__ import annotations

import logging

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)


def complete_chat(
    messages: list[dict[str, str]],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str | None:
    """
    Send a chat-completion request to Groq and return the reply text.

    Returns ``None`` when the LLM is disabled, unconfigured, fails
    (timeout, API error) or answers with an empty message.
    """
    if not config.enabled or not config.api_key:
        return None

    if not messages:
        return None

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=messages,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
        content = (response.choices[0].message.content or "").strip()
        return content or None

    except Exception:
        logger.warning("Groq LLM call failed, falling back to canned reply", exc_info=True)
        return None
