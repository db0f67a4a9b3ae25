"""
Plan chat assistant.

Responsibilities:
- Answer frequently asked questions directly from the FAQ list.
- Otherwise ask the LLM, primed with a cached summary of the plan catalog.
- Keep a short per-session conversation history.
"""
