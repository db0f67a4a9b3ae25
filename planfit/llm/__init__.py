"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Send chat-completion requests for the plan assistant.
- Graceful fallback when the LLM is unavailable or returns empty output.
"""
