from __future__ import annotations


class DiagnosisError(Exception):
    """Base class for errors surfaced by the diagnosis pipeline."""


class InvalidQuestionReferenceError(DiagnosisError):
    """Raised when answers reference unknown or inactive questions."""

    def __init__(self, invalid_ids: list[str]) -> None:
        self.invalid_ids = invalid_ids
        super().__init__(f"Answers reference unknown questions: {', '.join(invalid_ids)}")


class DuplicateSessionError(DiagnosisError):
    """Raised when a diagnosis session id has already been processed."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id!r} has already been processed")


class PersistenceError(DiagnosisError):
    """Raised when a diagnosis result cannot be stored."""
