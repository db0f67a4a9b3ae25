from __future__ import annotations

import threading
from typing import Iterable

from .errors import DuplicateSessionError
from .models import Analysis, Answer, DiagnosisResult, ScoredPlan
from .scorer import round_half_up


def total_score(scored: list[ScoredPlan]) -> int:
    """Rounded mean of the recommended plans' scores, 0 when there are none."""
    if not scored:
        return 0
    return round_half_up(sum(s.match_score for s in scored) / len(scored))


def assemble_result(
    session_id: str,
    user_id: str | None,
    answers: Iterable[Answer],
    analysis: Analysis,
    scored: list[ScoredPlan],
) -> DiagnosisResult:
    return DiagnosisResult(
        session_id=session_id,
        user_id=user_id,
        answers=list(answers),
        analysis=analysis,
        recommended_plans=scored,
        total_score=total_score(scored),
    )


class InMemoryResultStore:
    """Diagnosis results keyed by session id.

    ``save`` checks and inserts under one lock, so of two concurrent saves
    for the same session exactly one succeeds and the other raises
    ``DuplicateSessionError``.
    """

    def __init__(self) -> None:
        self._results: dict[str, DiagnosisResult] = {}
        self._lock = threading.Lock()

    def exists_session(self, session_id: str) -> bool:
        return session_id in self._results

    def save(self, result: DiagnosisResult) -> DiagnosisResult:
        with self._lock:
            if result.session_id in self._results:
                raise DuplicateSessionError(result.session_id)
            self._results[result.session_id] = result
        return result

    def get(self, session_id: str) -> DiagnosisResult | None:
        return self._results.get(session_id)

    def _owned_by(self, user_id: str) -> list[DiagnosisResult]:
        with self._lock:
            return [r for r in self._results.values() if r.user_id == user_id]

    def list_by_user(self, user_id: str, page: int = 1, limit: int = 10) -> list[DiagnosisResult]:
        """Return one page of a user's results, newest first."""
        owned = self._owned_by(user_id)
        owned.sort(key=lambda r: r.created_at, reverse=True)
        start = (page - 1) * limit
        return owned[start:start + limit]

    def count_by_user(self, user_id: str) -> int:
        return len(self._owned_by(user_id))

    def clear(self) -> None:
        with self._lock:
            self._results.clear()


_store = InMemoryResultStore()


def get_result_store() -> InMemoryResultStore:
    return _store


def clear_results() -> None:
    _store.clear()
