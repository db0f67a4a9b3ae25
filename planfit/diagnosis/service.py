from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Protocol

from ..catalog.models import Plan, Question
from .analysis import build_analysis
from .config import DEFAULT_DIAGNOSIS_CONFIG, DiagnosisConfig
from .errors import DuplicateSessionError, InvalidQuestionReferenceError, PersistenceError
from .models import Analysis, Answer, DiagnosisRequest, DiagnosisResult
from .query import build_candidate_filter
from .results import assemble_result
from .scorer import ScoringOutcome, rank_plans

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "답변에 맞는 추천 요금제를 찾을 수 없습니다. 조건을 다시 검토해보세요."


class CatalogStore(Protocol):
    def find_candidates(
        self, age: int | None = None, price_ceiling: int | None = None,
    ) -> list[Plan]:
        ...

    def find_questions_by_id(self, ids: Iterable[str]) -> list[Question]:
        ...


class ResultStore(Protocol):
    def exists_session(self, session_id: str) -> bool:
        ...

    def save(self, result: DiagnosisResult) -> DiagnosisResult:
        ...


@dataclass
class DiagnosisOutcome:
    result: DiagnosisResult
    analysis: Analysis
    ranked: list[ScoringOutcome]

    @property
    def no_matches(self) -> bool:
        return not self.ranked


def check_submission(
    answers: list[Answer],
    session_id: str,
    catalog: CatalogStore,
    results: ResultStore,
) -> list[Question]:
    """Reject the submission before any scoring work.

    Returns the active questions referenced by ``answers``.
    """
    referenced = list(dict.fromkeys(a.question_id for a in answers))
    questions = catalog.find_questions_by_id(referenced)
    known = {q.id for q in questions}
    invalid = [qid for qid in referenced if qid not in known]
    if invalid:
        raise InvalidQuestionReferenceError(invalid)

    if results.exists_session(session_id):
        raise DuplicateSessionError(session_id)

    return questions


class DiagnosisService:
    """Runs one diagnosis session end to end: guard, analyse, score, persist."""

    def __init__(
        self,
        catalog: CatalogStore,
        results: ResultStore,
        config: DiagnosisConfig = DEFAULT_DIAGNOSIS_CONFIG,
    ) -> None:
        self.catalog = catalog
        self.results = results
        self.config = config

    def recommend(self, analysis: Analysis) -> list[ScoringOutcome]:
        candidate_filter = build_candidate_filter(analysis, self.config)
        candidates = self.catalog.find_candidates(
            age=candidate_filter.age,
            price_ceiling=candidate_filter.price_ceiling,
        )
        return rank_plans(candidates, analysis, self.config)

    def process(
        self,
        request: DiagnosisRequest,
        user_id: str | None = None,
        authenticated_age: int | None = None,
    ) -> DiagnosisOutcome:
        session_id = request.session_id or str(uuid.uuid4())
        questions = check_submission(request.answers, session_id, self.catalog, self.results)

        analysis = build_analysis(request.answers, questions, authenticated_age)
        ranked = self.recommend(analysis)

        result = assemble_result(
            session_id,
            user_id,
            request.answers,
            analysis,
            [o.scored for o in ranked],
        )

        try:
            saved = self.results.save(result)
        except DuplicateSessionError:
            logger.info("Session %s was stored concurrently, reporting conflict", session_id)
            raise
        except Exception as exc:
            logger.error("Failed to store diagnosis result for session %s", session_id, exc_info=True)
            raise PersistenceError(f"Could not store diagnosis result: {exc}") from exc

        logger.info(
            "Diagnosis %s processed: %d recommendation(s), total score %d",
            session_id, len(ranked), saved.total_score,
        )
        return DiagnosisOutcome(result=saved, analysis=analysis, ranked=ranked)
