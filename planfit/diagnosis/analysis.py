from __future__ import annotations

from typing import Iterable

from ..catalog.models import Question
from .models import Analysis, Answer
from .normalizer import AnalysisUpdate, normalize_answer


def _dedupe(values: Iterable[str]) -> list[str]:
    """Drop repeated tags, keeping first-seen order."""
    return list(dict.fromkeys(values))


def build_analysis(
    answers: Iterable[Answer],
    questions: Iterable[Question],
    authenticated_age: int | None = None,
) -> Analysis:
    """Fold every answer of one session into a single ``Analysis``.

    Answers are applied in submission order, so for data usage, budget and
    age the last matching answer wins. Answers whose question is not in
    ``questions`` are ignored. An age from the authenticated user takes
    precedence over any age inferred from the answers.
    """
    by_id = {q.id: q for q in questions}
    folded = AnalysisUpdate()

    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None:
            continue
        folded.merge(normalize_answer(answer.answer, question.category.value))

    age = folded.age
    if authenticated_age is not None:
        age = authenticated_age

    return Analysis(
        data_usage_gb=folded.data_usage_gb or 0,
        budget_won=folded.budget_won or 0,
        age=age,
        preferences=_dedupe(folded.preferences),
        usage_patterns=_dedupe(folded.usage_patterns),
    )
