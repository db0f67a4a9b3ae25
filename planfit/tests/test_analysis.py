from __future__ import annotations

from planfit.catalog.models import Question
from planfit.diagnosis.analysis import build_analysis
from planfit.diagnosis.models import Answer


def _question(qid: str, category: str) -> Question:
    return Question(id=qid, order=1, text=qid, type="single", category=category)


QUESTIONS = [
    _question("q-data", "data"),
    _question("q-budget", "budget"),
    _question("q-age", "age"),
    _question("q-usage", "usage"),
    _question("q-extra", "preference"),
]


def test_scenario_data_and_budget():
    answers = [
        Answer(question_id="q-data", answer="20GB - 50GB"),
        Answer(question_id="q-budget", answer="5-7만원"),
    ]
    analysis = build_analysis(answers, QUESTIONS)
    assert analysis.data_usage_gb == 35
    assert analysis.budget_won == 60000
    assert analysis.age is None
    assert analysis.preferences == []
    assert analysis.usage_patterns == []


def test_tags_are_deduplicated():
    answers = [
        Answer(question_id="q-usage", answer=["영상 스트리밍", "게임"]),
        Answer(question_id="q-extra", answer="넷플릭스 영상 위주, 게임도 함"),
    ]
    analysis = build_analysis(answers, QUESTIONS)
    assert analysis.usage_patterns == ["video-streaming", "gaming"]
    assert analysis.preferences == ["unlimited", "high-speed"]


def test_last_matching_answer_wins_for_scalars():
    answers = [
        Answer(question_id="q-budget", answer="3만원 이하"),
        Answer(question_id="q-extra", answer="사실 7-10만원까지 괜찮아요"),
    ]
    assert build_analysis(answers, QUESTIONS).budget_won == 85000
    assert build_analysis(list(reversed(answers)), QUESTIONS).budget_won == 30000


def test_unmatched_answer_does_not_reset_scalar():
    answers = [
        Answer(question_id="q-data", answer="50GB - 100GB"),
        Answer(question_id="q-extra", answer="특별한 혜택 불필요"),
    ]
    assert build_analysis(answers, QUESTIONS).data_usage_gb == 75


def test_authenticated_age_overrides_answer():
    answers = [Answer(question_id="q-age", answer="10대")]
    assert build_analysis(answers, QUESTIONS).age == 15
    assert build_analysis(answers, QUESTIONS, authenticated_age=41).age == 41


def test_answers_for_unknown_questions_are_skipped():
    answers = [Answer(question_id="q-missing", answer="10만원 이상")]
    assert build_analysis(answers, QUESTIONS).budget_won == 0
