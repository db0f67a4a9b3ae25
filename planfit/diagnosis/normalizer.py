"""
Answer normalization.

Each raw answer is inspected by its runtime type and mapped onto partial
``Analysis`` fields:

* ``str``   - keyword rules below (bucket tables + usage tags)
* ``list``  - every element goes through the string rules, in order
* number    - magnitude heuristic (see ``_normalize_number``)

The question category is accepted for context only; rules fire on the
answer content regardless of which question it belongs to.
"""
from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Bucket tables: (keywords, value). Within one string the first row whose
# keyword is contained in the answer wins for that field.
# ---------------------------------------------------------------------------

DATA_USAGE_BUCKETS: list[tuple[tuple[str, ...], int]] = [
    (("5GB 미만",), 3),
    (("5GB - 20GB",), 12),
    (("20GB - 50GB",), 35),
    (("50GB - 100GB",), 75),
    (("100GB 이상", "무제한"), 150),
]

BUDGET_BUCKETS: list[tuple[tuple[str, ...], int]] = [
    (("3만원 이하",), 30000),
    (("3-5만원",), 40000),
    (("5-7만원",), 60000),
    (("7-10만원",), 85000),
    (("10만원 이상",), 120000),
]

AGE_BUCKETS: list[tuple[tuple[str, ...], int]] = [
    (("10대",), 15),
    (("20대",), 25),
    (("30대",), 35),
    (("40대",), 45),
    (("50대",), 55),
    (("60대 이상",), 65),
]

# (keywords, usage pattern tag, preference tag or None). Every matching row
# contributes its tags.
USAGE_PATTERN_RULES: list[tuple[tuple[str, ...], str, str | None]] = [
    (("영상", "스트리밍"), "video-streaming", "unlimited"),
    (("게임",), "gaming", "high-speed"),
    (("음악",), "music", None),
    (("업무",), "work", None),
    (("SNS",), "social", None),
]

# Numeric answers are classified by magnitude alone. The first threshold
# covers every value the later ones would, so only the budget branch can
# fire.
NUMERIC_BUDGET_BELOW = 50000
NUMERIC_DATA_BELOW = 200
NUMERIC_AGE_BELOW = 100


@dataclass
class AnalysisUpdate:
    """Partial analysis fields produced by one answer. ``None`` means untouched."""

    data_usage_gb: float | None = None
    budget_won: float | None = None
    age: int | None = None
    preferences: list[str] = field(default_factory=list)
    usage_patterns: list[str] = field(default_factory=list)

    def merge(self, other: AnalysisUpdate) -> None:
        """Fold ``other`` into this update; later scalar values win."""
        if other.data_usage_gb is not None:
            self.data_usage_gb = other.data_usage_gb
        if other.budget_won is not None:
            self.budget_won = other.budget_won
        if other.age is not None:
            self.age = other.age
        self.preferences.extend(other.preferences)
        self.usage_patterns.extend(other.usage_patterns)


def _first_bucket(text: str, buckets: list[tuple[tuple[str, ...], int]]) -> int | None:
    for keywords, value in buckets:
        if any(keyword in text for keyword in keywords):
            return value
    return None


def _normalize_text(text: str) -> AnalysisUpdate:
    update = AnalysisUpdate(
        data_usage_gb=_first_bucket(text, DATA_USAGE_BUCKETS),
        budget_won=_first_bucket(text, BUDGET_BUCKETS),
        age=_first_bucket(text, AGE_BUCKETS),
    )
    for keywords, pattern, preference in USAGE_PATTERN_RULES:
        if any(keyword in text for keyword in keywords):
            update.usage_patterns.append(pattern)
            if preference:
                update.preferences.append(preference)
    return update


def _normalize_number(value: int | float) -> AnalysisUpdate:
    if value < NUMERIC_BUDGET_BELOW:
        return AnalysisUpdate(budget_won=value)
    if value < NUMERIC_DATA_BELOW:
        return AnalysisUpdate(data_usage_gb=value)
    if value < NUMERIC_AGE_BELOW:
        return AnalysisUpdate(age=int(value))
    return AnalysisUpdate()


def normalize_answer(value: str | list[str] | int | float, category: str | None = None) -> AnalysisUpdate:
    """Map one raw answer value onto partial analysis fields."""
    if isinstance(value, str):
        return _normalize_text(value)

    if isinstance(value, list):
        update = AnalysisUpdate()
        for item in value:
            update.merge(_normalize_text(item))
        return update

    if isinstance(value, bool):
        return AnalysisUpdate()

    if isinstance(value, (int, float)):
        return _normalize_number(value)

    return AnalysisUpdate()
