from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from ..catalog.models import Plan

SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,100}$"

MAX_ANSWER_LENGTH = 500
MAX_CHOICES = 10
MAX_NUMERIC_ANSWER = 1_000_000

# Strict members keep JSON numbers, strings and arrays in their own variant
# instead of being coerced into one another.
AnswerValue = Union[StrictStr, list[StrictStr], StrictInt, StrictFloat]


class Answer(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("question_id", "questionId"),
    )
    answer: AnswerValue

    @field_validator("answer")
    @classmethod
    def _check_answer(cls, value: AnswerValue) -> AnswerValue:
        if isinstance(value, str):
            if not value.strip():
                raise ValueError("Answer text must not be blank")
            if len(value) > MAX_ANSWER_LENGTH:
                raise ValueError(f"Answer text exceeds {MAX_ANSWER_LENGTH} characters")
        elif isinstance(value, list):
            if not value:
                raise ValueError("Multiple-choice answer must select at least one option")
            if len(value) > MAX_CHOICES:
                raise ValueError(f"At most {MAX_CHOICES} options may be selected")
            if any(not item.strip() for item in value):
                raise ValueError("Multiple-choice answer contains a blank option")
        else:
            if not math.isfinite(value) or value < 0:
                raise ValueError("Numeric answer must be a finite number >= 0")
            if value > MAX_NUMERIC_ANSWER:
                raise ValueError(f"Numeric answer exceeds {MAX_NUMERIC_ANSWER}")
        return value


class DiagnosisRequest(BaseModel):
    answers: list[Answer] = Field(..., min_length=1)
    session_id: str | None = Field(
        default=None,
        pattern=SESSION_ID_PATTERN,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )


class Analysis(BaseModel):
    data_usage_gb: float = 0
    budget_won: float = 0
    age: int | None = None
    preferences: list[str] = Field(default_factory=list)
    usage_patterns: list[str] = Field(default_factory=list)


class ScoredPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan_id: str
    match_score: int = Field(..., ge=0, le=100)
    reasons: list[str] = Field(default_factory=list, max_length=3)


class DiagnosisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: str | None = None
    answers: list[Answer]
    analysis: Analysis
    recommended_plans: list[ScoredPlan]
    total_score: int = Field(..., ge=0, le=100)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RecommendedPlan(BaseModel):
    plan: Plan
    match_score: int
    reasons: list[str]


class DiagnosisResponse(BaseModel):
    session_id: str
    analysis: Analysis
    recommended_plans: list[RecommendedPlan]
    total_score: int
    outcome: str = "recommended"
    message: str | None = None
    created_at: datetime | None = None


class DiagnosisResultOut(BaseModel):
    session_id: str
    user_id: str | None
    answers: list[Answer]
    analysis: Analysis
    recommended_plans: list[RecommendedPlan]
    total_score: int
    created_at: datetime


class HistoryItem(BaseModel):
    session_id: str
    total_score: int
    analysis: Analysis
    created_at: datetime


class HistoryResponse(BaseModel):
    history: list[HistoryItem]
    total_count: int
    total_pages: int
    current_page: int
    has_next: bool
    has_prev: bool
