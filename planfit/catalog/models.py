from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class PlanCategory(str, Enum):
    five_g = "5G"
    lte = "LTE"
    other = "other"


class QuestionType(str, Enum):
    single = "single"
    multiple = "multiple"
    range = "range"
    input = "input"


class QuestionCategory(str, Enum):
    data = "data"
    budget = "budget"
    usage = "usage"
    age = "age"
    preference = "preference"


class Plan(BaseModel):
    id: str
    name: str
    category: PlanCategory
    price_value: int = Field(..., ge=0)
    price_label: str | None = None
    infos: list[str] = Field(default_factory=list)
    benefits: dict[str, str] = Field(default_factory=dict)
    badge: str | list[str] | None = None
    min_age: int | None = None
    max_age: int | None = None
    plan_speed: str | None = None
    brands: list[str] = Field(default_factory=list)
    active: bool = True


class Question(BaseModel):
    id: str
    order: int
    text: str
    type: QuestionType
    options: list[str] = Field(default_factory=list)
    category: QuestionCategory
    weight: int = Field(default=1, ge=1, le=10)
    active: bool = True


class PlanListResponse(BaseModel):
    plans: list[Plan]
    total_count: int
    total_pages: int
    current_page: int


class PlanDetailResponse(BaseModel):
    plan: Plan
    similar_plans: list[Plan]
