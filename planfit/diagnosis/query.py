from __future__ import annotations

import math
from dataclasses import dataclass

from ..catalog.models import Plan
from .config import DEFAULT_DIAGNOSIS_CONFIG, DiagnosisConfig
from .models import Analysis


@dataclass(frozen=True)
class CandidateFilter:
    """Coarse pre-filter applied to the catalog before scoring.

    Only age eligibility and a price ceiling narrow the set; data and usage
    fit are left to the scorer so near misses still get ranked.
    """

    age: int | None = None
    price_ceiling: int | None = None

    def matches(self, plan: Plan) -> bool:
        if not plan.active:
            return False
        if self.age is not None:
            if plan.min_age is not None and plan.min_age > self.age:
                return False
            if plan.max_age is not None and plan.max_age < self.age:
                return False
        if self.price_ceiling is not None and plan.price_value > self.price_ceiling:
            return False
        return True


def build_candidate_filter(
    analysis: Analysis,
    config: DiagnosisConfig = DEFAULT_DIAGNOSIS_CONFIG,
) -> CandidateFilter:
    price_ceiling = None
    if analysis.budget_won > 0:
        price_ceiling = math.floor(round(analysis.budget_won * config.budget_headroom, 6))
    return CandidateFilter(age=analysis.age, price_ceiling=price_ceiling)
