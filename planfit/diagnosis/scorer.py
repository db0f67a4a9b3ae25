"""
Plan scoring.

Every candidate gets four sub-scores (0-100) which are blended with fixed
weights into a 0-100 match score:

* data fit    (0.4) - plan data allowance vs. estimated monthly usage
* budget fit  (0.3) - plan price vs. stated budget
* usage fit   (0.2) - usage patterns vs. plan features and benefits
* bonus       (0.1) - "popular" / "latest" badges

Each rule that fires contributes a human-readable reason; reasons are kept
in evaluation order (data, budget, usage, bonus) and truncated to three.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable

from ..catalog.models import Plan
from .config import DEFAULT_DIAGNOSIS_CONFIG, DiagnosisConfig
from .models import Analysis, ScoredPlan

logger = logging.getLogger(__name__)

UNLIMITED_MARKERS = ("무제한", "unlimited")
_GB_RE = re.compile(r"(\d+)\s?(?:gb|gigabyte)")

VIDEO_MARKERS = ("무제한", "unlimited", "넷플릭스", "netflix", "youtube", "유튜브")
GAMING_MARKERS = ("5g", "고속")
MUSIC_MARKERS = ("바이브", "지니", "멜론", "spotify", "음악")

POPULAR_BADGE = "인기"
LATEST_BADGE = "최신"


@dataclass
class ScoringOutcome:
    """Result of scoring one plan: either ``scored`` or ``error`` is set."""

    plan: Plan
    scored: ScoredPlan | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.scored is not None


def round_half_up(value: float) -> int:
    # Round to 6 places first so 0.3 * 85 (25.499999...) still rounds up.
    return int(math.floor(round(value, 6) + 0.5))


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def data_fit(plan: Plan, analysis: Analysis) -> tuple[int, list[str]]:
    text = " ".join(plan.infos).lower()

    if any(marker in text for marker in UNLIMITED_MARKERS):
        if analysis.data_usage_gb > 50:
            return 100, ["무제한 데이터로 대용량 사용에 최적화"]
        return 75, ["무제한 데이터 제공"]

    match = _GB_RE.search(text)
    if match:
        plan_gb = int(match.group(1))
        diff = abs(plan_gb - analysis.data_usage_gb)
        if diff <= 10:
            return 100, ["데이터 사용량과 정확히 일치"]
        if diff <= 20:
            return 75, ["데이터 사용량과 유사함"]
        if plan_gb >= analysis.data_usage_gb:
            return 60, ["충분한 데이터 제공"]

    return 25, []


def budget_fit(plan: Plan, analysis: Analysis) -> tuple[int, list[str]]:
    if not analysis.budget_won:
        return 50, []

    diff = analysis.budget_won - plan.price_value
    if diff >= 0:
        if diff <= 10000:
            return 100, ["예산에 딱 맞는 가격"]
        if diff <= 20000:
            return 85, ["예산 내 합리적 가격"]
        return 70, [f"예산보다 {int(diff):,}원 저렴"]

    if -diff <= 10000:
        return 40, ["예산 약간 초과하지만 좋은 혜택"]
    return 15, []


def usage_fit(plan: Plan, analysis: Analysis) -> tuple[int, list[str]]:
    text = json.dumps(plan.model_dump(mode="json"), ensure_ascii=False).lower()
    patterns = set(analysis.usage_patterns)
    score = 0
    reasons: list[str] = []

    if "video-streaming" in patterns and any(m in text for m in VIDEO_MARKERS):
        score += 40
        reasons.append("영상 스트리밍에 최적화")

    if "gaming" in patterns and any(m in text for m in GAMING_MARKERS):
        score += 35
        reasons.append("게임에 적합한 고속 연결")

    if "music" in patterns and any(m in text for m in MUSIC_MARKERS):
        score += 25
        reasons.append("음악 서비스 혜택 제공")

    return min(score, 100), reasons


def bonus_fit(plan: Plan) -> tuple[int, list[str]]:
    if isinstance(plan.badge, str):
        badges = [plan.badge]
    else:
        badges = list(plan.badge or [])

    score = 0
    reasons: list[str] = []

    if any(POPULAR_BADGE in badge for badge in badges):
        score += 60
        reasons.append("인기 요금제")

    if any(LATEST_BADGE in badge for badge in badges):
        score += 40
        reasons.append("최신 요금제")

    return min(score, 100), reasons


# ---------------------------------------------------------------------------
# Scoring & ranking
# ---------------------------------------------------------------------------


def score_plan(
    plan: Plan,
    analysis: Analysis,
    config: DiagnosisConfig = DEFAULT_DIAGNOSIS_CONFIG,
) -> ScoredPlan:
    """Compute the match score and reasons for one plan. May raise on bad plan data."""
    w = config.weights
    parts = [
        (w["data"], data_fit(plan, analysis)),
        (w["budget"], budget_fit(plan, analysis)),
        (w["usage"], usage_fit(plan, analysis)),
        (w["bonus"], bonus_fit(plan)),
    ]

    total = 0.0
    reasons: list[str] = []
    for weight, (sub_score, sub_reasons) in parts:
        total += weight * sub_score
        reasons.extend(sub_reasons)

    match_score = max(0, min(100, round_half_up(total)))
    return ScoredPlan(
        plan_id=plan.id,
        match_score=match_score,
        reasons=reasons[: config.max_reasons],
    )


def score_candidates(
    plans: Iterable[Plan],
    analysis: Analysis,
    config: DiagnosisConfig = DEFAULT_DIAGNOSIS_CONFIG,
) -> list[ScoringOutcome]:
    """Score every plan independently; a failing plan yields a failed outcome."""
    outcomes: list[ScoringOutcome] = []
    for plan in plans:
        try:
            outcomes.append(ScoringOutcome(plan=plan, scored=score_plan(plan, analysis, config)))
        except Exception as exc:
            logger.warning("Scoring failed for plan %s, dropping it", plan.id, exc_info=True)
            outcomes.append(ScoringOutcome(plan=plan, error=exc))
    return outcomes


def rank_plans(
    plans: Iterable[Plan],
    analysis: Analysis,
    config: DiagnosisConfig = DEFAULT_DIAGNOSIS_CONFIG,
) -> list[ScoringOutcome]:
    """Return the top ``config.top_n`` successfully scored plans, best first.

    The sort is stable, so equal scores keep candidate order (plan id order
    as returned by the catalog).
    """
    scored = [o for o in score_candidates(plans, analysis, config) if o.ok]
    scored.sort(key=lambda o: o.scored.match_score, reverse=True)
    return scored[: config.top_n]
