from __future__ import annotations

import logging

from ..cache import TTLCache
from ..catalog.data_store import CatalogStore
from ..catalog.models import Plan
from .config import DEFAULT_CHAT_CONFIG, ChatConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_TEMPLATE = """\
당신은 통신 요금제 안내 전문 챗봇입니다.

사용자가 인사하거나 간단한 말을 걸어오면 친절하게 응답해주세요.
아래 제공된 요금제를 참고해, 사용자의 조건(가격, 데이터 사용량, 나이, 통화 등)을 \
기준으로 최적의 요금제를 추천하세요.
사용자의 연령 조건에 주의하세요. 예: 사용자가 50살이라면 max_age가 없거나 50 이상인 \
요금제만 추천해야 합니다.

요금제와 무관한 주제(정치, 날씨 등)일 경우 다음처럼 대답하세요:
"죄송합니다. 요금제 관련 질문만 도와드릴 수 있습니다."

아래는 요금제 목록입니다:
{plan_summaries}"""

_PROMPT_KEY = "system_prompt"


def summarize_plan(plan: Plan) -> str:
    data_info = next((info for info in plan.infos if "데이터" in info), "정보 없음")
    share_info = next(
        (info for info in plan.infos if "테더링" in info or "쉐어링" in info),
        "정보 없음",
    )
    benefits = ", ".join(f"{k}: {v}" for k, v in plan.benefits.items()) or "없음"
    if isinstance(plan.badge, list):
        badge = ", ".join(plan.badge) or "없음"
    else:
        badge = plan.badge or "없음"
    return (
        f"요금제명: {plan.name}, 카테고리: {plan.category.value}, 가격: {plan.price_value}원, "
        f"데이터: {data_info}, 테더링+쉐어링: {share_info}, 혜택: {benefits}, "
        f"연령대: {plan.min_age or '전체'}~{plan.max_age or '전체'}, 태그: {badge}"
    )


def build_system_prompt(plans: list[Plan]) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        plan_summaries="\n".join(summarize_plan(p) for p in plans),
    )


class SystemPromptProvider:
    """Builds the assistant's system prompt and caches it for ``prompt_cache_ttl`` seconds."""

    def __init__(
        self,
        catalog: CatalogStore,
        config: ChatConfig = DEFAULT_CHAT_CONFIG,
        cache: TTLCache | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config
        self.cache = cache or TTLCache(ttl=config.prompt_cache_ttl)

    def _build(self) -> str:
        plans = self.catalog.cheapest_plans(self.config.plan_summary_limit)
        logger.info("Rebuilding chat system prompt from %d plan(s)", len(plans))
        return build_system_prompt(plans)

    def get(self) -> str:
        return self.cache.get_or_set(_PROMPT_KEY, self._build)
