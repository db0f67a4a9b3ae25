from __future__ import annotations

from dataclasses import dataclass, field


def _default_weights() -> dict[str, float]:
    return {"data": 0.4, "budget": 0.3, "usage": 0.2, "bonus": 0.1}


@dataclass(frozen=True)
class DiagnosisConfig:
    top_n: int = 5
    max_reasons: int = 3
    budget_headroom: float = 1.2
    weights: dict[str, float] = field(default_factory=_default_weights)


DEFAULT_DIAGNOSIS_CONFIG = DiagnosisConfig()
