from __future__ import annotations

import json
import math
from typing import Any, Iterable

import pandas as pd

from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .models import Plan, Question

PLAN_COLUMNS = [
    "id",
    "name",
    "category",
    "price_value",
    "price_label",
    "infos",
    "benefits",
    "badge",
    "min_age",
    "max_age",
    "plan_speed",
    "brands",
    "active",
]

SORTABLE_COLUMNS = ("price_value", "name", "category")


def _optional(value: Any) -> Any:
    """Map pandas missing markers (NaN/None) to ``None``."""
    if isinstance(value, (list, dict)):
        return value
    return value if pd.notna(value) else None


def _optional_int(value: Any) -> int | None:
    value = _optional(value)
    return int(value) if value is not None else None


def _row_to_plan(row: pd.Series) -> Plan:
    return Plan(
        id=str(row["id"]),
        name=row["name"],
        category=row["category"],
        price_value=int(row["price_value"]),
        price_label=_optional(row["price_label"]),
        infos=row["infos"] or [],
        benefits=row["benefits"] or {},
        badge=_optional(row["badge"]),
        min_age=_optional_int(row["min_age"]),
        max_age=_optional_int(row["max_age"]),
        plan_speed=_optional(row["plan_speed"]),
        brands=row["brands"] or [],
        active=bool(row["active"]),
    )


def _build_frame(records: Iterable[dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for record in records:
        # Validate through the model so bad seed data fails at load time.
        plan = Plan(**record)
        rows.append(plan.model_dump(mode="json"))
    df = pd.DataFrame(rows, columns=PLAN_COLUMNS)
    df["min_age"] = pd.to_numeric(df["min_age"], errors="coerce")
    df["max_age"] = pd.to_numeric(df["max_age"], errors="coerce")
    df["name_lower"] = df["name"].fillna("").str.lower()
    return df.sort_values("id", kind="stable").reset_index(drop=True)


class CatalogStore:
    """In-memory plan catalog backed by a pandas DataFrame.

    Plans are kept sorted by id so every lookup returns a deterministic order.
    """

    def __init__(self, plans: pd.DataFrame, questions: list[Question]) -> None:
        self._plans = plans
        self._questions = sorted(questions, key=lambda q: q.order)

    @classmethod
    def from_records(
        cls,
        plans: Iterable[dict[str, Any]],
        questions: Iterable[dict[str, Any]] = (),
    ) -> CatalogStore:
        return cls(_build_frame(plans), [Question(**q) for q in questions])

    @classmethod
    def from_config(cls, config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> CatalogStore:
        with open(config.plans_path, encoding="utf-8") as fh:
            plans = json.load(fh)
        with open(config.questions_path, encoding="utf-8") as fh:
            questions = json.load(fh)
        return cls.from_records(plans, questions)

    def _to_plans(self, frame: pd.DataFrame) -> list[Plan]:
        return [_row_to_plan(row) for _, row in frame.iterrows()]

    # ── Diagnosis lookups ────────────────────────────────────────────────

    def find_candidates(
        self,
        age: int | None = None,
        price_ceiling: int | None = None,
    ) -> list[Plan]:
        """Return active plans eligible for ``age`` and priced at or below ``price_ceiling``."""
        df = self._plans
        mask = df["active"].astype(bool)

        if age is not None:
            mask = mask & (df["min_age"].isna() | (df["min_age"] <= age))
            mask = mask & (df["max_age"].isna() | (df["max_age"] >= age))

        if price_ceiling is not None:
            mask = mask & (df["price_value"] <= price_ceiling)

        return self._to_plans(df.loc[mask])

    def find_questions_by_id(self, ids: Iterable[str]) -> list[Question]:
        """Return the active questions among ``ids``; unknown ids are skipped."""
        wanted = set(ids)
        return [q for q in self._questions if q.active and q.id in wanted]

    def active_questions(self) -> list[Question]:
        return [q for q in self._questions if q.active]

    # ── Catalog browsing ─────────────────────────────────────────────────

    def get_plan(self, plan_id: str, include_inactive: bool = False) -> Plan | None:
        df = self._plans
        matches = df.loc[df["id"] == plan_id]
        if matches.empty:
            return None
        plan = _row_to_plan(matches.iloc[0])
        if not plan.active and not include_inactive:
            return None
        return plan

    def get_plans_by_id(self, ids: Iterable[str]) -> dict[str, Plan]:
        """Return active plans keyed by id for the given ids."""
        wanted = set(ids)
        df = self._plans
        frame = df.loc[df["id"].isin(wanted) & df["active"].astype(bool)]
        return {plan.id: plan for plan in self._to_plans(frame)}

    def list_plans(
        self,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        category: str | None = None,
        sort_by: str = "price_value",
        sort_order: str = "asc",
    ) -> tuple[list[Plan], int]:
        """Return one page of active plans and the total number of matches."""
        if sort_by not in SORTABLE_COLUMNS:
            raise ValueError(f"Unsupported sort column: {sort_by}")

        df = self._plans
        mask = df["active"].astype(bool)

        if search:
            needle = search.strip().lower()
            mask = mask & df["name_lower"].str.contains(needle, regex=False, na=False)

        if category:
            mask = mask & (df["category"] == category)

        matches = df.loc[mask].sort_values(
            [sort_by, "id"],
            ascending=[sort_order == "asc", True],
            kind="stable",
        )
        total = len(matches)
        start = (page - 1) * limit
        return self._to_plans(matches.iloc[start:start + limit]), total

    def similar_plans(self, plan: Plan, limit: int = 3, spread: float = 0.3) -> list[Plan]:
        """Active plans in the same category priced within ``spread`` of ``plan``."""
        df = self._plans
        low = plan.price_value * (1 - spread)
        high = plan.price_value * (1 + spread)
        mask = (
            df["active"].astype(bool)
            & (df["id"] != plan.id)
            & (df["category"] == plan.category.value)
            & (df["price_value"] >= low)
            & (df["price_value"] <= high)
        )
        return self._to_plans(df.loc[mask].head(limit))

    def cheapest_plans(self, limit: int) -> list[Plan]:
        df = self._plans
        frame = df.loc[df["active"].astype(bool)].sort_values(
            ["price_value", "id"], kind="stable",
        )
        return self._to_plans(frame.head(limit))


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


_catalog: CatalogStore | None = None


def get_catalog() -> CatalogStore:
    """Return the process-wide catalog, loading the seed files on first call."""
    global _catalog
    if _catalog is None:
        _catalog = CatalogStore.from_config()
    return _catalog
