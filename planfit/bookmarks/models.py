from __future__ import annotations

from pydantic import BaseModel, Field

from ..catalog.models import Plan


class BookmarkRequest(BaseModel):
    plan_id: str = Field(..., min_length=1)


class BookmarkOut(BaseModel):
    plan: Plan
    created_at: float


class BookmarkListResponse(BaseModel):
    bookmarks: list[BookmarkOut]
