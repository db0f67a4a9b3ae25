from __future__ import annotations

import threading
import time
from typing import Any

_bookmarks: list[dict[str, Any]] = []
_lock = threading.Lock()


class DuplicateBookmarkError(Exception):
    """Raised when a user bookmarks the same plan twice."""


def add_bookmark(user_id: str, plan_id: str) -> dict[str, Any]:
    with _lock:
        if any(b["user_id"] == user_id and b["plan_id"] == plan_id for b in _bookmarks):
            raise DuplicateBookmarkError(f"Plan {plan_id} is already bookmarked")
        bookmark = {"user_id": user_id, "plan_id": plan_id, "created_at": time.time()}
        _bookmarks.append(bookmark)
    return bookmark


def remove_bookmark(user_id: str, plan_id: str) -> bool:
    """Remove a bookmark. Returns ``False`` when there was nothing to remove."""
    with _lock:
        for i, b in enumerate(_bookmarks):
            if b["user_id"] == user_id and b["plan_id"] == plan_id:
                del _bookmarks[i]
                return True
    return False


def get_bookmarks(user_id: str) -> list[dict[str, Any]]:
    """Return the user's bookmarks, newest first."""
    with _lock:
        owned = [b for b in _bookmarks if b["user_id"] == user_id]
    return list(reversed(owned))


def clear_bookmarks() -> None:
    with _lock:
        _bookmarks.clear()
