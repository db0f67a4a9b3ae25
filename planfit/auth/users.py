from __future__ import annotations

import threading
import time
import uuid
from datetime import date
from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}
_lock = threading.Lock()


class DuplicateUserError(Exception):
    """Raised when the email or nickname is already registered."""


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _public(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if k != "password_hash"}


def _snapshot() -> list[dict[str, Any]]:
    with _lock:
        return list(_users.values())


def compute_age(birth_year: int | None, today: date | None = None) -> int | None:
    """Age in years from a birth year, or ``None`` when unknown."""
    if not birth_year:
        return None
    today = today or date.today()
    return today.year - birth_year


def create_user(
    nickname: str,
    email: str,
    password: str,
    birth_year: int | None = None,
    role: str = "user",
) -> dict[str, Any]:
    """Register a user. Returns the public user dict."""
    email = email.strip().lower()
    nickname = nickname.strip()
    password_hash = _hash_password(password)
    with _lock:
        for record in _users.values():
            if record["email"] == email or record["nickname"] == nickname:
                raise DuplicateUserError("Email or nickname is already in use")
        user_id = uuid.uuid4().hex
        _users[user_id] = {
            "id": user_id,
            "nickname": nickname,
            "email": email,
            "role": role,
            "birth_year": birth_year,
            "created_at": time.time(),
            "password_hash": password_hash,
        }
        return _public(_users[user_id])


def authenticate(email: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns the public user dict or ``None``."""
    email = email.strip().lower()
    # bcrypt runs outside the lock on a snapshot of the records.
    for record in _snapshot():
        if record["email"] == email and _verify_password(password, record["password_hash"]):
            return _public(record)
    return None


def get_user(user_id: str) -> dict[str, Any] | None:
    with _lock:
        record = _users.get(user_id)
        return _public(record) if record else None


def get_user_by_nickname(nickname: str) -> dict[str, Any] | None:
    for record in _snapshot():
        if record["nickname"] == nickname:
            return _public(record)
    return None


def update_user(
    user_id: str,
    nickname: str | None = None,
    password: str | None = None,
) -> dict[str, Any] | None:
    """Change a user's nickname and/or password.

    Returns the updated public user dict, or ``None`` when the user no longer
    exists. Raises ``DuplicateUserError`` if another user holds the nickname.
    """
    password_hash = _hash_password(password) if password else None
    with _lock:
        record = _users.get(user_id)
        if record is None:
            return None
        if nickname:
            nickname = nickname.strip()
            if any(r["nickname"] == nickname and r["id"] != user_id for r in _users.values()):
                raise DuplicateUserError("Nickname is already in use")
            record["nickname"] = nickname
        if password_hash:
            record["password_hash"] = password_hash
        return _public(record)


def delete_user(user_id: str) -> bool:
    """Remove a user. Returns ``False`` when there was nothing to remove."""
    with _lock:
        return _users.pop(user_id, None) is not None


def _seed_users() -> None:
    """Pre-seed demo users on import."""
    create_user("demo", "user@planfit.kr", "user1234", birth_year=1998)
    create_user("admin", "admin@planfit.kr", "admin1234", role="admin")


def reset_users() -> None:
    """Drop every registered user and restore the demo accounts."""
    with _lock:
        _users.clear()
    _seed_users()


_seed_users()
