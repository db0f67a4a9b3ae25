from __future__ import annotations

import re
from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

_NICKNAME_RE = re.compile(r"^[가-힣a-zA-Z0-9]{2,20}$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _check_nickname(value: str) -> str:
    value = value.strip()
    if not _NICKNAME_RE.match(value):
        raise ValueError("Nickname must be 2-20 Korean letters, latin letters or digits")
    return value


def _check_password(value: str) -> str:
    if not re.search(r"[A-Za-z]", value) or not re.search(r"\d", value):
        raise ValueError("Password must contain letters and digits")
    return value


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    nickname: str
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    birth_year: int | None = None

    @field_validator("nickname")
    @classmethod
    def _nickname(cls, value: str) -> str:
        return _check_nickname(value)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        value = value.strip().lower()
        if not _EMAIL_RE.match(value):
            raise ValueError("Invalid email address")
        return value

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        return _check_password(value)

    @field_validator("birth_year")
    @classmethod
    def _birth_year(cls, value: int | None) -> int | None:
        if value is not None and not 1900 <= value <= date.today().year:
            raise ValueError("Birth year is out of range")
        return value


class UpdateUserRequest(BaseModel):
    nickname: str | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)

    @field_validator("nickname")
    @classmethod
    def _nickname(cls, value: str | None) -> str | None:
        return _check_nickname(value) if value is not None else None

    @field_validator("password")
    @classmethod
    def _password(cls, value: str | None) -> str | None:
        return _check_password(value) if value is not None else None

    @model_validator(mode="after")
    def _something_to_change(self) -> UpdateUserRequest:
        if self.nickname is None and self.password is None:
            raise ValueError("Provide a new nickname or password")
        return self


class UserOut(BaseModel):
    id: str
    nickname: str
    email: str
    role: str
    birth_year: int | None = None
    created_at: float | None = None


class UserProfile(BaseModel):
    nickname: str
    email: str
    created_at: float | None = None
