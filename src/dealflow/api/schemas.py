# src/dealflow/api/schemas.py
from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --------------------------------------------
# Auth
# --------------------------------------------

class RegisterRequest(_CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: str
    password: str = Field(min_length=6, max_length=128)

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("username must be at least 3 characters")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = v.strip().lower()
        if not _EMAIL_RE.match(v):
            raise ValueError("invalid email address")
        return v


class LoginRequest(_CamelModel):
    email: str | None = None
    username: str | None = None
    password: str

    @model_validator(mode="after")
    def _needs_login(self) -> "LoginRequest":
        if not (self.email or self.username):
            raise ValueError("email or username is required")
        return self

    @property
    def login(self) -> str:
        if self.email:
            return self.email.strip().lower()
        return (self.username or "").strip()


class UserOut(_CamelModel):
    id: int
    username: str
    email: str


class AuthResponse(_CamelModel):
    success: bool = True
    token: str
    user: UserOut


# --------------------------------------------
# Properties
# --------------------------------------------

class AnalyzeRequest(_CamelModel):
    """
    Location + switches are typed here; the eleven numeric parameters stay in the
    extra fields and go through parse_property_parameters (lenient coercion + defaults).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    include_ai: bool = False

    @field_validator("address", "city", "state", "zip_code", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        # zipCode often arrives as a JSON number
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def raw_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"include_ai"})


class SaveResponse(_CamelModel):
    success: bool = True
    message: str
    property_id: int


# --------------------------------------------
# Feedback
# --------------------------------------------

class FeedbackRequest(_CamelModel):
    pain_point: str | None = Field(default=None, max_length=2000)
    almost_quit_reason: str | None = Field(default=None, max_length=2000)
    rating: int | None = Field(default=None, ge=1, le=5)
