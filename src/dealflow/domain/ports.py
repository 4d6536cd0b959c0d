# src/dealflow/domain/ports.py
from __future__ import annotations

from typing import Any, Protocol, TypedDict


# ----------------------------
# Saved deals
# ----------------------------

class DealRecord(TypedDict, total=False):
    id: int
    user_id: int
    address: str
    city: str | None
    state: str | None
    zip_code: str | None

    purchase_price: float
    down_payment_percent: float
    interest_rate: float
    loan_term: int
    monthly_rent: float
    property_tax: float
    insurance: float
    hoa_fees: float
    maintenance_percent: float
    vacancy_percent: float
    property_management_percent: float

    cash_flow: float
    roi: float | None
    cap_rate: float | None
    cash_on_cash_return: float | None

    created_at: str


class DealRepository(Protocol):
    def save(self, record: DealRecord) -> int:
        ...

    def list_for_user(self, user_id: int) -> list[DealRecord]:
        ...

    def delete_for_user(self, *, deal_id: int, user_id: int) -> bool:
        ...


# ----------------------------
# Users
# ----------------------------

class UserRecord(TypedDict):
    id: int
    username: str
    email: str
    password_hash: str
    created_at: str


class UserRepository(Protocol):
    def create(self, *, username: str, email: str, password_hash: str) -> UserRecord:
        ...

    def get(self, user_id: int) -> UserRecord | None:
        ...

    def find_by_login(self, login: str) -> UserRecord | None:
        ...


# ----------------------------
# Feedback
# ----------------------------

class FeedbackRepository(Protocol):
    def add(
        self,
        *,
        user_id: int | None,
        pain_point: str | None,
        almost_quit_reason: str | None,
        rating: int | None,
    ) -> int:
        ...

    def list_recent(self, limit: int = 100) -> list[dict[str, Any]]:
        ...


# ----------------------------
# LLM completion (AI insights)
# ----------------------------

class CompletionClient(Protocol):
    def complete(
        self,
        *,
        system: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        ...
