# src/dealflow/adapters/sql_repo.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Field, Session, SQLModel, create_engine, select

from dealflow.domain.ports import DealRecord, UserRecord


class DuplicateUserError(ValueError):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_engine(uri: str):
    connect_args: dict[str, Any] = {}
    if uri.startswith("sqlite"):
        # FastAPI runs sync handlers on a threadpool
        connect_args["check_same_thread"] = False
    engine = create_engine(uri, echo=False, connect_args=connect_args)
    SQLModel.metadata.create_all(engine)
    return engine


# ---------- Users ----------

class UserRow(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=_utcnow)


def _user_record(row: UserRow) -> UserRecord:
    return UserRecord(
        id=int(row.id),  # type: ignore[arg-type]
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at.isoformat(),
    )


class SqlUserRepository:
    def __init__(self, uri: str = "sqlite:///dealflow.db", *, engine=None):
        self.engine = engine or make_engine(uri)

    def create(self, *, username: str, email: str, password_hash: str) -> UserRecord:
        with Session(self.engine) as session:
            stmt = select(UserRow).where(or_(UserRow.username == username, UserRow.email == email))
            if session.exec(stmt).first():
                raise DuplicateUserError("User with this username or email already exists")

            row = UserRow(username=username, email=email, password_hash=password_hash)
            session.add(row)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateUserError("User with this username or email already exists") from e
            session.refresh(row)
            return _user_record(row)

    def get(self, user_id: int) -> UserRecord | None:
        with Session(self.engine) as session:
            row = session.get(UserRow, user_id)
            return _user_record(row) if row else None

    def find_by_login(self, login: str) -> UserRecord | None:
        """Look a user up by email or username."""
        with Session(self.engine) as session:
            stmt = select(UserRow).where(or_(UserRow.email == login, UserRow.username == login))
            row = session.exec(stmt).first()
            return _user_record(row) if row else None


# ---------- Saved deals ----------

class PropertyRow(SQLModel, table=True):
    __tablename__ = "properties"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, foreign_key="users.id")

    address: str
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

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

    # report subset
    cash_flow: float
    roi: float | None = None
    cap_rate: float | None = None
    cash_on_cash_return: float | None = None

    created_at: datetime = Field(default_factory=_utcnow, index=True)


def _deal_record(row: PropertyRow) -> DealRecord:
    rec: dict[str, Any] = row.model_dump()
    rec["created_at"] = row.created_at.isoformat()
    return DealRecord(**rec)  # type: ignore[typeddict-item]


class SqlDealRepository:
    def __init__(self, uri: str = "sqlite:///dealflow.db", *, engine=None):
        self.engine = engine or make_engine(uri)

    def save(self, record: DealRecord) -> int:
        row = PropertyRow(**{k: v for k, v in record.items() if k not in ("id", "created_at")})
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return int(row.id)  # type: ignore[arg-type]

    def list_for_user(self, user_id: int) -> list[DealRecord]:
        with Session(self.engine) as session:
            stmt = (
                select(PropertyRow)
                .where(PropertyRow.user_id == user_id)
                .order_by(PropertyRow.created_at.desc(), PropertyRow.id.desc())
            )
            return [_deal_record(r) for r in session.exec(stmt)]

    def delete_for_user(self, *, deal_id: int, user_id: int) -> bool:
        # owner scoping lives in the WHERE clause
        stmt = delete(PropertyRow).where(PropertyRow.id == deal_id, PropertyRow.user_id == user_id)
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
        return bool(result.rowcount)


# ---------- Feedback ----------

class FeedbackRow(SQLModel, table=True):
    __tablename__ = "feedback"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int | None = Field(default=None, index=True, foreign_key="users.id")

    pain_point: str | None = None
    almost_quit_reason: str | None = None
    rating: int | None = None

    created_at: datetime = Field(default_factory=_utcnow, index=True)


class SqlFeedbackRepository:
    def __init__(self, uri: str = "sqlite:///dealflow.db", *, engine=None):
        self.engine = engine or make_engine(uri)

    def add(
        self,
        *,
        user_id: int | None,
        pain_point: str | None,
        almost_quit_reason: str | None,
        rating: int | None,
    ) -> int:
        row = FeedbackRow(
            user_id=user_id,
            pain_point=pain_point,
            almost_quit_reason=almost_quit_reason,
            rating=rating,
        )
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return int(row.id)  # type: ignore[arg-type]

    def list_recent(self, limit: int = 100) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            stmt = select(FeedbackRow).order_by(FeedbackRow.created_at.desc(), FeedbackRow.id.desc()).limit(limit)
            out = []
            for r in session.exec(stmt):
                rec = r.model_dump()
                rec["created_at"] = r.created_at.isoformat()
                out.append(rec)
            return out
