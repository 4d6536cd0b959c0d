# src/dealflow/api/deps.py
from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dealflow.adapters.config import config
from dealflow.adapters.llm_client import make_completion_client
from dealflow.adapters.logging_utils import get_logger
from dealflow.adapters.sql_repo import (
    SqlDealRepository,
    SqlFeedbackRepository,
    SqlUserRepository,
    make_engine,
)
from dealflow.domain.ports import DealRepository, FeedbackRepository, UserRepository
from dealflow.services.ai_agent import PropertyAIAgent
from dealflow.services.auth import AuthError, decode_access_token

logger = get_logger(__name__)

# -------------------------------------------------------------------
# Single init at startup (one engine shared by every repository)
# -------------------------------------------------------------------
_engine = make_engine(config.DB_URI)
_user_repo = SqlUserRepository(engine=_engine)
_deal_repo = SqlDealRepository(engine=_engine)
_feedback_repo = SqlFeedbackRepository(engine=_engine)

_completion_client = make_completion_client()
_ai_agent = PropertyAIAgent(_completion_client, max_workers=config.AI_MAX_WORKERS) if _completion_client else None

_bearer = HTTPBearer(auto_error=False)


def get_user_repo() -> UserRepository:
    return _user_repo


def get_deal_repo() -> DealRepository:
    return _deal_repo


def get_feedback_repo() -> FeedbackRepository:
    return _feedback_repo


def get_ai_agent() -> PropertyAIAgent | None:
    return _ai_agent


def _user_id_from(credentials: HTTPAuthorizationCredentials | None) -> int:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access token required")
    try:
        claims = decode_access_token(credentials.credentials)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    return int(claims["user_id"])


def require_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    users: UserRepository = Depends(get_user_repo),
) -> int:
    user_id = _user_id_from(credentials)
    if users.get(user_id) is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user_id


def optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> int | None:
    """Anonymous callers get None; a bad token is ignored rather than rejected."""
    if credentials is None:
        return None
    try:
        return _user_id_from(credentials)
    except HTTPException:
        logger.info("optional_auth_ignored_bad_token")
        return None
