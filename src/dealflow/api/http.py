# src/dealflow/api/http.py
from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dealflow.adapters.config import config
from dealflow.adapters.logging_utils import get_logger
from dealflow.adapters.sql_repo import DuplicateUserError
from dealflow.analysis.metrics import analyze_property
from dealflow.domain.ports import DealRepository, FeedbackRepository, UserRepository
from dealflow.domain.property import (
    InvalidPropertyParameters,
    parse_property_location,
    parse_property_parameters,
)
from dealflow.services.ai_agent import AIServiceError, PropertyAIAgent, ai_unavailable
from dealflow.services.auth import create_access_token, hash_password, verify_password
from dealflow.services.deals import delete_deal, list_deals, save_deal

from .deps import (
    get_ai_agent,
    get_deal_repo,
    get_feedback_repo,
    get_user_repo,
    optional_user_id,
    require_user_id,
)
from .schemas import (
    AnalyzeRequest,
    AuthResponse,
    FeedbackRequest,
    LoginRequest,
    RegisterRequest,
    SaveResponse,
    UserOut,
)

logger = get_logger(__name__)

app = FastAPI(title="DealFlow API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# Error envelope
# -----------------------------
@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def _request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        fields.setdefault(".".join(loc) or "body", err.get("msg", "invalid"))
    detail = "; ".join(f"{k}: {v}" for k, v in fields.items())
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": f"Invalid request: {detail}", "fields": fields},
    )


@app.exception_handler(InvalidPropertyParameters)
async def _params_invalid(request: Request, exc: InvalidPropertyParameters) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": str(exc), "fields": exc.errors},
    )


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "OK", "message": "DealFlow API is running"}


# -----------------------------
# AUTH
# -----------------------------
def _user_out(user: dict[str, Any]) -> UserOut:
    return UserOut(id=user["id"], username=user["username"], email=user["email"])


@app.post("/api/auth/register", response_model=AuthResponse)
def register(body: RegisterRequest, users: UserRepository = Depends(get_user_repo)) -> AuthResponse:
    try:
        user = users.create(
            username=body.username,
            email=body.email,
            password_hash=hash_password(body.password),
        )
    except DuplicateUserError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info("user_registered", extra={"context": {"user_id": user["id"]}})
    token = create_access_token(user_id=user["id"], username=user["username"])
    return AuthResponse(token=token, user=_user_out(user))


@app.post("/api/auth/login", response_model=AuthResponse)
def login(body: LoginRequest, users: UserRepository = Depends(get_user_repo)) -> AuthResponse:
    user = users.find_by_login(body.login)
    if user is None or not verify_password(body.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user_id=user["id"], username=user["username"])
    return AuthResponse(token=token, user=_user_out(user))


@app.get("/api/auth/me")
def me(
    user_id: int = Depends(require_user_id),
    users: UserRepository = Depends(get_user_repo),
) -> dict[str, Any]:
    user = users.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "user": _user_out(user).model_dump()}


# -----------------------------
# PROPERTIES
# -----------------------------
@app.post("/api/properties/analyze")
def analyze_endpoint(
    body: AnalyzeRequest,
    agent: PropertyAIAgent | None = Depends(get_ai_agent),
) -> dict[str, Any]:
    """
    Metrics for one property (no auth). AI insights only when `includeAi` is set;
    an AI failure never fails the numeric analysis.
    """
    raw = body.raw_payload()
    params = parse_property_parameters(raw)
    report = analyze_property(params)

    out: dict[str, Any] = {"success": True, "analysis": report.to_dict()}

    if body.include_ai:
        if agent is None:
            out["ai"] = ai_unavailable("AI insights are not configured")
        else:
            location = parse_property_location(raw)
            try:
                out["ai"] = agent.analyze(location, params, report)
            except AIServiceError as e:
                logger.warning("ai_analysis_failed", extra={"context": {"error": str(e)}})
                out["ai"] = ai_unavailable("Failed to generate AI analysis")

    return out


@app.post("/api/properties/save", response_model=SaveResponse)
def save_endpoint(
    body: AnalyzeRequest,
    user_id: int = Depends(require_user_id),
    deals: DealRepository = Depends(get_deal_repo),
) -> SaveResponse:
    raw = body.raw_payload()
    location = parse_property_location(raw)
    params = parse_property_parameters(raw)
    report = analyze_property(params)

    try:
        deal_id = save_deal(deals, user_id=user_id, location=location, params=params, report=report)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return SaveResponse(message="Property saved successfully", property_id=deal_id)


@app.get("/api/properties/my-deals")
def my_deals(
    user_id: int = Depends(require_user_id),
    deals: DealRepository = Depends(get_deal_repo),
) -> dict[str, Any]:
    return {"success": True, "properties": list_deals(deals, user_id=user_id)}


@app.delete("/api/properties/{property_id}")
def delete_endpoint(
    property_id: int,
    user_id: int = Depends(require_user_id),
    deals: DealRepository = Depends(get_deal_repo),
) -> dict[str, Any]:
    if not delete_deal(deals, user_id=user_id, deal_id=property_id):
        raise HTTPException(status_code=404, detail="Property not found")
    return {"success": True, "message": "Property deleted successfully"}


# -----------------------------
# FEEDBACK
# -----------------------------
@app.post("/api/feedback/submit")
def submit_feedback(
    body: FeedbackRequest,
    user_id: int | None = Depends(optional_user_id),
    feedback: FeedbackRepository = Depends(get_feedback_repo),
) -> dict[str, Any]:
    feedback_id = feedback.add(
        user_id=user_id,
        pain_point=body.pain_point,
        almost_quit_reason=body.almost_quit_reason,
        rating=body.rating,
    )
    return {"success": True, "message": "Thank you for your feedback!", "feedbackId": feedback_id}


@app.get("/api/feedback/all", dependencies=[Depends(require_user_id)])
def all_feedback(feedback: FeedbackRepository = Depends(get_feedback_repo)) -> dict[str, Any]:
    return {"success": True, "feedback": feedback.list_recent(limit=100)}
