"""SiteAnalyzer API – FastAPI app and endpoints."""

import logging
import time
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.sessions import SessionMiddleware

import ai_service
import config
import scraper
from analyzer import analyze_website
from auth import (
    api_user_with_credits,
    authenticate,
    create_token,
    current_user,
    ensure_demo_user,
    register_user,
    user_with_credits,
)
from database import (
    DuplicateUserError,
    deduct_credit,
    get_user,
    init_db,
    insert_analysis,
    list_analyses,
    list_plans,
    log_api_call,
    public_user,
    user_stats,
)
from scheduler import start_scheduler, stop_scheduler
from schemas import (
    AnalysisResponse,
    AnalyzeRequest,
    AuthResponse,
    HistoryItem,
    LoginRequest,
    PlanItem,
    RegisterRequest,
    SignupRequest,
    StatsResponse,
    UserProfile,
)

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SiteAnalyzer API",
    description="Website scoring, recommendations and AI conversion critique",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=config.SESSION_SECRET, max_age=24 * 60 * 60)

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": "Too many requests, please try again later."})


@app.on_event("startup")
def startup() -> None:
    init_db()
    ensure_demo_user()
    if config.ENABLE_CREDIT_RESET:
        start_scheduler()


@app.on_event("shutdown")
def shutdown() -> None:
    stop_scheduler()


def _require_url(body: AnalyzeRequest) -> str:
    if not body.url:
        raise HTTPException(status_code=400, detail="URL is required")
    return body.url


def _run_analysis(url: str, recommendation_limit: int | None = None) -> dict:
    """Scrape and score `url`; the AI critique runs only when a key is configured."""
    critic = ai_service.critique_website if ai_service.is_enabled() else None
    try:
        return analyze_website(
            url,
            fetcher=scraper.scrape_page,
            critic=critic,
            recommendation_limit=recommendation_limit,
        )
    except scraper.ScrapeError as e:
        logger.warning("Analysis failed for %s: %s", url, e)
        raise HTTPException(status_code=502, detail={"error": "Analysis failed", "message": str(e)}) from e


def _auth_response(user: dict) -> AuthResponse:
    return AuthResponse(
        token=create_token(user["id"], user["email"]),
        user=UserProfile(**public_user(user)),
    )


@app.get("/api/health")
def health() -> dict:
    """Health check for deployment."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/api/auth/register", response_model=AuthResponse)
@limiter.limit(config.API_RATE_LIMIT)
def register(request: Request, body: RegisterRequest) -> AuthResponse:
    """Create a free-tier account with an API key and return a bearer token."""
    try:
        user = register_user(body.email, body.password, name=body.name, company=body.company)
    except DuplicateUserError:
        raise HTTPException(status_code=400, detail="Email already exists")
    return _auth_response(user)


@app.post("/api/auth/signup", response_model=AuthResponse)
@limiter.limit(config.API_RATE_LIMIT)
def signup(request: Request, body: SignupRequest) -> AuthResponse:
    """Signup form variant: requires name and accepted terms."""
    try:
        user = register_user(body.email, body.password, name=body.name)
    except DuplicateUserError:
        raise HTTPException(status_code=400, detail="Email already exists")
    return _auth_response(user)


@app.post("/api/auth/login", response_model=AuthResponse)
@limiter.limit(config.API_RATE_LIMIT)
def login(request: Request, body: LoginRequest) -> AuthResponse:
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    if body.email == config.DEMO_EMAIL.lower() and body.password == config.DEMO_PASSWORD:
        return _auth_response(ensure_demo_user())

    user = authenticate(body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _auth_response(user)


@app.get("/api/user/profile", response_model=UserProfile)
def profile(user: dict = Depends(current_user)) -> UserProfile:
    return UserProfile(**public_user(user))


@app.get("/api/user/history", response_model=list[HistoryItem])
def history(user: dict = Depends(current_user)) -> list[HistoryItem]:
    return [HistoryItem(**row) for row in list_analyses(user["id"], limit=50)]


@app.get("/api/user/stats", response_model=StatsResponse)
def stats(user: dict = Depends(current_user)) -> StatsResponse:
    return StatsResponse(**user_stats(user["id"]))


@app.post("/api/analyze", response_model=AnalysisResponse)
@limiter.limit(config.ANALYSIS_RATE_LIMIT)
def analyze(request: Request, body: AnalyzeRequest, user: dict = Depends(user_with_credits)) -> dict:
    """
    Pipeline: scrape page -> score -> recommend -> optional AI critique -> store -> deduct credit.
    """
    result = _run_analysis(_require_url(body))

    if not deduct_credit(user["id"]):
        raise HTTPException(status_code=402, detail="Insufficient credits")
    insert_analysis(user["id"], result["url"], result["overall_score"], result)

    refreshed = get_user(user["id"]) or user
    result["credits_remaining"] = refreshed["credits_remaining"]
    return result


@app.post("/api/analyze/trial", response_model=AnalysisResponse)
@limiter.limit(config.ANALYSIS_RATE_LIMIT)
def analyze_trial(request: Request, body: AnalyzeRequest) -> dict:
    """Anonymous analysis, limited per session, with the recommendation list truncated."""
    url = _require_url(body)

    trial_count = int(request.session.get("trial_count", 0))
    if trial_count >= config.TRIAL_LIMIT:
        raise HTTPException(
            status_code=402,
            detail={
                "error": "Trial limit reached",
                "message": "Sign up for a free account to continue analyzing websites.",
                "signup_url": "/signup",
            },
        )

    result = _run_analysis(url, recommendation_limit=config.TRIAL_RECOMMENDATION_LIMIT)
    result["limited_trial"] = True
    request.session["trial_count"] = trial_count + 1
    return result


@app.post("/api/v1/analyze", response_model=AnalysisResponse)
@limiter.limit(config.API_RATE_LIMIT)
def analyze_v1(request: Request, body: AnalyzeRequest, user: dict = Depends(api_user_with_credits)) -> dict:
    """Developer API: API-key auth, credit accounting and usage logging."""
    start = time.perf_counter()
    status_code = 500
    try:
        result = _run_analysis(_require_url(body))
        if not deduct_credit(user["id"]):
            raise HTTPException(status_code=402, detail="Insufficient credits")
        insert_analysis(user["id"], result["url"], result["overall_score"], result)
        status_code = 200
        return result
    except HTTPException as e:
        status_code = e.status_code
        raise
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        log_api_call(user["id"], "/api/v1/analyze", "POST", status_code, elapsed_ms)


@app.get("/api/plans", response_model=list[PlanItem])
def plans() -> list[PlanItem]:
    return [PlanItem(**plan) for plan in list_plans()]
