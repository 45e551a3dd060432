"""Pydantic schemas for API request/response."""

import re

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def _validate_email(value: str) -> str:
    normalized = str(value or "").strip().lower()
    if not normalized:
        raise ValueError("Email is required")
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError("Invalid email format")
    return normalized


class AnalyzeRequest(BaseModel):
    """Request body for the analyze endpoints."""

    url: str = ""

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, value: object) -> str:
        return str(value or "").strip()


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    email: str
    password: str = Field(min_length=1)
    name: str = ""
    company: str = ""

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)


class SignupRequest(BaseModel):
    """Request body for POST /api/auth/signup."""

    name: str
    email: str
    password: str
    terms: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, value: object) -> str:
        name = str(value or "").strip()
        if not name:
            raise ValueError("Name is required")
        return name

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value

    @field_validator("terms")
    @classmethod
    def validate_terms(cls, value: bool) -> bool:
        if not value:
            raise ValueError("Terms must be accepted")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> str:
        return str(value or "").strip().lower()


class UserProfile(BaseModel):
    """Public view of a user account."""

    id: int
    email: str
    name: str | None = None
    company: str | None = None
    subscription_tier: str
    credits_remaining: int
    credits_used_total: int = 0
    api_key: str | None = None
    created_at: str | None = None


class AuthResponse(BaseModel):
    """Response for register/signup/login."""

    success: bool = True
    token: str
    user: UserProfile
    redirect: str = "/dashboard"


class RecommendationItem(BaseModel):
    """Single prioritized finding."""

    category: str
    priority: str
    issue: str
    recommendation: str
    impact: str
    effort: str


class CategoryScoresModel(BaseModel):
    seo: int
    performance: int
    mobile: int
    security: int
    content: int
    technical: int


class AnalysisResponse(BaseModel):
    """Full analysis returned by the analyze endpoints."""

    success: bool
    url: str
    timestamp: str
    overall_score: int
    scores: CategoryScoresModel
    signals: dict
    recommendations: list[RecommendationItem]
    ai_analysis: dict | None = None
    credits_remaining: int | None = None
    limited_trial: bool = False


class HistoryItem(BaseModel):
    """Stored analysis row for the history view."""

    id: int
    url: str
    score: int | None
    credits_used: int
    created_at: str
    data: dict


class StatsResponse(BaseModel):
    total_analyses: int
    average_score: float | None
    best_score: int | None
    worst_score: int | None


class PlanItem(BaseModel):
    name: str
    display_name: str
    price: float
    credits_per_month: int
    features: list[str]
