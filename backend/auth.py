"""Demo authentication: password hashing, bearer tokens, API keys and route dependencies."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, Header, HTTPException

import config
from database import DuplicateUserError, create_user, get_user, get_user_by_api_key, get_user_by_email

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_api_key() -> str:
    return "sk_" + uuid.uuid4().hex


def create_token(user_id: int, email: str) -> str:
    payload = {
        "sub": str(user_id),
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=config.TOKEN_TTL_HOURS),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def register_user(email: str, password: str, name: str = "", company: str = "") -> dict:
    """Create an account with the free tier. Raises DuplicateUserError."""
    user_id = create_user(
        email=email,
        password_hash=hash_password(password),
        api_key=generate_api_key(),
        name=name,
        company=company,
    )
    return get_user(user_id)


def authenticate(email: str, password: str) -> dict | None:
    user = get_user_by_email(email)
    if user is None or not verify_password(password, user["password"]):
        logger.info("Failed login for %s", email)
        return None
    return user


def ensure_demo_user() -> dict:
    """Create the demo account on first use so demo logins carry credits and history."""
    user = get_user_by_email(config.DEMO_EMAIL)
    if user is not None:
        return user
    try:
        return register_user(config.DEMO_EMAIL, config.DEMO_PASSWORD, name="Demo User")
    except DuplicateUserError:
        return get_user_by_email(config.DEMO_EMAIL)


def current_user(authorization: str | None = Header(default=None)) -> dict:
    """Resolve `Authorization: Bearer <token>` to a stored user."""
    parts = (authorization or "").split(" ")
    token = parts[1].strip() if len(parts) == 2 and parts[0].lower() == "bearer" else ""
    if not token:
        logger.debug("Request without bearer token")
        raise HTTPException(status_code=401, detail="Access token required")

    payload = decode_token(token)
    if payload is None:
        logger.info("Rejected invalid or expired token")
        raise HTTPException(status_code=403, detail="Invalid or expired token")

    try:
        user = get_user(int(payload.get("sub", 0)))
    except (TypeError, ValueError):
        user = None
    if user is None:
        logger.info("Token subject %s does not match a user", payload.get("sub"))
        raise HTTPException(status_code=403, detail="Invalid or expired token")
    return user


def api_key_user(x_api_key: str | None = Header(default=None)) -> dict:
    """Resolve the `X-API-Key` header to a stored user."""
    if not x_api_key:
        raise HTTPException(status_code=401, detail="API key required")
    user = get_user_by_api_key(x_api_key.strip())
    if user is None:
        logger.info("Rejected unknown API key")
        raise HTTPException(status_code=403, detail="Invalid API key")
    return user


def _require_credits(user: dict) -> dict:
    if user["credits_remaining"] <= 0 and user["subscription_tier"] != "unlimited":
        raise HTTPException(
            status_code=402,
            detail={
                "error": "Insufficient credits",
                "message": "Please upgrade your plan to continue analyzing websites.",
                "upgrade_url": "/pricing",
            },
        )
    return user


def user_with_credits(user: dict = Depends(current_user)) -> dict:
    return _require_credits(user)


def api_user_with_credits(user: dict = Depends(api_key_user)) -> dict:
    return _require_credits(user)
