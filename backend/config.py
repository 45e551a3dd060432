"""
Runtime configuration.

Values are read from environment variables, optionally defined in a .env file
in the backend root:

ANTHROPIC_API_KEY=your_real_key_here
JWT_SECRET=change-me

The app loads environment variables automatically using python-dotenv.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", "off"}


DATABASE_PATH = Path(os.getenv("DATABASE_PATH", str(Path(__file__).parent / "siteanalyzer.db")))

JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret")
JWT_ALGORITHM = "HS256"
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "24"))
SESSION_SECRET = os.getenv("SESSION_SECRET", "dev-session-secret")

DEMO_EMAIL = os.getenv("DEMO_EMAIL", "demo@siteanalyzer.pro")
DEMO_PASSWORD = os.getenv("DEMO_PASSWORD", "demo1234")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

SCRAPE_TIMEOUT_SECONDS = float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "10"))
AUX_TIMEOUT_SECONDS = float(os.getenv("AUX_TIMEOUT_SECONDS", "5"))

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "").strip()
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "").strip()
CLAUDE_MAX_TOKENS = int(os.getenv("CLAUDE_MAX_TOKENS", "1800"))
CLAUDE_MAX_RETRIES = int(os.getenv("CLAUDE_MAX_RETRIES", "3"))
CLAUDE_RETRY_BASE_SECONDS = float(os.getenv("CLAUDE_RETRY_BASE_SECONDS", "1.0"))

ANALYSIS_RATE_LIMIT = os.getenv("ANALYSIS_RATE_LIMIT", "5/minute")
API_RATE_LIMIT = os.getenv("API_RATE_LIMIT", "100/15 minutes")
TRIAL_LIMIT = int(os.getenv("TRIAL_LIMIT", "1"))
TRIAL_RECOMMENDATION_LIMIT = 3

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ENABLE_CREDIT_RESET = _flag("ENABLE_CREDIT_RESET", "1")
