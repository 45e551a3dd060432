"""SQLite database setup and storage for users, analyses and plans.

Tables:
- users: account, API key, subscription tier and credit balance
- analyses: stored analysis results (result JSON + overall score)
- plans: subscription tiers and their monthly credit allowance
- api_logs: one row per developer API call
"""

import json
import sqlite3
from datetime import datetime, timezone

import config

DEFAULT_CREDITS = 3

DEFAULT_PLANS = [
    ("free", "Free", 0, 3, ["3 analyses per month", "Basic reports", "Email support"]),
    (
        "starter",
        "Starter",
        29,
        50,
        ["50 analyses per month", "Advanced reports", "API access", "Priority support", "Export to PDF"],
    ),
    (
        "professional",
        "Professional",
        99,
        250,
        ["250 analyses per month", "White-label reports", "API access", "Custom branding", "Priority support", "Bulk analysis"],
    ),
    (
        "enterprise",
        "Enterprise",
        299,
        1000,
        ["1000 analyses per month", "Custom integrations", "Dedicated support", "SLA guarantee", "Custom features"],
    ),
]

USER_PUBLIC_FIELDS = (
    "id",
    "email",
    "name",
    "company",
    "subscription_tier",
    "credits_remaining",
    "credits_used_total",
    "api_key",
    "created_at",
)


class DuplicateUserError(Exception):
    """Raised when registering an email that already exists."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_connection() -> sqlite3.Connection:
    """Return a connection to the SQLite database."""
    conn = sqlite3.connect(config.DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create tables if they do not exist and seed the default plans."""
    conn = get_connection()
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT UNIQUE NOT NULL,
                password TEXT NOT NULL,
                name TEXT,
                company TEXT,
                subscription_tier TEXT NOT NULL DEFAULT 'free',
                api_key TEXT UNIQUE,
                credits_remaining INTEGER NOT NULL DEFAULT 3,
                credits_used_total INTEGER NOT NULL DEFAULT 0,
                last_credit_reset TEXT,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS analyses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER,
                url TEXT NOT NULL,
                score INTEGER,
                data TEXT NOT NULL,
                credits_used INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users (id)
            );

            CREATE TABLE IF NOT EXISTS plans (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL,
                display_name TEXT NOT NULL,
                price REAL NOT NULL,
                credits_per_month INTEGER NOT NULL,
                features TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS api_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER,
                endpoint TEXT,
                method TEXT,
                status_code INTEGER,
                response_time INTEGER,
                created_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users (id)
            );
            """
        )
        conn.executemany(
            """
            INSERT OR IGNORE INTO plans (name, display_name, price, credits_per_month, features)
            VALUES (?, ?, ?, ?, ?)
            """,
            [(name, display, price, credits, json.dumps(features)) for name, display, price, credits, features in DEFAULT_PLANS],
        )
        conn.commit()
    finally:
        conn.close()


def create_user(
    email: str,
    password_hash: str,
    api_key: str,
    name: str = "",
    company: str = "",
    subscription_tier: str = "free",
    credits: int = DEFAULT_CREDITS,
) -> int:
    """Store a new user and return its id. Raises DuplicateUserError for a taken email."""
    conn = get_connection()
    try:
        now = _now()
        cursor = conn.execute(
            """
            INSERT INTO users
                (email, password, name, company, subscription_tier, api_key,
                 credits_remaining, last_credit_reset, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (email, password_hash, name, company, subscription_tier, api_key, credits, now, now),
        )
        conn.commit()
        return cursor.lastrowid
    except sqlite3.IntegrityError as e:
        raise DuplicateUserError(email) from e
    finally:
        conn.close()


def _fetch_user(where: str, value: object) -> dict | None:
    conn = get_connection()
    try:
        row = conn.execute(f"SELECT * FROM users WHERE {where} = ?", (value,)).fetchone()
        return dict(row) if row is not None else None
    finally:
        conn.close()


def get_user(user_id: int) -> dict | None:
    return _fetch_user("id", user_id)


def get_user_by_email(email: str) -> dict | None:
    return _fetch_user("email", email)


def get_user_by_api_key(api_key: str) -> dict | None:
    return _fetch_user("api_key", api_key)


def public_user(user: dict) -> dict:
    """Strip the password hash and internal columns from a user row."""
    return {key: user.get(key) for key in USER_PUBLIC_FIELDS}


def deduct_credit(user_id: int) -> bool:
    """
    Consume one credit. Returns False when the balance is exhausted.
    Users on the 'unlimited' tier are never blocked.
    """
    conn = get_connection()
    try:
        cursor = conn.execute(
            """
            UPDATE users
            SET credits_remaining = CASE
                    WHEN subscription_tier = 'unlimited' THEN credits_remaining
                    ELSE credits_remaining - 1
                END,
                credits_used_total = credits_used_total + 1
            WHERE id = ? AND (credits_remaining > 0 OR subscription_tier = 'unlimited')
            """,
            (user_id,),
        )
        conn.commit()
        return cursor.rowcount == 1
    finally:
        conn.close()


def insert_analysis(user_id: int | None, url: str, score: int, data: dict, credits_used: int = 1) -> int:
    """Store an analysis result and return its id."""
    conn = get_connection()
    try:
        cursor = conn.execute(
            "INSERT INTO analyses (user_id, url, score, data, credits_used, created_at) VALUES (?, ?, ?, ?, ?, ?)",
            (user_id, url, score, json.dumps(data), credits_used, _now()),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def list_analyses(user_id: int, limit: int = 50) -> list[dict]:
    """Return a user's most recent analyses, newest first."""
    safe_limit = max(1, min(100, int(limit)))
    conn = get_connection()
    try:
        rows = conn.execute(
            """
            SELECT id, url, score, data, credits_used, created_at
            FROM analyses
            WHERE user_id = ?
            ORDER BY id DESC
            LIMIT ?
            """,
            (user_id, safe_limit),
        ).fetchall()

        out: list[dict] = []
        for row in rows:
            try:
                parsed = json.loads(row["data"])
            except ValueError:
                parsed = {}
            out.append(
                {
                    "id": row["id"],
                    "url": row["url"],
                    "score": row["score"],
                    "credits_used": row["credits_used"],
                    "created_at": row["created_at"],
                    "data": parsed,
                }
            )
        return out
    finally:
        conn.close()


def user_stats(user_id: int) -> dict:
    conn = get_connection()
    try:
        row = conn.execute(
            """
            SELECT
                COUNT(*) AS total_analyses,
                AVG(score) AS average_score,
                MAX(score) AS best_score,
                MIN(score) AS worst_score
            FROM analyses
            WHERE user_id = ?
            """,
            (user_id,),
        ).fetchone()
        return dict(row)
    finally:
        conn.close()


def log_api_call(user_id: int, endpoint: str, method: str, status_code: int, response_time_ms: int) -> None:
    conn = get_connection()
    try:
        conn.execute(
            """
            INSERT INTO api_logs (user_id, endpoint, method, status_code, response_time, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, endpoint, method, status_code, response_time_ms, _now()),
        )
        conn.commit()
    finally:
        conn.close()


def list_plans() -> list[dict]:
    """Return plans ordered by price with decoded feature lists."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT name, display_name, price, credits_per_month, features FROM plans ORDER BY price"
        ).fetchall()
        out: list[dict] = []
        for row in rows:
            plan = dict(row)
            try:
                plan["features"] = json.loads(plan["features"])
            except ValueError:
                plan["features"] = []
            out.append(plan)
        return out
    finally:
        conn.close()


def reset_monthly_credits() -> int:
    """Reset every user's balance to their plan's monthly allowance. Returns users updated."""
    conn = get_connection()
    try:
        cursor = conn.execute(
            """
            UPDATE users
            SET credits_remaining = COALESCE(
                    (SELECT credits_per_month FROM plans WHERE plans.name = users.subscription_tier),
                    ?
                ),
                last_credit_reset = ?
            """,
            (DEFAULT_CREDITS, _now()),
        )
        conn.commit()
        return cursor.rowcount
    finally:
        conn.close()
