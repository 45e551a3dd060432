"""Tests for SQLite storage: users, credits, analyses, plans and logs."""

import pytest

import database
from database import DuplicateUserError


def _user(email="owner@acme.test", **kwargs):
    user_id = database.create_user(email=email, password_hash="hash", api_key=f"sk_{email}", **kwargs)
    return database.get_user(user_id)


class TestUsers:
    def test_create_and_lookup(self, db_path):
        user = _user(name="Owner", company="Acme")

        assert user["credits_remaining"] == 3
        assert user["subscription_tier"] == "free"
        assert database.get_user_by_email("owner@acme.test")["id"] == user["id"]
        assert database.get_user_by_api_key("sk_owner@acme.test")["id"] == user["id"]
        assert database.get_user(9999) is None

    def test_duplicate_email(self, db_path):
        _user()
        with pytest.raises(DuplicateUserError):
            _user()

    def test_public_user_hides_password(self, db_path):
        public = database.public_user(_user())
        assert "password" not in public
        assert public["email"] == "owner@acme.test"


class TestCredits:
    def test_deduct_until_exhausted(self, db_path):
        user = _user(credits=2)

        assert database.deduct_credit(user["id"])
        assert database.deduct_credit(user["id"])
        assert not database.deduct_credit(user["id"])

        refreshed = database.get_user(user["id"])
        assert refreshed["credits_remaining"] == 0
        assert refreshed["credits_used_total"] == 2

    def test_unlimited_tier_is_never_blocked(self, db_path):
        user = _user(subscription_tier="unlimited", credits=0)

        assert database.deduct_credit(user["id"])
        refreshed = database.get_user(user["id"])
        assert refreshed["credits_remaining"] == 0
        assert refreshed["credits_used_total"] == 1

    def test_monthly_reset_uses_plan_allowance(self, db_path):
        free = _user("free@acme.test", credits=0)
        starter = _user("starter@acme.test", subscription_tier="starter", credits=0)
        custom = _user("custom@acme.test", subscription_tier="legacy", credits=0)

        assert database.reset_monthly_credits() == 3
        assert database.get_user(free["id"])["credits_remaining"] == 3
        assert database.get_user(starter["id"])["credits_remaining"] == 50
        assert database.get_user(custom["id"])["credits_remaining"] == 3


class TestAnalyses:
    def test_history_newest_first(self, db_path):
        user = _user()
        database.insert_analysis(user["id"], "https://a.test", 70, {"overall_score": 70})
        database.insert_analysis(user["id"], "https://b.test", 40, {"overall_score": 40})

        rows = database.list_analyses(user["id"])
        assert [r["url"] for r in rows] == ["https://b.test", "https://a.test"]
        assert rows[0]["data"] == {"overall_score": 40}

    def test_stats(self, db_path):
        user = _user()
        for score in (70, 40, 91):
            database.insert_analysis(user["id"], "https://a.test", score, {})

        stats = database.user_stats(user["id"])
        assert stats["total_analyses"] == 3
        assert stats["average_score"] == pytest.approx(67.0)
        assert stats["best_score"] == 91
        assert stats["worst_score"] == 40

    def test_stats_without_history(self, db_path):
        stats = database.user_stats(_user()["id"])
        assert stats["total_analyses"] == 0
        assert stats["average_score"] is None


class TestPlansAndLogs:
    def test_plans_are_seeded_once(self, db_path):
        database.init_db()
        plans = database.list_plans()

        assert [p["name"] for p in plans] == ["free", "starter", "professional", "enterprise"]
        assert plans[1]["credits_per_month"] == 50
        assert "API access" in plans[1]["features"]

    def test_log_api_call(self, db_path):
        user = _user()
        database.log_api_call(user["id"], "/api/v1/analyze", "POST", 200, 812)

        conn = database.get_connection()
        try:
            row = conn.execute("SELECT * FROM api_logs WHERE user_id = ?", (user["id"],)).fetchone()
        finally:
            conn.close()
        assert row["status_code"] == 200
        assert row["response_time"] == 812
