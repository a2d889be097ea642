"""Tests for payout planning and the transactional commit."""
import asyncio
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from rewards.clients.hackatime import HackatimeStats
from rewards.core.errors import ExternalFetchError, LedgerWriteError
from rewards.models.payout import Payout
from rewards.models.shop_item import ShopItem
from rewards.models.shop_order import ShopOrder
from rewards.models.user import User
from rewards.payouts.job import PayoutPlan, UserPayout, commit_plan, compute_plan
from rewards.payouts.policy import PayoutPolicy
from rewards.payouts.sources import Submission

HOUR = 3600


class FakeHackatime:
    def __init__(self, stats: dict, failing: set | None = None):
        self.stats = stats
        self.failing = failing or set()
        self.calls = []

    async def fetch_stats(self, slack_id):
        self.calls.append(slack_id)
        if slack_id in self.failing:
            raise ExternalFetchError("hackatime", slack_id, status_code=500)
        return HackatimeStats.from_response(self.stats[slack_id])


class FakeClassifier:
    def __init__(self, platforms: dict, failing: set | None = None):
        self.platforms = platforms
        self.failing = failing or set()

    async def detect(self, text):
        for key, value in self.platforms.items():
            if key in text:
                return value
        for key in self.failing:
            if key in text:
                raise ExternalFetchError("classifier", "boom")
        return []


def _stats(trust="blue", **projects):
    return {
        "data": {"projects": [{"name": n, "total_seconds": s} for n, s in projects.items()]},
        "trust_factor": {"trust_level": trust},
    }


def _submission(slack_id, projects="", description=None, record_id=None, email=None):
    return Submission(
        record_id=record_id or f"rec{slack_id}",
        slack_id=slack_id,
        email=email or f"{slack_id.lower()}@example.com",
        project_names=[p.strip() for p in projects.split(",") if p.strip()],
        description=description,
    )


def _plan(submissions, hackatime, classifier, policy=None):
    return asyncio.run(
        compute_plan(
            submissions,
            policy or PayoutPolicy(),
            hackatime,
            classifier,
            concurrency=3,
            start_date="2025-6-24",
            end_date="2025-7-17T23:59Z",
        )
    )


class TestComputePlan:
    def test_full_run(self):
        hackatime = FakeHackatime(
            {
                "U1": _stats(foo=2 * HOUR + 45 * 60, baz=7200),
                "U2": _stats(trust="red", foo=10 * HOUR),
                "U4": _stats(trust="yellow", bar=HOUR),
            },
            failing={"U3"},
        )
        classifier = FakeClassifier({"chat": ["Slack", "Discord"]})
        plan = _plan(
            [
                _submission("U1", "Foo, Bar", description="a chat bridge"),
                _submission("U2", "foo"),
                _submission("U3", "foo"),
                _submission("U4", "bar"),
                _submission("U5", "", description="chat thing"),
            ],
            hackatime,
            classifier,
        )
        by_id = {p.slack_id: p for p in plan.payouts}

        assert by_id["U1"].base_tokens == 3
        assert by_id["U1"].bonus_tokens == 2
        assert by_id["U1"].matched_projects == ["foo"]
        assert by_id["U4"].base_tokens == 1
        assert [p.slack_id for p in plan.review] == ["U4"]
        # no declared projects: no hackatime call, still gets a platform bonus
        assert "U5" not in hackatime.calls
        assert by_id["U5"].base_tokens == 0
        assert by_id["U5"].bonus_tokens == 2

        skipped = {s.slack_id: s.reason for s in plan.skipped}
        assert skipped["U2"] == "red trust level"
        assert skipped["U3"].startswith("hackatime fetch failed")
        assert "U2" not in by_id

    def test_submissions_for_same_user_accumulate(self):
        hackatime = FakeHackatime({"U1": _stats(foo=HOUR, bar=HOUR + 40 * 60)})
        plan = _plan(
            [_submission("U1", "foo", record_id="r1"), _submission("U1", "bar", record_id="r2")],
            hackatime,
            FakeClassifier({}),
        )
        assert hackatime.calls == ["U1"]
        assert plan.payouts[0].seconds == 2 * HOUR + 40 * 60
        assert plan.payouts[0].base_tokens == 3

    def test_failed_classification_means_no_bonus(self):
        plan = _plan(
            [_submission("U1", "foo", description="broken")],
            FakeHackatime({"U1": _stats(foo=HOUR)}),
            FakeClassifier({}, failing={"broken"}),
        )
        assert plan.payouts[0].platforms == []
        assert plan.payouts[0].bonus_tokens == 0

    def test_deterministic(self):
        args = (
            [_submission("U1", "foo", description="chat"), _submission("U2", "bar")],
            FakeHackatime({"U1": _stats(foo=5 * HOUR), "U2": _stats(bar=HOUR)}),
            FakeClassifier({"chat": ["Slack", "Zulip"]}),
        )
        assert _plan(*args).rows() == _plan(*args).rows()


class TestPlanRows:
    def test_memos(self):
        plan = PayoutPlan(policy=PayoutPolicy(), start_date="2025-6-24", end_date="2025-7-17T23:59Z")
        plan.payouts.append(
            UserPayout(slack_id="U1", email="e", seconds=9000, base_tokens=2, platforms=["Slack", "Discord"], bonus_tokens=2)
        )
        plan.payouts.append(UserPayout(slack_id="U2", email="e", seconds=0, base_tokens=0))
        rows = plan.rows()
        assert [r.memo for r in rows] == [
            "Converge payout: 2.50 hours worked (2025-6-24 to 2025-7-17)",
            "Platform bonus: Used 2 chat platforms (Slack, Discord) - capped at 10 total tokens",
        ]


def _seed_spender(db):
    db.add(User(slack_id="U9", avatar_url="a"))
    db.add(ShopItem(id="item1", name="Stickers", description="", image_url="", price=5))
    db.add(Payout(user_id="U9", tokens=12, memo="Converge payout: 12.00 hours worked"))
    db.add(ShopOrder(shop_item_id="item1", price_at_order=5, status="fulfilled", user_id="U9"))
    db.commit()


def _single_user_plan(slack_id, tokens):
    plan = PayoutPlan(policy=PayoutPolicy(), start_date="2025-6-24", end_date="2025-7-17T23:59Z")
    plan.payouts.append(UserPayout(slack_id=slack_id, email="u@example.com", seconds=tokens * HOUR, base_tokens=tokens))
    return plan


class TestCommitPlan:
    def test_warns_and_replaces(self, db, session_factory):
        _seed_spender(db)
        result = commit_plan(session_factory, _single_user_plan("U9", 3))

        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert (warning.old_balance, warning.new_balance, warning.difference) == (7, 0, 7)
        assert (result.deleted, result.inserted) == (1, 1)
        db.expire_all()
        assert list(db.execute(select(Payout.tokens)).scalars()) == [3]

    def test_user_dropped_from_run_is_warned(self, db, session_factory):
        _seed_spender(db)
        result = commit_plan(session_factory, _single_user_plan("U1", 2))
        assert [w.slack_id for w in result.warnings] == ["U9"]
        db.expire_all()
        assert db.get(User, "U1") is not None

    def test_dry_run_leaves_ledger(self, db, session_factory):
        _seed_spender(db)
        result = commit_plan(session_factory, _single_user_plan("U9", 3), dry_run=True)
        assert result.dry_run is True
        assert len(result.warnings) == 1
        db.expire_all()
        assert list(db.execute(select(Payout.tokens)).scalars()) == [12]

    def test_rerun_is_stable(self, db, session_factory):
        plan = _single_user_plan("U1", 4)
        commit_plan(session_factory, plan)
        second = commit_plan(session_factory, plan)
        assert second.warnings == []
        db.expire_all()
        assert list(db.execute(select(Payout.tokens)).scalars()) == [4]

    def test_db_failure_is_ledger_write_error(self):
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with pytest.raises(LedgerWriteError):
            commit_plan(lambda: session, _single_user_plan("U1", 1))
        session.close.assert_called_once()

    def test_failed_insert_restores_deleted_payouts(self, db, session_factory, monkeypatch):
        db.add(User(slack_id="U1", avatar_url="a"))
        db.add(Payout(user_id="U1", tokens=5, memo="Converge payout: old"))
        db.commit()

        flush = Session.flush

        def failing_flush(self, *args, **kwargs):
            if any(isinstance(obj, Payout) for obj in self.new):
                raise OperationalError("INSERT", {}, Exception("disk full"))
            return flush(self, *args, **kwargs)

        monkeypatch.setattr(Session, "flush", failing_flush)

        with pytest.raises(LedgerWriteError):
            commit_plan(session_factory, _single_user_plan("U2", 3))

        db.expire_all()
        assert list(db.execute(select(Payout.tokens, Payout.memo)).all()) == [(5, "Converge payout: old")]
        assert db.get(User, "U2") is None
