"""Tests for the payout console report."""
import json

from rewards.payouts.job import CommitResult, PayoutPlan, SkippedUser, UserPayout
from rewards.payouts.policy import PayoutPolicy
from rewards.payouts.reconcile import BalanceWarning
from rewards.payouts.report import render_report, results_json


def _plan():
    plan = PayoutPlan(policy=PayoutPolicy(), start_date="2025-6-24", end_date="2025-7-17T23:59Z")
    plan.payouts = [
        UserPayout(slack_id="U1", email="a@example.com", seconds=3 * 3600, base_tokens=3,
                   platforms=["Slack", "Discord"], bonus_tokens=2),
        UserPayout(slack_id="U2", email="b@example.com", seconds=3600, base_tokens=1, trust_level="yellow"),
        UserPayout(slack_id="U3", email="c@example.com", seconds=0, base_tokens=0),
    ]
    plan.skipped = [SkippedUser("U4", "d@example.com", "red trust level")]
    return plan


class TestRenderReport:
    def test_sections(self):
        warning = BalanceWarning(slack_id="U9", email="N/A", old_balance=7, new_balance=0, difference=7)
        text = render_report(_plan(), CommitResult(warnings=[warning], deleted=4, inserted=3))

        assert "Total users: 2" in text
        assert "Total tokens distributed: 6" in text
        assert "Users with platform bonuses: 1" in text
        assert "U1 (a@example.com): +2 for Slack, Discord" in text
        assert "=== YELLOW TRUST (REVIEW) ===" in text
        assert "U4 (d@example.com): red trust level" in text
        assert "Reduction: 7 tokens" in text

    def test_no_warnings_message(self):
        text = render_report(_plan(), CommitResult(warnings=[], dry_run=True, inserted=3))
        assert "No users have reduced balances" in text
        assert "Dry run" in text

    def test_results_json_is_serialisable(self):
        results = results_json(_plan())
        assert json.loads(json.dumps(results))[0]["tokens"] == 5
        assert [r["slackId"] for r in results] == ["U1", "U2"]
