"""Tests for balance reduction warnings."""
from rewards.payouts.reconcile import UserBalance, check_reduction, find_balance_reductions


class TestCheckReduction:
    def test_spent_more_than_new_payouts(self):
        warning = check_reduction(UserBalance(slack_id="U1", old_tokens=12, new_tokens=3, spent=5))
        assert warning is not None
        assert (warning.old_balance, warning.new_balance, warning.difference) == (7, 0, 7)

    def test_partial_reduction(self):
        warning = check_reduction(UserBalance(slack_id="U1", old_tokens=10, new_tokens=8, spent=1))
        assert (warning.old_balance, warning.new_balance, warning.difference) == (9, 7, 2)

    def test_no_warning_when_balance_grows(self):
        assert check_reduction(UserBalance(slack_id="U1", old_tokens=3, new_tokens=5)) is None

    def test_no_warning_when_nothing_to_lose(self):
        assert check_reduction(UserBalance(slack_id="U1", old_tokens=2, new_tokens=0, spent=2)) is None

    def test_difference_matches_floor(self):
        balance = UserBalance(slack_id="U1", old_tokens=4, new_tokens=1, spent=3)
        warning = check_reduction(balance)
        assert warning.difference == warning.old_balance - max(0, balance.new_available)


class TestFindBalanceReductions:
    def test_one_warning_per_user_sorted(self):
        warnings = find_balance_reductions(
            [
                UserBalance(slack_id="U2", old_tokens=5, new_tokens=1),
                UserBalance(slack_id="U1", old_tokens=5, new_tokens=0),
                UserBalance(slack_id="U3", old_tokens=1, new_tokens=1),
            ]
        )
        assert [w.slack_id for w in warnings] == ["U1", "U2"]
