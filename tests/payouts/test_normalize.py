"""Tests for trust gating and declared-project matching."""
from rewards.clients.hackatime import HackatimeProject
from rewards.payouts.normalize import TrustDecision, evaluate_trust, matched_seconds, parse_project_names


def _projects(**seconds):
    return [HackatimeProject(name=name, total_seconds=s) for name, s in seconds.items()]


class TestEvaluateTrust:
    def test_red_is_excluded(self):
        assert evaluate_trust("red") is TrustDecision.EXCLUDE

    def test_yellow_needs_review(self):
        assert evaluate_trust("yellow") is TrustDecision.REVIEW

    def test_blue_and_missing_are_included(self):
        assert evaluate_trust("blue") is TrustDecision.INCLUDE
        assert evaluate_trust(None) is TrustDecision.INCLUDE
        assert evaluate_trust("") is TrustDecision.INCLUDE

    def test_case_and_whitespace_ignored(self):
        assert evaluate_trust(" Red ") is TrustDecision.EXCLUDE


class TestParseProjectNames:
    def test_comma_separated(self):
        assert parse_project_names("Foo, Bar") == ["Foo", "Bar"]

    def test_empties_dropped(self):
        assert parse_project_names("Foo,, ,Bar ,") == ["Foo", "Bar"]

    def test_none_and_blank(self):
        assert parse_project_names(None) == []
        assert parse_project_names("") == []


class TestMatchedSeconds:
    def test_case_insensitive_match(self):
        seconds, names = matched_seconds(_projects(foo=3600, baz=7200), ["Foo", "Bar"])
        assert seconds == 3600
        assert names == ["foo"]

    def test_trimmed_names_match(self):
        seconds, _ = matched_seconds([HackatimeProject(name=" Foo ", total_seconds=60)], ["foo"])
        assert seconds == 60

    def test_unmatched_contributes_nothing(self):
        seconds, names = matched_seconds(_projects(other=500), ["Foo"])
        assert seconds == 0
        assert names == []

    def test_none_seconds_is_zero(self):
        project = HackatimeProject(name="foo", total_seconds=None)
        assert matched_seconds([project], ["foo"]) == (0, ["foo"])
