"""Tests for the platform bonus and classifier input text."""
from rewards.payouts.bonus import platform_bonus, submission_text


class TestPlatformBonus:
    def test_one_token_per_platform(self):
        assert platform_bonus(3, ["Slack", "Discord"], 10) == 2

    def test_single_platform_gets_nothing(self):
        assert platform_bonus(0, ["Slack"], 10) == 0

    def test_limited_by_headroom(self):
        assert platform_bonus(9, ["Slack", "Discord", "Zulip"], 10) == 1

    def test_at_cap_is_zero(self):
        assert platform_bonus(10, ["Slack", "Discord"], 10) == 0

    def test_never_negative(self):
        assert platform_bonus(12, ["Slack", "Discord"], 10) == 0

    def test_total_never_exceeds_cap(self):
        for base in range(0, 11):
            assert base + platform_bonus(base, ["a", "b", "c", "d"], 10) <= 10


class TestSubmissionText:
    def test_blocks_joined_by_blank_line(self):
        text = submission_text([("A slack bot", "https://a.example"), ("Discord relay", None)])
        assert text == (
            "Description: A slack bot\nPlayable URL: https://a.example"
            "\n\n"
            "Description: Discord relay"
        )

    def test_empty_records_skipped(self):
        assert submission_text([(None, None)]) == ""
