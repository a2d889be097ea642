"""Tests for reading submissions from Airtable records."""
from unittest.mock import MagicMock

from rewards.clients.airtable import AirtableRecord
from rewards.payouts.sources import Submission, fetch_submissions, group_by_user


class TestFromRecord:
    def test_fields(self):
        record = AirtableRecord(
            id="rec1",
            fields={
                "Slack ID": " U1 ",
                "Email": "raw@example.com",
                "Email Normalised": "norm@example.com",
                "Hackatime Project Name": "Foo, Bar",
                "Description": "A slack bot",
                "Optional - Override Hours Spent": 4,
            },
        )
        submission = Submission.from_record(record)
        assert submission.slack_id == "U1"
        assert submission.email == "norm@example.com"
        assert submission.project_names == ["Foo", "Bar"]
        assert submission.override_hours == 4.0
        assert submission.playable_url is None

    def test_missing_slack_id(self):
        assert Submission.from_record(AirtableRecord(id="rec1", fields={"Email": "a@example.com"})) is None

    def test_email_defaults(self):
        submission = Submission.from_record(AirtableRecord(id="rec1", fields={"Slack ID": "U1"}))
        assert submission.email == "N/A"


class TestFetchSubmissions:
    def test_formula_passed_and_orphans_dropped(self):
        airtable = MagicMock()
        airtable.list_records.return_value = [
            AirtableRecord(id="rec1", fields={"Slack ID": "U1"}),
            AirtableRecord(id="rec2", fields={}),
            AirtableRecord(id="rec3", fields={"Slack ID": "U1"}),
        ]
        submissions = fetch_submissions(airtable, "formula")
        airtable.list_records.assert_called_once_with("formula")
        assert [s.record_id for s in submissions] == ["rec1", "rec3"]
        assert list(group_by_user(submissions)) == ["U1"]
