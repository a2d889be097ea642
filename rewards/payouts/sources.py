"""
Submission records as the payout jobs read them from Airtable.
"""
import logging

from pydantic import BaseModel

from rewards.clients.airtable import AirtableClient, AirtableRecord
from rewards.payouts.normalize import parse_project_names

logger = logging.getLogger(__name__)

FIELD_SLACK_ID = "Slack ID"
FIELD_EMAIL = "Email"
FIELD_EMAIL_NORMALISED = "Email Normalised"
FIELD_PROJECT_NAMES = "Hackatime Project Name"
FIELD_DESCRIPTION = "Description"
FIELD_PLAYABLE_URL = "Playable URL"
FIELD_OVERRIDE_HOURS = "Optional - Override Hours Spent"


class Submission(BaseModel):
    record_id: str
    slack_id: str
    email: str = "N/A"
    project_names: list[str] = []
    description: str | None = None
    playable_url: str | None = None
    override_hours: float | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_record(cls, record: AirtableRecord) -> "Submission | None":
        """None when the record has no Slack ID: nothing to pay it to."""
        slack_id = record.text(FIELD_SLACK_ID)
        if not slack_id:
            return None
        override = record.fields.get(FIELD_OVERRIDE_HOURS)
        return cls(
            record_id=record.id,
            slack_id=slack_id.strip(),
            email=record.text(FIELD_EMAIL_NORMALISED) or record.text(FIELD_EMAIL) or "N/A",
            project_names=parse_project_names(record.text(FIELD_PROJECT_NAMES)),
            description=record.text(FIELD_DESCRIPTION),
            playable_url=record.text(FIELD_PLAYABLE_URL),
            override_hours=float(override) if isinstance(override, (int, float)) else None,
        )


def fetch_submissions(airtable: AirtableClient, formula: str) -> list[Submission]:
    """List records matching `formula`, dropping the ones without a Slack ID."""
    submissions = []
    for record in airtable.list_records(formula):
        submission = Submission.from_record(record)
        if submission is None:
            logger.warning("submission_missing_slack_id", extra={"record_id": record.id})
            continue
        submissions.append(submission)
    return submissions


def group_by_user(submissions: list[Submission]) -> dict[str, list[Submission]]:
    grouped: dict[str, list[Submission]] = {}
    for submission in submissions:
        grouped.setdefault(submission.slack_id, []).append(submission)
    return grouped
