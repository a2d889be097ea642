"""
Fillout CSV export -> Airtable submission records.

Submissions are grouped per person (email, falling back to Slack ID) and merged
into one record: basic fields from the latest submission, project fields from
every submission and its optional second project.
"""
import csv
import re
from dataclasses import dataclass, field

from rewards.clients.airtable import AirtableRecord

SYNC_MARKER = "[Auto-created by Fillout sync]"
PROJECT_SEPARATOR = "\n\n--- Project ---\n\n"

COL_EMAIL = "What's your email?"
COL_SLACK = "What's your Slack display name/ID?"
COL_SIGNATURE = "To confirm, please e-sign below."
COL_SECOND_PROJECT = "I made a second project"

# (hackatime names, description, deployment, video, repo) per project slot
_PROJECT_COLUMNS = (
    (
        "Hackatime project names",
        "How do you use it? And what's the idea behind it?",
        "Link to deployment",
        "Video link of it working",
        "Project repo link (1)",
    ),
    (
        "Hackatime project names (1)",
        "How do you use it? And what's the idea behind it? (1)",
        "Link to deployment (1)",
        "Video link of it working (1)",
        "Project repo link",
    ),
)

_ADDRESS_COLUMNS = {
    "Address (Your address)": "Address (Line 1)",
    "City (Your address)": "City",
    "State/Province (Your address)": "State / Province",
    "Zip/Postal code (Your address)": "ZIP / Postal Code",
    "Country (Your address)": "Country",
}

_SLACK_PATTERNS = (
    re.compile(r"\b(U[A-Z0-9]{8,})\b"),
    re.compile(r"\(([^)]+)\)"),
    re.compile(r"/\s*(\S+)$"),
)
_GITHUB_RE = re.compile(r"github\.com/([^/]+)")


def read_submissions(path: str) -> list[dict[str, str]]:
    """Rows of the CSV export with trimmed values; fully empty rows dropped."""
    with open(path, newline="", encoding="utf-8") as f:
        rows = []
        for row in csv.DictReader(f):
            cleaned = {(k or "").strip(): (v or "").strip() for k, v in row.items()}
            if any(cleaned.values()):
                rows.append(cleaned)
        return rows


def extract_slack_id(raw: str | None) -> str:
    """'Jane (U01234567)' / 'Jane / U01234567' / 'U01234567' -> 'U01234567'."""
    raw = raw or ""
    for pattern in _SLACK_PATTERNS:
        m = pattern.search(raw)
        if m and m.group(1).startswith("U"):
            return m.group(1).strip()
    return raw.strip()


def extract_github_username(repo_url: str | None) -> str | None:
    if not repo_url:
        return None
    m = _GITHUB_RE.search(repo_url)
    return m.group(1) if m else None


def split_signature(signature: str | None) -> tuple[str | None, str | None]:
    parts = (signature or "").split()
    if not parts:
        return None, None
    if len(parts) == 1:
        return parts[0], None
    return parts[0], " ".join(parts[1:])


def has_second_project(submission: dict) -> bool:
    return submission.get(COL_SECOND_PROJECT) in ("true", "Yes")


def user_key(submission: dict) -> str:
    return (submission.get(COL_EMAIL) or "").lower().strip() or extract_slack_id(submission.get(COL_SLACK))


def group_submissions(submissions: list[dict]) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {}
    for submission in submissions:
        key = user_key(submission)
        if key:
            grouped.setdefault(key, []).append(submission)
    return grouped


def merge_submissions(submissions: list[dict]) -> dict:
    """Airtable fields for one person; empty values are left out."""
    latest = submissions[-1]
    merged = {
        "Email": latest.get(COL_EMAIL),
        "Slack ID": extract_slack_id(latest.get(COL_SLACK)),
    }
    first, last = split_signature(latest.get(COL_SIGNATURE))
    merged["First Name"] = first
    merged["Last Name"] = last
    for column, target in _ADDRESS_COLUMNS.items():
        merged[target] = latest.get(column)
    merged["How did you hear about this?"] = (
        latest.get("Where did you find Converge?") or latest.get("How'd you hear about Converge?")
    )
    merged["What are we doing well?"] = latest.get("What are we doing well?")
    merged["How can we improve?"] = latest.get("What could we do better?")

    hackatime: list[str] = []
    descriptions: list[str] = []
    playable: list[str] = []
    videos: list[str] = []
    github: list[str] = []
    for submission in submissions:
        slots = _PROJECT_COLUMNS if has_second_project(submission) else _PROJECT_COLUMNS[:1]
        for names_col, desc_col, url_col, video_col, repo_col in slots:
            if submission.get(names_col):
                hackatime.append(submission[names_col])
            if submission.get(desc_col):
                descriptions.append(submission[desc_col])
            if submission.get(url_col):
                playable.append(submission[url_col])
            if submission.get(video_col):
                videos.append(submission[video_col])
            username = extract_github_username(submission.get(repo_col))
            if username and username not in github:
                github.append(username)

    if hackatime:
        merged["Hackatime Project Name"] = ", ".join(dict.fromkeys(hackatime))
    if descriptions:
        merged["Description"] = PROJECT_SEPARATOR.join(descriptions)
    if playable:
        merged["Playable URL"] = playable[0]
    if videos:
        merged["Screenshot"] = [{"url": videos[0]}]
    if github:
        merged["GitHub Username"] = github[0]
    return {k: v for k, v in merged.items() if v}


def is_auto_created(record: AirtableRecord) -> bool:
    return SYNC_MARKER in (record.fields.get("Project Name") or "")


def is_pending(record: AirtableRecord) -> bool:
    return record.fields.get("Converge Review", "") in ("Pending", "")


@dataclass
class RecordIndex:
    """Pending, not auto-created records by normalised email and by Slack ID (last one wins)."""

    by_email: dict[str, AirtableRecord] = field(default_factory=dict)
    by_slack_id: dict[str, AirtableRecord] = field(default_factory=dict)

    @classmethod
    def build(cls, records: list[AirtableRecord]) -> "RecordIndex":
        index = cls()
        for record in records:
            if is_auto_created(record) or not is_pending(record):
                continue
            email = record.text("Email Normalised") or record.text("Email")
            if email:
                index.by_email[email.lower().strip()] = record
            slack_id = record.text("Slack ID")
            if slack_id:
                index.by_slack_id[slack_id] = record
        return index

    def find(self, email: str | None, slack_id: str | None) -> AirtableRecord | None:
        if email and email.lower().strip() in self.by_email:
            return self.by_email[email.lower().strip()]
        if slack_id and slack_id in self.by_slack_id:
            return self.by_slack_id[slack_id]
        return None


def new_record_fields(merged: dict) -> dict:
    owner = (merged.get("Email") or "").lower().strip() or merged.get("Slack ID")
    return {
        **merged,
        "Converge Review": "Pending",
        "Fulfilled": False,
        "Project Name": f"{owner} {SYNC_MARKER}",
    }
