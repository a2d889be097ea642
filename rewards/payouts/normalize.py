"""
Field normalizers: declared project names, Hackatime project matching and trust gating.
"""
import logging
import re
from enum import Enum
from typing import Iterable

from rewards.clients.hackatime import HackatimeProject

logger = logging.getLogger(__name__)

_SEPARATOR_RE = re.compile(r",\s*")


class TrustDecision(str, Enum):
    INCLUDE = "include"
    REVIEW = "review"  # counted, but listed for a manual look
    EXCLUDE = "exclude"


def evaluate_trust(trust_level: str | None) -> TrustDecision:
    level = (trust_level or "").strip().lower()
    if level == "red":
        return TrustDecision.EXCLUDE
    if level == "yellow":
        return TrustDecision.REVIEW
    return TrustDecision.INCLUDE


def parse_project_names(raw: str | None) -> list[str]:
    """'Foo, Bar,,baz ' -> ['Foo', 'Bar', 'baz']"""
    if not raw:
        return []
    return [name.strip() for name in _SEPARATOR_RE.split(raw) if name.strip()]


def matched_seconds(
    projects: Iterable[HackatimeProject],
    declared: Iterable[str],
) -> tuple[float, list[str]]:
    """Sum total_seconds of the projects named in `declared` (case-insensitive, trimmed).

    Returns (seconds, names of the matched Hackatime projects).
    """
    wanted = {name.strip().lower() for name in declared if name and name.strip()}
    total = 0.0
    matched = []
    for project in projects:
        if project.name.strip().lower() in wanted:
            total += project.total_seconds or 0
            matched.append(project.name)
    return total, matched
