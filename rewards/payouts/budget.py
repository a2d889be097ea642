"""
Budget estimate for hourly cash payments. Read-only: nothing is written anywhere.

Override hours on a submission replace its Hackatime time. Hours are rounded with
the multiplier policy and are not capped.
"""
import logging
from dataclasses import dataclass, field

from rewards.clients.hackatime import HackatimeStats
from rewards.payouts.normalize import TrustDecision, evaluate_trust, matched_seconds
from rewards.payouts.policy import SECONDS_PER_HOUR, PayoutPolicy, RoundingPolicy, whole_hours
from rewards.payouts.sources import Submission

logger = logging.getLogger(__name__)

OVERRIDE_PROJECT = "Override Hours"


@dataclass
class UserPayment:
    slack_id: str
    email: str
    hours: int
    payment: int
    projects: list[str] = field(default_factory=list)


@dataclass
class _Accumulator:
    email: str
    seconds: float = 0.0
    projects: list[str] = field(default_factory=list)
    declared: list[str] = field(default_factory=list)


def users_needing_hackatime(submissions: list[Submission]) -> list[str]:
    ids = []
    for s in submissions:
        if (s.override_hours or 0) > 0 or not s.project_names:
            continue
        if s.slack_id not in ids:
            ids.append(s.slack_id)
    return ids


def estimate_payments(
    submissions: list[Submission],
    stats: dict[str, HackatimeStats],
    policy: PayoutPolicy,
    hourly_rate: int,
) -> list[UserPayment]:
    """`stats` holds the Hackatime answers that succeeded; users missing from it keep only override hours."""
    if policy.rounding is not RoundingPolicy.MULTIPLIER:
        policy = policy.model_copy(update={"rounding": RoundingPolicy.MULTIPLIER})

    users: dict[str, _Accumulator] = {}
    for s in submissions:
        acc = users.setdefault(s.slack_id, _Accumulator(email=s.email))
        if (s.override_hours or 0) > 0:
            acc.seconds += s.override_hours * SECONDS_PER_HOUR
            if OVERRIDE_PROJECT not in acc.projects:
                acc.projects.append(OVERRIDE_PROJECT)
            continue
        acc.declared.extend(s.project_names)

    for slack_id, acc in users.items():
        user_stats = stats.get(slack_id)
        if user_stats is None or not acc.declared:
            continue
        if evaluate_trust(user_stats.trust_level) is TrustDecision.EXCLUDE:
            logger.info("user_excluded_red_trust", extra={"slack_id": slack_id})
            continue
        seconds, names = matched_seconds(user_stats.projects, acc.declared)
        acc.seconds += seconds
        acc.projects.extend(n for n in names if n not in acc.projects)

    results = []
    for slack_id, acc in users.items():
        hours = whole_hours(acc.seconds, policy)
        if hours > 0:
            results.append(
                UserPayment(
                    slack_id=slack_id,
                    email=acc.email,
                    hours=hours,
                    payment=hours * hourly_rate,
                    projects=acc.projects,
                )
            )
    return results


def summary_lines(results: list[UserPayment]) -> list[str]:
    total = sum(r.payment for r in results)
    average = total / len(results) if results else 0
    return [
        "=== SUMMARY ===",
        f"Total users: {len(results)}",
        f"Total hours (rounded): {sum(r.hours for r in results)}",
        f"TOTAL BUDGET: ${total}",
        f"Average payment per user: ${average:.2f}",
    ]
