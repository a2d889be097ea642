"""
Payout recomputation.

compute_plan() does all network work (Hackatime stats, platform classification)
and produces a PayoutPlan without touching the database. commit_plan() then
reconciles the plan against the current ledger and replaces the job-owned
payouts in a single transaction.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rewards.clients.classifier import PlatformClassifier
from rewards.clients.hackatime import HackatimeClient
from rewards.core.errors import LedgerWriteError
from rewards.payouts.bonus import platform_bonus, submission_text
from rewards.payouts.ledger import LedgerWriter, PayoutRow
from rewards.payouts.normalize import TrustDecision, evaluate_trust, matched_seconds
from rewards.payouts.policy import SECONDS_PER_HOUR, PayoutPolicy, tokens_from_seconds
from rewards.payouts.reconcile import BalanceWarning, UserBalance, find_balance_reductions
from rewards.payouts.sources import Submission, group_by_user
from rewards.services.users.service import DEFAULT_AVATAR_URL_TEMPLATE, UserService
from rewards.utils.concurrency import gather_bounded

logger = logging.getLogger(__name__)


@dataclass
class UserPayout:
    slack_id: str
    email: str
    seconds: float
    base_tokens: int
    trust_level: str | None = None
    matched_projects: list[str] = field(default_factory=list)
    platforms: list[str] = field(default_factory=list)
    bonus_tokens: int = 0

    @property
    def hours(self) -> float:
        return self.seconds / SECONDS_PER_HOUR

    @property
    def total_tokens(self) -> int:
        return self.base_tokens + self.bonus_tokens

    @property
    def needs_review(self) -> bool:
        return evaluate_trust(self.trust_level) is TrustDecision.REVIEW


@dataclass
class SkippedUser:
    slack_id: str
    email: str
    reason: str


@dataclass
class PayoutPlan:
    policy: PayoutPolicy
    start_date: str
    end_date: str
    payouts: list[UserPayout] = field(default_factory=list)
    skipped: list[SkippedUser] = field(default_factory=list)

    @property
    def review(self) -> list[UserPayout]:
        return [p for p in self.payouts if p.needs_review]

    @property
    def emails(self) -> dict[str, str]:
        emails = {s.slack_id: s.email for s in self.skipped}
        emails.update({p.slack_id: p.email for p in self.payouts})
        return emails

    def rows(self) -> list[PayoutRow]:
        """Ledger rows for the plan, base then bonus per user. Zero amounts produce no row."""
        period = f"{self.start_date} to {self.end_date.split('T')[0]}"
        rows = []
        for p in self.payouts:
            if p.base_tokens > 0:
                rows.append(
                    PayoutRow(
                        user_id=p.slack_id,
                        tokens=p.base_tokens,
                        memo=f"Converge payout: {p.hours:.2f} hours worked ({period})",
                    )
                )
            if p.bonus_tokens > 0:
                rows.append(
                    PayoutRow(
                        user_id=p.slack_id,
                        tokens=p.bonus_tokens,
                        memo=(
                            f"Platform bonus: Used {len(p.platforms)} chat platforms "
                            f"({', '.join(p.platforms)}) - capped at {self.policy.max_tokens} total tokens"
                        ),
                    )
                )
        return rows


@dataclass
class CommitResult:
    warnings: list[BalanceWarning]
    deleted: int = 0
    inserted: int = 0
    dry_run: bool = False


async def compute_plan(
    submissions: list[Submission],
    policy: PayoutPolicy,
    hackatime: HackatimeClient,
    classifier: PlatformClassifier,
    concurrency: int,
    start_date: str,
    end_date: str,
) -> PayoutPlan:
    plan = PayoutPlan(policy=policy, start_date=start_date, end_date=end_date)
    by_user = group_by_user(submissions)

    # Hackatime is only asked about users that declared at least one project
    with_projects = [
        slack_id for slack_id, subs in by_user.items() if any(s.project_names for s in subs)
    ]
    stats, fetch_errors = await gather_bounded(with_projects, hackatime.fetch_stats, concurrency)

    for slack_id, user_submissions in by_user.items():
        email = user_submissions[0].email
        if slack_id not in stats and slack_id not in fetch_errors:
            plan.payouts.append(UserPayout(slack_id=slack_id, email=email, seconds=0, base_tokens=0))
            continue
        if slack_id in fetch_errors:
            error = fetch_errors[slack_id]
            logger.warning("hackatime_fetch_failed", extra={"slack_id": slack_id, "error": str(error)})
            plan.skipped.append(SkippedUser(slack_id, email, f"hackatime fetch failed: {error}"))
            continue
        user_stats = stats[slack_id]
        if evaluate_trust(user_stats.trust_level) is TrustDecision.EXCLUDE:
            logger.info("user_excluded_red_trust", extra={"slack_id": slack_id, "trust_level": user_stats.trust_level})
            plan.skipped.append(SkippedUser(slack_id, email, "red trust level"))
            continue

        seconds = 0.0
        matched: list[str] = []
        for submission in user_submissions:
            s, names = matched_seconds(user_stats.projects, submission.project_names)
            seconds += s
            matched.extend(names)
        plan.payouts.append(
            UserPayout(
                slack_id=slack_id,
                email=email,
                seconds=seconds,
                base_tokens=tokens_from_seconds(seconds, policy),
                trust_level=user_stats.trust_level,
                matched_projects=matched,
            )
        )

    texts = {
        p.slack_id: submission_text((s.description, s.playable_url) for s in by_user[p.slack_id])
        for p in plan.payouts
    }

    async def classify(slack_id: str) -> list[str]:
        return await classifier.detect(texts[slack_id])

    platforms, classify_errors = await gather_bounded(
        [slack_id for slack_id, text in texts.items() if text],
        classify,
        concurrency,
    )
    for slack_id, error in classify_errors.items():
        logger.warning("platform_classification_failed", extra={"slack_id": slack_id, "error": str(error)})

    for p in plan.payouts:
        p.platforms = platforms.get(p.slack_id, [])
        p.bonus_tokens = platform_bonus(p.base_tokens, p.platforms, policy.max_tokens)

    logger.info(
        "payout_plan_computed",
        extra={"count": len(plan.payouts), "policy": policy.rounding.value},
    )
    return plan


def commit_plan(
    session_factory: Callable[[], Session],
    plan: PayoutPlan,
    dry_run: bool = False,
    avatar_url_template: str = DEFAULT_AVATAR_URL_TEMPLATE,
) -> CommitResult:
    """
    Reconcile and write the plan in one transaction.

    The users checked for balance reductions are the plan's users plus everyone
    holding payouts today. After the run a user holds their protected payouts
    plus the new rows.
    """
    rows = plan.rows()
    new_totals: dict[str, int] = {}
    for row in rows:
        new_totals[row.user_id] = new_totals.get(row.user_id, 0) + row.tokens

    db = session_factory()
    try:
        with db.begin():
            ledger = LedgerWriter(db, plan.policy.protected_markers, avatar_url_template)
            prior = ledger.prior_totals()
            touched = sorted(set(prior) | {p.slack_id for p in plan.payouts})
            spent = UserService(db).spent_totals(touched)
            emails = plan.emails
            balances = []
            for slack_id in touched:
                before = prior.get(slack_id)
                balances.append(
                    UserBalance(
                        slack_id=slack_id,
                        email=emails.get(slack_id, "N/A"),
                        old_tokens=before.total if before else 0,
                        new_tokens=(before.protected if before else 0) + new_totals.get(slack_id, 0),
                        spent=spent.get(slack_id, 0),
                    )
                )
            warnings = find_balance_reductions(balances)
            for w in warnings:
                logger.warning(
                    "balance_reduction",
                    extra={"slack_id": w.slack_id, "tokens": w.difference},
                )
            if dry_run:
                return CommitResult(warnings=warnings, inserted=len(rows), dry_run=True)
            deleted, inserted = ledger.replace(rows)
    except SQLAlchemyError as e:
        logger.exception("payout_ledger_write_failed")
        raise LedgerWriteError(f"payout ledger replace failed: {e}") from e
    finally:
        db.close()
    return CommitResult(warnings=warnings, deleted=deleted, inserted=inserted)
