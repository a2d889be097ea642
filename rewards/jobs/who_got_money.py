"""
Recompute Converge payouts from approved submissions and Hackatime time.

    who-got-money [--dry-run] [--policy threshold-v1|multiplier-v2]

Exit codes: 0 ok, 1 fatal run error (Airtable listing, ledger write), 2 configuration error.
"""
import argparse
import asyncio
import logging
import sys

from rewards.clients.airtable import AirtableClient
from rewards.clients.classifier import PlatformClassifier
from rewards.clients.hackatime import HackatimeClient
from rewards.core.config import Settings, load_settings
from rewards.core.errors import ConfigError, ExternalFetchError, LedgerWriteError
from rewards.core.logging import configure_logging
from rewards.db.session import build_engine, build_sessionmaker
from rewards.payouts.job import PayoutPlan, commit_plan, compute_plan
from rewards.payouts.policy import PayoutPolicy, RoundingPolicy
from rewards.payouts.report import render_report
from rewards.payouts.sources import Submission, fetch_submissions

logger = logging.getLogger("jobs.who_got_money")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="who-got-money", description=__doc__.splitlines()[1])
    parser.add_argument("--dry-run", action="store_true", help="compute and report, do not touch the ledger")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in RoundingPolicy],
        default=None,
        help="rounding policy (default: PAYOUT_POLICY)",
    )
    return parser


async def build_plan(settings: Settings, submissions: list[Submission], policy: PayoutPolicy) -> PayoutPlan:
    classifier = PlatformClassifier(settings)
    try:
        async with HackatimeClient(settings) as hackatime:
            return await compute_plan(
                submissions,
                policy,
                hackatime,
                classifier,
                concurrency=settings.fetch_concurrency,
                start_date=settings.hackatime_start_date,
                end_date=settings.hackatime_end_date,
            )
    finally:
        await classifier.aclose()


def run(settings: Settings, policy: PayoutPolicy, dry_run: bool = False) -> int:
    with AirtableClient(settings) as airtable:
        submissions = fetch_submissions(airtable, settings.airtable_approved_formula)
    print(f"Found {len(submissions)} approved submissions")

    plan = asyncio.run(build_plan(settings, submissions, policy))

    engine = build_engine(settings)
    try:
        result = commit_plan(
            build_sessionmaker(engine),
            plan,
            dry_run=dry_run,
            avatar_url_template=settings.payout_avatar_url_template,
        )
    finally:
        engine.dispose()

    print(render_report(plan, result))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings().require("airtable_api_key")
        policy = PayoutPolicy.from_settings(settings, args.policy)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(settings, service="who-got-money")

    try:
        return run(settings, policy, dry_run=args.dry_run)
    except (ExternalFetchError, LedgerWriteError) as e:
        logger.error("payout_run_failed", extra={"error": str(e)})
        print(f"Payout run failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
