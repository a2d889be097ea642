"""
Estimate the cash budget for approved submissions at an hourly rate.

    payment-calculator
"""
import asyncio
import logging
import sys

from rewards.clients.airtable import AirtableClient
from rewards.clients.hackatime import HackatimeClient, HackatimeStats
from rewards.core.config import Settings, load_settings
from rewards.core.errors import ConfigError, ExternalFetchError
from rewards.core.logging import configure_logging
from rewards.payouts.budget import estimate_payments, summary_lines, users_needing_hackatime
from rewards.payouts.policy import PayoutPolicy, RoundingPolicy
from rewards.payouts.sources import fetch_submissions
from rewards.utils.concurrency import gather_bounded

logger = logging.getLogger("jobs.payment_calculator")


async def fetch_stats(settings: Settings, slack_ids: list[str]) -> dict[str, HackatimeStats]:
    async with HackatimeClient(settings) as hackatime:
        stats, errors = await gather_bounded(slack_ids, hackatime.fetch_stats, settings.fetch_concurrency)
    for slack_id, error in errors.items():
        logger.warning("hackatime_fetch_failed", extra={"slack_id": slack_id, "error": str(error)})
    return stats


def run(settings: Settings) -> int:
    with AirtableClient(settings) as airtable:
        submissions = fetch_submissions(airtable, settings.airtable_approved_formula)
    print(f"Found {len(submissions)} approved submissions")

    needing = users_needing_hackatime(submissions)
    print(f"Fetching Hackatime data for {len(needing)} users...")
    stats = asyncio.run(fetch_stats(settings, needing))

    policy = PayoutPolicy.from_settings(settings, RoundingPolicy.MULTIPLIER.value)
    results = estimate_payments(submissions, stats, policy, settings.payout_hourly_rate_usd)
    print("\n".join(summary_lines(results)))
    return 0


def main(argv: list[str] | None = None) -> int:
    try:
        settings = load_settings().require("airtable_api_key")
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(settings, service="payment-calculator")
    try:
        return run(settings)
    except ExternalFetchError as e:
        logger.error("payment_calculation_failed", extra={"error": str(e)})
        print(f"Payment calculation failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
