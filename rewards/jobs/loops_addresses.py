"""
Fill shipping addresses on submission records from Loops contacts.

    loops-addresses
"""
import asyncio
import logging
import sys

from rewards.clients.airtable import AirtableClient, AirtableRecord
from rewards.clients.loops import LoopsClient
from rewards.core.config import Settings, load_settings
from rewards.core.errors import ConfigError, ExternalFetchError
from rewards.core.logging import configure_logging
from rewards.sync.addresses import AddressOutcome, decide_address
from rewards.utils.concurrency import gather_bounded

logger = logging.getLogger("jobs.loops_addresses")


def record_email(record: AirtableRecord) -> str | None:
    return record.text("Email Normalised") or record.text("Email")


async def lookup_contacts(settings: Settings, emails: list[str]) -> dict[str, list[dict]]:
    """Loops contacts per email. A failed lookup counts as no contacts."""
    async with LoopsClient(settings) as loops:
        contacts, errors = await gather_bounded(emails, loops.find_contacts, settings.fetch_concurrency)
    for email, error in errors.items():
        logger.warning("loops_lookup_failed", extra={"email": email, "error": str(error)})
    return contacts


def plan_updates(records: list[AirtableRecord], contacts: dict[str, list[dict]]) -> tuple[list[dict], dict[str, int], list[str]]:
    """Returns (updates, counts per outcome, warnings)."""
    updates: list[dict] = []
    counts = {outcome.value: 0 for outcome in AddressOutcome}
    counts["skipped"] = 0
    warnings: list[str] = []
    for record in records:
        email = record_email(record)
        if not email:
            counts["skipped"] += 1
            continue
        decision = decide_address(record.fields, contacts.get(email, []))
        counts[decision.outcome.value] += 1
        if decision.outcome is AddressOutcome.NO_ADDRESS:
            warnings.append(f"{email} (ID: {record.id}) - No address in Airtable or Loops")
            continue
        updates.append({"id": record.id, "fields": decision.fields})
    return updates, counts, warnings


def run(settings: Settings) -> int:
    with AirtableClient(settings) as airtable:
        records = airtable.list_records()
        print(f"Found {len(records)} total submissions")

        emails = [e for e in (record_email(r) for r in records) if e]
        contacts = asyncio.run(lookup_contacts(settings, emails))
        updates, counts, warnings = plan_updates(records, contacts)

        failed: list[int] = []
        if updates:
            print(f"Updating {len(updates)} Airtable records...")
            _, failed = airtable.update_records(updates)

    print("=== SUMMARY ===")
    print(f"Total records processed: {len(records)}")
    print(f"Records skipped (no email): {counts['skipped']}")
    print(f"Auto-assigned addresses: {counts[AddressOutcome.AUTO_ASSIGNED.value]}")
    print(f"Manually assigned addresses: {counts[AddressOutcome.MANUALLY_ASSIGNED.value]}")
    print(f"No address found: {counts[AddressOutcome.NO_ADDRESS.value]}")
    print(f"Total updates: {len(updates)}")
    if failed:
        print(f"Failed batches: {', '.join(str(n) for n in failed)}")
    if warnings:
        print("=== WARNINGS ===")
        print("The following users have no address data anywhere:")
        for warning in warnings:
            print(warning)
    return 0


def main(argv: list[str] | None = None) -> int:
    try:
        settings = load_settings().require("airtable_api_key", "loops_api_key")
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(settings, service="loops-addresses")
    try:
        return run(settings)
    except ExternalFetchError as e:
        logger.error("loops_address_sync_failed", extra={"error": str(e)})
        print(f"Address sync failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
