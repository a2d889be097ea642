"""
Sync the Fillout CSV export into pending Airtable submissions.

    fillout-sync [--csv PATH]

Records created by a previous sync are deleted first, so re-running never
piles up duplicates.
"""
import argparse
import logging
import sys

from rewards.clients.airtable import AirtableClient, AirtableRecord
from rewards.core.config import Settings, load_settings
from rewards.core.errors import ConfigError, ExternalFetchError
from rewards.core.logging import configure_logging
from rewards.sync.fillout import (
    RecordIndex,
    group_submissions,
    is_auto_created,
    merge_submissions,
    new_record_fields,
    read_submissions,
)

logger = logging.getLogger("jobs.fillout_sync")


def cleanup_auto_created(airtable: AirtableClient, records: list[AirtableRecord]) -> int:
    deleted = 0
    for record in records:
        if not is_auto_created(record):
            continue
        try:
            airtable.delete_record(record.id)
        except ExternalFetchError as e:
            logger.error("fillout_cleanup_failed", extra={"record_id": record.id, "error": str(e)})
            continue
        deleted += 1
    return deleted


def sync(airtable: AirtableClient, submissions: list[dict]) -> dict[str, int]:
    records = airtable.list_records()
    deleted = cleanup_auto_created(airtable, records)
    index = RecordIndex.build(records)
    grouped = group_submissions(submissions)

    counts = {"users": len(grouped), "deleted": deleted, "updated": 0, "created": 0, "failed": 0}
    for key, user_submissions in grouped.items():
        merged = merge_submissions(user_submissions)
        existing = index.find(merged.get("Email"), merged.get("Slack ID"))
        try:
            if existing:
                airtable.update_record(existing.id, merged)
                counts["updated"] += 1
            else:
                record_id = airtable.create_record(new_record_fields(merged))
                counts["created"] += 1
                logger.info("fillout_record_created", extra={"record_id": record_id})
        except ExternalFetchError as e:
            counts["failed"] += 1
            logger.error("fillout_record_sync_failed", extra={"email": key, "error": str(e)})
    return counts


def run(settings: Settings, csv_path: str) -> int:
    submissions = read_submissions(csv_path)
    print(f"Found {len(submissions)} submissions in CSV")
    with AirtableClient(settings) as airtable:
        counts = sync(airtable, submissions)
    print("=== SUMMARY ===")
    print(f"Total unique users processed: {counts['users']}")
    print(f"Auto-created records deleted: {counts['deleted']}")
    print(f"Total records updated: {counts['updated']}")
    print(f"Total records created: {counts['created']}")
    print(f"Failed operations: {counts['failed']}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="fillout-sync", description="Sync the Fillout CSV export into Airtable")
    parser.add_argument("--csv", default=None, help="path to the export (default: FILLOUT_CSV_PATH)")
    args = parser.parse_args(argv)
    try:
        settings = load_settings().require("airtable_api_key")
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(settings, service="fillout-sync")
    try:
        return run(settings, args.csv or settings.fillout_csv_path)
    except (ExternalFetchError, OSError) as e:
        logger.error("fillout_sync_failed", extra={"error": str(e)})
        print(f"Fillout sync failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
