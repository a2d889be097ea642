"""Tests for planning Loops address updates."""
from rewards.clients.airtable import AirtableRecord
from rewards.jobs.loops_addresses import plan_updates
from rewards.sync.addresses import STATUS_FIELD


class TestPlanUpdates:
    def test_outcomes(self):
        records = [
            AirtableRecord(id="rec1", fields={"Email": "auto@example.com"}),
            AirtableRecord(id="rec2", fields={"Email Normalised": "manual@example.com", "Address City": "Paris"}),
            AirtableRecord(id="rec3", fields={"Email": "none@example.com"}),
            AirtableRecord(id="rec4", fields={}),
        ]
        contacts = {"auto@example.com": [{"addressLine1": "1 Main St", "addressCountry": "US"}]}

        updates, counts, warnings = plan_updates(records, contacts)

        assert [u["id"] for u in updates] == ["rec1", "rec2"]
        assert updates[0]["fields"][STATUS_FIELD] == "Auto-assigned"
        assert updates[1]["fields"] == {STATUS_FIELD: "Manually assigned"}
        assert counts == {"auto_assigned": 1, "manually_assigned": 1, "no_address": 1, "skipped": 1}
        assert warnings == ["none@example.com (ID: rec3) - No address in Airtable or Loops"]
