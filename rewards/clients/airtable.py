"""
Airtable REST client using httpx sync client.
Covers the calls the sync jobs make against the submissions table:
paginated list (offset cursor), batched PATCH, create, update and delete.
"""
import logging

import httpx
from pydantic import BaseModel, Field

from rewards.core.config import Settings
from rewards.core.errors import ExternalFetchError

logger = logging.getLogger(__name__)


class AirtableRecord(BaseModel):
    id: str
    fields: dict = Field(default_factory=dict)
    created_time: str | None = Field(None, alias="createdTime")

    model_config = {"frozen": True, "populate_by_name": True}

    def text(self, name: str) -> str | None:
        """String value of a field, None when absent, empty or not a string."""
        value = self.fields.get(name)
        if isinstance(value, str) and value.strip():
            return value
        return None


class AirtableClient:
    # Airtable accepts at most 10 records per write request
    BATCH_SIZE = 10

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        self._table_url = settings.airtable_table_url
        self._api_key = settings.airtable_api_key
        self._timeout = settings.http_client_timeout_long
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of httpx client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "AirtableClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _check(self, resp: httpx.Response, action: str) -> None:
        if resp.status_code >= 300:
            raise ExternalFetchError("airtable", f"{action}: {resp.text[:500]}", status_code=resp.status_code)

    def list_records(self, formula: str | None = None) -> list[AirtableRecord]:
        """Fetch every record of the table, following the offset cursor until it is absent."""
        records: list[AirtableRecord] = []
        offset: str | None = None
        while True:
            params = {}
            if formula:
                params["filterByFormula"] = formula
            if offset:
                params["offset"] = offset
            try:
                resp = self.client.get(self._table_url, params=params)
            except httpx.HTTPError as e:
                raise ExternalFetchError("airtable", f"list: {e}") from e
            self._check(resp, "list")
            data = resp.json()
            records.extend(AirtableRecord.model_validate(r) for r in data.get("records", []))
            offset = data.get("offset")
            if not offset:
                break
        logger.info("airtable_records_fetched", extra={"count": len(records)})
        return records

    def update_records(self, updates: list[dict]) -> tuple[int, list[int]]:
        """
        PATCH {"id", "fields"} updates in batches of 10.
        A failed batch is logged and skipped. Returns (updated count, failed batch numbers).
        """
        updated = 0
        failed: list[int] = []
        for start in range(0, len(updates), self.BATCH_SIZE):
            batch = updates[start:start + self.BATCH_SIZE]
            batch_no = start // self.BATCH_SIZE + 1
            try:
                resp = self.client.patch(self._table_url, json={"records": batch})
                self._check(resp, "update")
            except (httpx.HTTPError, ExternalFetchError) as e:
                logger.error("airtable_batch_update_failed", extra={"batch": batch_no, "error": str(e)})
                failed.append(batch_no)
                continue
            updated += len(batch)
            logger.info("airtable_batch_updated", extra={"batch": batch_no, "count": len(batch)})
        return updated, failed

    def _send(self, method: str, url: str, action: str, **kwargs) -> httpx.Response:
        try:
            resp = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ExternalFetchError("airtable", f"{action}: {e}") from e
        self._check(resp, action)
        return resp

    def create_record(self, fields: dict) -> str:
        resp = self._send("POST", self._table_url, "create", json={"fields": fields})
        return resp.json()["id"]

    def update_record(self, record_id: str, fields: dict) -> None:
        self._send("PATCH", f"{self._table_url}/{record_id}", f"update {record_id}", json={"fields": fields})

    def delete_record(self, record_id: str) -> None:
        self._send("DELETE", f"{self._table_url}/{record_id}", f"delete {record_id}")
