"""
Hackatime stats client (async, one shared httpx.AsyncClient per run).

GET {base}/{slack_id}/stats?features=projects&start_date=..&end_date=..
-> {"data": {"projects": [{"name", "total_seconds"}]}, "trust_factor": {"trust_level"}}
"""
import logging

import httpx
from pydantic import BaseModel, Field, field_validator

from rewards.core.config import Settings
from rewards.core.errors import ExternalFetchError

logger = logging.getLogger(__name__)


class HackatimeProject(BaseModel):
    name: str
    total_seconds: float = 0

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("total_seconds", mode="before")
    @classmethod
    def none_as_zero(cls, v):
        return v or 0


class HackatimeStats(BaseModel):
    projects: list[HackatimeProject] = Field(default_factory=list)
    trust_level: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_response(cls, payload: dict) -> "HackatimeStats":
        data = payload.get("data") or {}
        trust = payload.get("trust_factor") or {}
        return cls(
            projects=[p for p in (data.get("projects") or []) if isinstance(p, dict) and p.get("name")],
            trust_level=trust.get("trust_level"),
        )


class HackatimeClient:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._base_url = settings.hackatime_base_url.rstrip("/")
        self._start_date = settings.hackatime_start_date
        self._end_date = settings.hackatime_end_date
        headers = {}
        if settings.rack_attack_bypass:
            headers["Rack-Attack-Bypass"] = settings.rack_attack_bypass
        self._client = httpx.AsyncClient(
            timeout=settings.http_client_timeout_long,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "HackatimeClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_stats(self, slack_id: str) -> HackatimeStats:
        params = {
            "features": "projects",
            "start_date": self._start_date,
            "end_date": self._end_date,
        }
        try:
            resp = await self._client.get(f"{self._base_url}/{slack_id}/stats", params=params)
        except httpx.HTTPError as e:
            raise ExternalFetchError("hackatime", f"{slack_id}: {e}") from e
        if resp.status_code >= 300:
            raise ExternalFetchError("hackatime", slack_id, status_code=resp.status_code)
        return HackatimeStats.from_response(resp.json())
