import logging

import httpx

from rewards.core.config import Settings
from rewards.core.errors import ExternalFetchError

logger = logging.getLogger(__name__)


class LoopsClient:
    """Loops contacts lookup (async). Only the find-by-email call is used."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(
            base_url=settings.loops_api_url,
            timeout=settings.http_client_timeout,
            headers={"Authorization": f"Bearer {settings.loops_api_key}"},
            transport=transport,
        )

    async def __aenter__(self) -> "LoopsClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self._client.aclose()

    async def find_contacts(self, email: str) -> list[dict]:
        try:
            resp = await self._client.get("/contacts/find", params={"email": email})
        except httpx.HTTPError as e:
            raise ExternalFetchError("loops", f"{email}: {e}") from e
        if resp.status_code >= 300:
            raise ExternalFetchError("loops", email, status_code=resp.status_code)
        data = resp.json()
        return data if isinstance(data, list) else []
