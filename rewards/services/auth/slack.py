"""
Slack "Sign in with Slack" (OpenID Connect) client.
Exchanges the OAuth code for a token and reads the user's id and avatar.
"""
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from rewards.core.config import Settings
from rewards.core.errors import ExternalFetchError

logger = logging.getLogger(__name__)

USER_SCOPE = "openid,profile,email"


@dataclass(frozen=True)
class SlackIdentity:
    slack_id: str
    avatar_url: str | None = None


class SlackOAuthClient:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    def authorize_url(self, redirect_uri: str) -> str:
        query = urlencode(
            {
                "scope": "",
                "user_scope": USER_SCOPE,
                "redirect_uri": redirect_uri,
                "client_id": self.settings.slack_client_id,
            }
        )
        return f"{self.settings.slack_workspace_url}/oauth/v2/authorize?{query}"

    async def exchange_code(self, code: str, redirect_uri: str) -> SlackIdentity:
        async with httpx.AsyncClient(
            base_url=self.settings.slack_api_url,
            timeout=self.settings.http_client_timeout,
            transport=self._transport,
        ) as client:
            token_resp = await client.post(
                "/openid.connect.token",
                data={
                    "client_id": self.settings.slack_client_id,
                    "client_secret": self.settings.slack_client_secret,
                    "code": code,
                    "redirect_uri": redirect_uri,
                },
            )
            token = self._payload(token_resp, "openid.connect.token")
            info_resp = await client.get(
                "/openid.connect.userInfo",
                headers={"Authorization": f"Bearer {token['access_token']}"},
            )
            info = self._payload(info_resp, "openid.connect.userInfo")

        slack_id = info.get("https://slack.com/user_id") or info.get("sub")
        if not slack_id:
            raise ExternalFetchError("slack", "userInfo response without user id")
        return SlackIdentity(slack_id=slack_id, avatar_url=info.get("picture"))

    @staticmethod
    def _payload(resp: httpx.Response, method: str) -> dict:
        if resp.status_code >= 300:
            raise ExternalFetchError("slack", method, status_code=resp.status_code)
        data = resp.json()
        if not data.get("ok"):
            logger.warning("slack_api_error", extra={"error": data.get("error"), "path": method})
            raise ExternalFetchError("slack", f"{method}: {data.get('error', 'unknown error')}")
        return data
