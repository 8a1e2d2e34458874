"""
stake_pool_updater.clients.slack

Slack Web API client boundary.

Responsibilities:
- Post plain-text messages via `chat.postMessage` with a bot token.
- Surface HTTP and API-level failures as `NotificationError`.
"""

from __future__ import annotations

import httpx

from stake_pool_updater.errors import NotificationError

SLACK_API_BASE_URL = "https://slack.com/api"


class SlackClient:
    def __init__(self, *, token: str, http: httpx.AsyncClient) -> None:
        self._token = token
        self._http = http

    def _authz(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def send_message(self, *, channel: str, text: str) -> None:
        try:
            r = await self._http.post(
                f"{SLACK_API_BASE_URL}/chat.postMessage",
                headers=self._authz(),
                json={"channel": channel, "text": text},
            )
            r.raise_for_status()
            body = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NotificationError(f"chat.postMessage failed: {e}") from e

        # Slack reports most failures with HTTP 200 and `ok: false`.
        if not body.get("ok", False):
            raise NotificationError(f"chat.postMessage rejected: {body.get('error', 'unknown')}")


# --- Module Notes -----------------------------------------------------------
# The shared httpx.AsyncClient is owned by the app lifecycle (see `api.app`).
