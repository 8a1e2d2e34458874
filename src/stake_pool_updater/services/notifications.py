"""
stake_pool_updater.services.notifications

Notifier adapter: orchestration events -> human-readable channel messages.

Responsibilities:
- Format update lifecycle messages.
- Deliver them best-effort: a failed notification is logged and never raised.
"""

from __future__ import annotations

from stake_pool_updater.clients.base import MessageSender
from stake_pool_updater.observability.logging import get_logger

log = get_logger(__name__)


class UpdateNotifier:
    def __init__(self, *, channel: str, sender: MessageSender) -> None:
        self._channel = channel
        self._sender = sender

    async def update_starting(self, pool: str, epoch: int) -> bool:
        return await self._send(
            f"Epoch changed, executing update for stake pool {pool} for epoch {epoch}"
        )

    async def update_succeeded(self, pool: str, epoch: int, transactions: int) -> bool:
        return await self._send(
            f"Stake pool {pool} updated for epoch {epoch} ({transactions} transactions)"
        )

    async def update_failed(self, pool: str, error: BaseException) -> bool:
        return await self._send(
            f"Failed to run command to update stake pool {pool}: {type(error).__name__}: {error}"
        )

    async def rpc_unavailable(self, pool: str) -> bool:
        return await self._send(
            f"Rpc is failing to get the latest epoch info for stake pool {pool}. "
            "Retrying on the next update cycle"
        )

    async def _send(self, text: str) -> bool:
        try:
            await self._sender.send_message(channel=self._channel, text=text)
        except Exception as e:
            log.error("notification_failed", error=str(e), text=text)
            return False
        return True
