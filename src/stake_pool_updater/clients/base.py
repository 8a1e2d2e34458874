"""
stake_pool_updater.clients.base

Collaborator contracts consumed by the orchestrator.

Responsibilities:
- `ChainStateProvider`: raw account bytes by address.
- `TxTransport`: simulate / send / confirm / fee / balance / blockhash / epoch primitives.
- `MessageSender`: post a text message to a channel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction


@dataclass(frozen=True, slots=True)
class EpochInfo:
    epoch: int
    slot_index: int = 0
    slots_in_epoch: int = 0
    absolute_slot: int = 0


@dataclass(frozen=True, slots=True)
class SimulationResult:
    units_consumed: int | None
    err: str | None = None
    logs: tuple[str, ...] = field(default_factory=tuple)


class ChainStateProvider(Protocol):
    async def get_account_bytes(self, address: Pubkey) -> bytes: ...


class TxTransport(Protocol):
    async def simulate(self, tx: Transaction) -> SimulationResult: ...

    async def send_no_wait(self, tx: Transaction) -> Signature: ...

    async def send_and_confirm(self, tx: Transaction) -> Signature: ...

    async def get_fee_for_message(self, message: Message) -> int | None: ...

    async def get_balance(self, pubkey: Pubkey) -> int: ...

    async def get_latest_blockhash(self) -> Hash: ...

    async def get_epoch_info(self) -> EpochInfo: ...


class MessageSender(Protocol):
    async def send_message(self, *, channel: str, text: str) -> None: ...


# --- Module Notes -----------------------------------------------------------
# Every method raises `errors.TransportError` (or `errors.NotificationError` for
# MessageSender) on failure; callers never see library-specific exceptions.
