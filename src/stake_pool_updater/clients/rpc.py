"""
stake_pool_updater.clients.rpc

Solana JSON-RPC client boundary (solana-py `AsyncClient`).

Responsibilities:
- Implement `ChainStateProvider` and `TxTransport` at `confirmed` commitment.
- Translate library/network failures into `TransportError`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from stake_pool_updater.clients.base import EpochInfo, SimulationResult
from stake_pool_updater.errors import TransportError
from stake_pool_updater.observability.logging import get_logger

log = get_logger(__name__)

_MISSING = object()


@contextmanager
def _rpc_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (SolanaRpcException, RPCException, UnconfirmedTxError, httpx.HTTPError) as e:
        raise TransportError(operation, str(e) or type(e).__name__) from e


def _value(resp: Any, operation: str) -> Any:
    # Error responses decode to RPC error objects that carry no `value`.
    value = getattr(resp, "value", _MISSING)
    if value is _MISSING:
        raise TransportError(operation, str(resp))
    return value


class SolanaRpcClient:
    def __init__(self, *, rpc_url: str, client: AsyncClient | None = None) -> None:
        self._rpc_url = rpc_url
        self._client = client or AsyncClient(rpc_url, commitment=Confirmed)

    async def close(self) -> None:
        await self._client.close()

    async def get_account_bytes(self, address: Pubkey) -> bytes:
        with _rpc_errors("get_account_info"):
            resp = await self._client.get_account_info(address, commitment=Confirmed)
        account = _value(resp, "get_account_info")
        if account is None:
            raise TransportError("get_account_info", f"account {address} not found")
        return bytes(account.data)

    async def get_epoch_info(self) -> EpochInfo:
        with _rpc_errors("get_epoch_info"):
            resp = await self._client.get_epoch_info(commitment=Confirmed)
        info = _value(resp, "get_epoch_info")
        return EpochInfo(
            epoch=info.epoch,
            slot_index=info.slot_index,
            slots_in_epoch=info.slots_in_epoch,
            absolute_slot=info.absolute_slot,
        )

    async def get_latest_blockhash(self) -> Hash:
        with _rpc_errors("get_latest_blockhash"):
            resp = await self._client.get_latest_blockhash(commitment=Confirmed)
        return _value(resp, "get_latest_blockhash").blockhash

    async def get_fee_for_message(self, message: Message) -> int | None:
        with _rpc_errors("get_fee_for_message"):
            resp = await self._client.get_fee_for_message(message, commitment=Confirmed)
        return _value(resp, "get_fee_for_message")

    async def get_balance(self, pubkey: Pubkey) -> int:
        with _rpc_errors("get_balance"):
            resp = await self._client.get_balance(pubkey, commitment=Confirmed)
        return int(_value(resp, "get_balance"))

    async def simulate(self, tx: Transaction) -> SimulationResult:
        with _rpc_errors("simulate_transaction"):
            resp = await self._client.simulate_transaction(tx, sig_verify=False, commitment=Confirmed)
        result = _value(resp, "simulate_transaction")
        return SimulationResult(
            units_consumed=result.units_consumed,
            err=None if result.err is None else str(result.err),
            logs=tuple(result.logs or ()),
        )

    async def send_no_wait(self, tx: Transaction) -> Signature:
        with _rpc_errors("send_transaction"):
            resp = await self._client.send_raw_transaction(
                bytes(tx),
                opts=TxOpts(skip_confirmation=True, preflight_commitment=Confirmed),
            )
        return _value(resp, "send_transaction")

    async def send_and_confirm(self, tx: Transaction) -> Signature:
        signature = await self.send_no_wait(tx)
        with _rpc_errors("confirm_transaction"):
            resp = await self._client.confirm_transaction(signature, commitment=Confirmed)
        statuses = _value(resp, "confirm_transaction")
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            raise TransportError("confirm_transaction", f"{signature} failed: {status.err}")
        log.debug("transaction_confirmed", signature=str(signature))
        return signature


# --- Module Notes -----------------------------------------------------------
# Timeouts are the transport's own (httpx defaults inside AsyncClient, confirmation
# polling inside `confirm_transaction`); nothing here adds a deadline.
