"""
stake_pool_updater.orchestrator.reader

State Reader: fetches and decodes the pool and validator list for one cycle.

Responsibilities:
- `fetch_pool(address)` -> StakePoolSnapshot
- `fetch_validator_list(ref)` -> ValidatorListSnapshot
"""

from __future__ import annotations

from solders.pubkey import Pubkey

from stake_pool_updater.chain.layouts import decode_stake_pool, decode_validator_list
from stake_pool_updater.chain.state import StakePoolSnapshot, ValidatorListSnapshot
from stake_pool_updater.clients.base import ChainStateProvider


class StateReader:
    """
    Raises TransportError when the account cannot be fetched and DecodeError when its
    bytes are malformed. Neither is retried here.
    """

    def __init__(self, provider: ChainStateProvider) -> None:
        self._provider = provider

    async def fetch_pool(self, address: Pubkey) -> StakePoolSnapshot:
        data = await self._provider.get_account_bytes(address)
        return decode_stake_pool(address, data)

    async def fetch_validator_list(self, ref: Pubkey) -> ValidatorListSnapshot:
        data = await self._provider.get_account_bytes(ref)
        return decode_validator_list(ref, data)
