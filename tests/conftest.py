"""
tests.conftest

Shared fixtures: in-memory Solana transport, notification recorder and account builders.

Responsibilities:
- Encode stake pool / validator list accounts with the production layouts.
- Record every transport call so tests can assert ordering and absence of sends.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from stake_pool_updater.chain.layouts import (
    STAKE_POOL_LAYOUT,
    VALIDATOR_LIST_LAYOUT,
    VALIDATOR_STAKE_INFO_LAYOUT,
)
from stake_pool_updater.chain.signer import KeypairSigner
from stake_pool_updater.chain.state import AccountType, StakeStatus
from stake_pool_updater.clients.base import EpochInfo, SimulationResult
from stake_pool_updater.errors import NotificationError, TransportError
from stake_pool_updater.settings import Settings


def encode_stake_pool(
    *,
    validator_list: Pubkey,
    last_update_epoch: int,
    account_type: int = AccountType.stake_pool,
    total_lamports: int = 10_000_000_000,
) -> bytes:
    return STAKE_POOL_LAYOUT.build(
        dict(
            account_type=account_type,
            manager=bytes(Pubkey.new_unique()),
            staker=bytes(Pubkey.new_unique()),
            stake_deposit_authority=bytes(Pubkey.new_unique()),
            stake_withdraw_bump_seed=255,
            validator_list=bytes(validator_list),
            reserve_stake=bytes(Pubkey.new_unique()),
            pool_mint=bytes(Pubkey.new_unique()),
            manager_fee_account=bytes(Pubkey.new_unique()),
            token_program_id=bytes(Pubkey.new_unique()),
            total_lamports=total_lamports,
            pool_token_supply=9_000_000_000,
            last_update_epoch=last_update_epoch,
        )
    ) + bytes(64)  # trailing option fields are ignored by the decoder


def encode_validator(
    *,
    last_update_epoch: int,
    status: int = StakeStatus.active,
    active: int = 5_000_000_000,
    transient: int = 0,
    vote: Pubkey | None = None,
    validator_seed_suffix: int = 0,
    transient_seed_suffix: int = 0,
) -> bytes:
    return VALIDATOR_STAKE_INFO_LAYOUT.build(
        dict(
            active_stake_lamports=active,
            transient_stake_lamports=transient,
            last_update_epoch=last_update_epoch,
            transient_seed_suffix=transient_seed_suffix,
            unused=0,
            validator_seed_suffix=validator_seed_suffix,
            status=status,
            vote_account_address=bytes(vote or Pubkey.new_unique()),
        )
    )


def encode_validator_list(
    entries: Sequence[bytes],
    *,
    max_validators: int = 16,
    account_type: int = AccountType.validator_list,
    count: int | None = None,
) -> bytes:
    header = VALIDATOR_LIST_LAYOUT.build(
        dict(
            header=dict(account_type=account_type, max_validators=max_validators),
            count=len(entries) if count is None else count,
        )
    )
    return header + b"".join(entries)


class FakeSolana:
    """Implements both ChainStateProvider and TxTransport."""

    def __init__(
        self,
        *,
        epoch: int = 501,
        balance: int = 10_000_000_000,
        fee: int | None = 5_000,
        units_consumed: int | None = 42_000,
    ) -> None:
        self.accounts: dict[Pubkey, bytes] = {}
        self.epoch = epoch
        self.balance = balance
        self.fee = fee
        self.units_consumed = units_consumed
        self.simulation_err: str | None = None
        self.epoch_failures = 0
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, Any]] = []
        self.blockhash = Hash(bytes([7] * 32))

    def _maybe_fail(self, name: str) -> None:
        if name in self.failures:
            raise self.failures[name]

    def add_pool(
        self,
        address: Pubkey,
        *,
        last_update_epoch: int,
        validator_epochs: Sequence[int] = (),
        max_validators: int = 16,
    ) -> Pubkey:
        list_address = Pubkey.new_unique()
        self.accounts[address] = encode_stake_pool(
            validator_list=list_address, last_update_epoch=last_update_epoch
        )
        self.accounts[list_address] = encode_validator_list(
            [encode_validator(last_update_epoch=e) for e in validator_epochs],
            max_validators=max_validators,
        )
        return list_address

    def sends(self) -> list[str]:
        return [name for name, _ in self.calls if name in ("send_no_wait", "send_and_confirm")]

    async def get_account_bytes(self, address: Pubkey) -> bytes:
        self.calls.append(("get_account_bytes", address))
        self._maybe_fail("get_account_bytes")
        if address not in self.accounts:
            raise TransportError("get_account_info", f"account {address} not found")
        return self.accounts[address]

    async def get_epoch_info(self) -> EpochInfo:
        self.calls.append(("get_epoch_info", None))
        if self.epoch_failures > 0:
            self.epoch_failures -= 1
            raise TransportError("get_epoch_info", "connection reset")
        return EpochInfo(epoch=self.epoch)

    async def get_latest_blockhash(self) -> Hash:
        self.calls.append(("get_latest_blockhash", None))
        self._maybe_fail("get_latest_blockhash")
        return self.blockhash

    async def get_fee_for_message(self, message: Message) -> int | None:
        self.calls.append(("get_fee_for_message", message))
        self._maybe_fail("get_fee_for_message")
        return self.fee

    async def get_balance(self, pubkey: Pubkey) -> int:
        self.calls.append(("get_balance", pubkey))
        return self.balance

    async def simulate(self, tx: Transaction) -> SimulationResult:
        self.calls.append(("simulate", tx))
        self._maybe_fail("simulate")
        return SimulationResult(units_consumed=self.units_consumed, err=self.simulation_err)

    async def send_no_wait(self, tx: Transaction) -> Signature:
        self.calls.append(("send_no_wait", tx))
        self._maybe_fail("send_no_wait")
        return tx.signatures[0]

    async def send_and_confirm(self, tx: Transaction) -> Signature:
        self.calls.append(("send_and_confirm", tx))
        self._maybe_fail("send_and_confirm")
        return tx.signatures[0]


class RecordingSender:
    def __init__(self, *, fail: bool = False) -> None:
        self.messages: list[tuple[str, str]] = []
        self.fail = fail

    async def send_message(self, *, channel: str, text: str) -> None:
        if self.fail:
            raise NotificationError("channel_not_found")
        self.messages.append((channel, text))


def make_settings(addresses: Sequence[Pubkey] | str, **overrides: Any) -> Settings:
    if not isinstance(addresses, str):
        addresses = ",".join(str(a) for a in addresses)
    values: dict[str, Any] = dict(
        rpc_url="http://rpc.test",
        fee_payer_private_key=str(Keypair()),
        stake_pool_address=addresses,
        slack_token="xoxb-test",
        slack_channel_id="C0TEST",
        send_pacing_seconds=0,
        epoch_fetch_base_delay_seconds=0,
        epoch_fetch_max_jitter_seconds=0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def solana() -> FakeSolana:
    return FakeSolana()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def fee_payer() -> KeypairSigner:
    return KeypairSigner(Keypair())


# --- Module Notes -----------------------------------------------------------
# Fixtures never touch the network; the RPC and Slack clients are exercised separately
# with httpx mock transports.
