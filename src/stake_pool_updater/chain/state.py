"""
stake_pool_updater.chain.state

Immutable snapshots of the stake pool accounts read each reconciliation cycle.

Responsibilities:
- Define the decoded stake pool record and validator list.
- Define the account type and validator status enums with their on-chain byte values.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from solders.pubkey import Pubkey


class AccountType(enum.IntEnum):
    uninitialized = 0
    stake_pool = 1
    validator_list = 2


class StakeStatus(enum.IntEnum):
    # Values are the borsh discriminants of the on-chain enum.
    active = 0
    deactivating_transient = 1
    ready_for_removal = 2
    deactivating_validator = 3
    deactivating_all = 4


@dataclass(frozen=True, slots=True)
class StakePoolSnapshot:
    address: Pubkey
    account_type: AccountType
    manager: Pubkey
    staker: Pubkey
    stake_deposit_authority: Pubkey
    stake_withdraw_bump_seed: int
    validator_list: Pubkey
    reserve_stake: Pubkey
    pool_mint: Pubkey
    manager_fee_account: Pubkey
    token_program_id: Pubkey
    total_lamports: int
    pool_token_supply: int
    last_update_epoch: int


@dataclass(frozen=True, slots=True)
class ValidatorListHeader:
    account_type: AccountType
    max_validators: int


@dataclass(frozen=True, slots=True)
class ValidatorStakeInfo:
    active_stake_lamports: int
    transient_stake_lamports: int
    last_update_epoch: int
    transient_seed_suffix: int
    unused: int
    # 0 means "no suffix" when deriving the validator stake address.
    validator_seed_suffix: int
    status: StakeStatus
    vote_account_address: Pubkey

    def is_stale(self, epoch: int) -> bool:
        return self.last_update_epoch < epoch


@dataclass(frozen=True, slots=True)
class ValidatorListSnapshot:
    address: Pubkey
    header: ValidatorListHeader
    validators: tuple[ValidatorStakeInfo, ...]

    def __post_init__(self) -> None:
        if len(self.validators) > self.header.max_validators:
            raise ValueError(
                f"validator list holds {len(self.validators)} entries, "
                f"max is {self.header.max_validators}"
            )


# --- Module Notes -----------------------------------------------------------
# Snapshots are replaced wholesale every cycle; nothing in the service mutates them.
