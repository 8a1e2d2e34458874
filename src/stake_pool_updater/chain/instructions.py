"""
stake_pool_updater.chain.instructions

Stake pool program instructions used by the epoch update.

Responsibilities:
- Derive the program addresses (withdraw authority, validator and transient stake accounts).
- Build `UpdateValidatorListBalance`, `UpdateStakePoolBalance` and
  `CleanupRemovedValidatorEntries` instructions.
"""

from __future__ import annotations

from enum import IntEnum
from typing import NamedTuple

from construct import Int8ul, Int32ul, Pass, Struct, Switch  # type: ignore
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.sysvar import CLOCK, STAKE_HISTORY

from stake_pool_updater.chain.state import StakePoolSnapshot, ValidatorStakeInfo

STAKE_PROGRAM_ID = Pubkey.from_string("Stake11111111111111111111111111111111111111")

AUTHORITY_WITHDRAW = b"withdraw"
TRANSIENT_STAKE_SEED_PREFIX = b"transient"

MAX_VALIDATORS_TO_UPDATE = 4
"""Validators per `UpdateValidatorListBalance` instruction (transaction size bound)."""


class InstructionType(IntEnum):
    UPDATE_VALIDATOR_LIST_BALANCE = 6
    UPDATE_STAKE_POOL_BALANCE = 7
    CLEANUP_REMOVED_VALIDATOR_ENTRIES = 8


UPDATE_VALIDATOR_LIST_BALANCE_LAYOUT = Struct(
    "start_index" / Int32ul,
    "no_merge" / Int8ul,
)

INSTRUCTIONS_LAYOUT = Struct(
    "instruction_type" / Int8ul,
    "args"
    / Switch(
        lambda this: this.instruction_type,
        {
            InstructionType.UPDATE_VALIDATOR_LIST_BALANCE: UPDATE_VALIDATOR_LIST_BALANCE_LAYOUT,
            InstructionType.UPDATE_STAKE_POOL_BALANCE: Pass,
            InstructionType.CLEANUP_REMOVED_VALIDATOR_ENTRIES: Pass,
        },
    ),
)


def find_withdraw_authority_program_address(
    program_id: Pubkey, stake_pool_address: Pubkey
) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([bytes(stake_pool_address), AUTHORITY_WITHDRAW], program_id)


def find_stake_program_address(
    program_id: Pubkey, vote_account_address: Pubkey, stake_pool_address: Pubkey, seed: int
) -> tuple[Pubkey, int]:
    seeds = [bytes(vote_account_address), bytes(stake_pool_address)]
    if seed:
        seeds.append(seed.to_bytes(4, "little"))
    return Pubkey.find_program_address(seeds, program_id)


def find_transient_stake_program_address(
    program_id: Pubkey, vote_account_address: Pubkey, stake_pool_address: Pubkey, seed: int
) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [
            TRANSIENT_STAKE_SEED_PREFIX,
            bytes(vote_account_address),
            bytes(stake_pool_address),
            seed.to_bytes(8, "little"),
        ],
        program_id,
    )


class UpdateValidatorListBalanceParams(NamedTuple):
    program_id: Pubkey
    stake_pool: Pubkey
    withdraw_authority: Pubkey
    validator_list: Pubkey
    reserve_stake: Pubkey
    validator_and_transient_stake_pairs: list[Pubkey]
    start_index: int
    no_merge: bool


def update_validator_list_balance(params: UpdateValidatorListBalanceParams) -> Instruction:
    accounts = [
        AccountMeta(pubkey=params.stake_pool, is_signer=False, is_writable=False),
        AccountMeta(pubkey=params.withdraw_authority, is_signer=False, is_writable=False),
        AccountMeta(pubkey=params.validator_list, is_signer=False, is_writable=True),
        AccountMeta(pubkey=params.reserve_stake, is_signer=False, is_writable=True),
        AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
        AccountMeta(pubkey=STAKE_HISTORY, is_signer=False, is_writable=False),
        AccountMeta(pubkey=STAKE_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    accounts.extend(
        AccountMeta(pubkey=pubkey, is_signer=False, is_writable=True)
        for pubkey in params.validator_and_transient_stake_pairs
    )
    return Instruction(
        accounts=accounts,
        program_id=params.program_id,
        data=INSTRUCTIONS_LAYOUT.build(
            dict(
                instruction_type=InstructionType.UPDATE_VALIDATOR_LIST_BALANCE,
                args={"start_index": params.start_index, "no_merge": int(params.no_merge)},
            )
        ),
    )


def update_validator_list_balance_chunk(
    *,
    program_id: Pubkey,
    stake_pool_address: Pubkey,
    withdraw_authority: Pubkey,
    pool: StakePoolSnapshot,
    chunk: list[ValidatorStakeInfo] | tuple[ValidatorStakeInfo, ...],
    start_index: int,
    no_merge: bool,
) -> Instruction:
    pairs: list[Pubkey] = []
    for validator in chunk:
        stake, _ = find_stake_program_address(
            program_id,
            validator.vote_account_address,
            stake_pool_address,
            validator.validator_seed_suffix,
        )
        transient, _ = find_transient_stake_program_address(
            program_id,
            validator.vote_account_address,
            stake_pool_address,
            validator.transient_seed_suffix,
        )
        pairs.extend((stake, transient))

    return update_validator_list_balance(
        UpdateValidatorListBalanceParams(
            program_id=program_id,
            stake_pool=stake_pool_address,
            withdraw_authority=withdraw_authority,
            validator_list=pool.validator_list,
            reserve_stake=pool.reserve_stake,
            validator_and_transient_stake_pairs=pairs,
            start_index=start_index,
            no_merge=no_merge,
        )
    )


def update_stake_pool_balance(
    *,
    program_id: Pubkey,
    stake_pool_address: Pubkey,
    withdraw_authority: Pubkey,
    pool: StakePoolSnapshot,
) -> Instruction:
    return Instruction(
        accounts=[
            AccountMeta(pubkey=stake_pool_address, is_signer=False, is_writable=True),
            AccountMeta(pubkey=withdraw_authority, is_signer=False, is_writable=False),
            AccountMeta(pubkey=pool.validator_list, is_signer=False, is_writable=True),
            AccountMeta(pubkey=pool.reserve_stake, is_signer=False, is_writable=False),
            AccountMeta(pubkey=pool.manager_fee_account, is_signer=False, is_writable=True),
            AccountMeta(pubkey=pool.pool_mint, is_signer=False, is_writable=True),
            AccountMeta(pubkey=pool.token_program_id, is_signer=False, is_writable=False),
        ],
        program_id=program_id,
        data=INSTRUCTIONS_LAYOUT.build(
            dict(instruction_type=InstructionType.UPDATE_STAKE_POOL_BALANCE, args=None)
        ),
    )


def cleanup_removed_validator_entries(
    *, program_id: Pubkey, stake_pool_address: Pubkey, validator_list: Pubkey
) -> Instruction:
    return Instruction(
        accounts=[
            AccountMeta(pubkey=stake_pool_address, is_signer=False, is_writable=False),
            AccountMeta(pubkey=validator_list, is_signer=False, is_writable=True),
        ],
        program_id=program_id,
        data=INSTRUCTIONS_LAYOUT.build(
            dict(instruction_type=InstructionType.CLEANUP_REMOVED_VALIDATOR_ENTRIES, args=None)
        ),
    )


# --- Module Notes -----------------------------------------------------------
# Account order mirrors the program's expectations exactly; reordering breaks the update.
