"""
stake_pool_updater.chain.layouts

Binary layouts for the stake pool program accounts (`construct`).

Responsibilities:
- Decode the fixed-width prefix of a stake pool account.
- Decode a validator list account (header + borsh vector of entries).
- Translate every decoding problem into `DecodeError`.
"""

from __future__ import annotations

from construct import Bytes, ConstructError, Int8ul, Int32ul, Int64ul, Struct  # type: ignore
from solders.pubkey import Pubkey

from stake_pool_updater.chain.state import (
    AccountType,
    StakePoolSnapshot,
    StakeStatus,
    ValidatorListHeader,
    ValidatorListSnapshot,
    ValidatorStakeInfo,
)
from stake_pool_updater.errors import DecodeError

PUBLIC_KEY_LAYOUT = Bytes(32)

# Fields after `last_update_epoch` (lockup, fees, preferred validators, ...) are
# variable-width borsh options and are not needed by the updater.
STAKE_POOL_LAYOUT = Struct(
    "account_type" / Int8ul,
    "manager" / PUBLIC_KEY_LAYOUT,
    "staker" / PUBLIC_KEY_LAYOUT,
    "stake_deposit_authority" / PUBLIC_KEY_LAYOUT,
    "stake_withdraw_bump_seed" / Int8ul,
    "validator_list" / PUBLIC_KEY_LAYOUT,
    "reserve_stake" / PUBLIC_KEY_LAYOUT,
    "pool_mint" / PUBLIC_KEY_LAYOUT,
    "manager_fee_account" / PUBLIC_KEY_LAYOUT,
    "token_program_id" / PUBLIC_KEY_LAYOUT,
    "total_lamports" / Int64ul,
    "pool_token_supply" / Int64ul,
    "last_update_epoch" / Int64ul,
)

VALIDATOR_LIST_HEADER_LAYOUT = Struct(
    "account_type" / Int8ul,
    "max_validators" / Int32ul,
)

VALIDATOR_STAKE_INFO_LAYOUT = Struct(
    "active_stake_lamports" / Int64ul,
    "transient_stake_lamports" / Int64ul,
    "last_update_epoch" / Int64ul,
    "transient_seed_suffix" / Int64ul,
    "unused" / Int32ul,
    "validator_seed_suffix" / Int32ul,
    "status" / Int8ul,
    "vote_account_address" / PUBLIC_KEY_LAYOUT,
)

VALIDATOR_LIST_LAYOUT = Struct(
    "header" / VALIDATOR_LIST_HEADER_LAYOUT,
    "count" / Int32ul,
)

VALIDATOR_STAKE_INFO_SIZE = VALIDATOR_STAKE_INFO_LAYOUT.sizeof()


def decode_stake_pool(address: Pubkey, data: bytes) -> StakePoolSnapshot:
    try:
        raw = STAKE_POOL_LAYOUT.parse(data)
    except ConstructError as e:
        raise DecodeError(str(address), f"stake pool layout: {e}") from e

    account_type = _account_type(address, raw.account_type)
    if account_type is not AccountType.stake_pool:
        raise DecodeError(str(address), f"expected a stake pool account, got {account_type.name}")

    return StakePoolSnapshot(
        address=address,
        account_type=account_type,
        manager=Pubkey(raw.manager),
        staker=Pubkey(raw.staker),
        stake_deposit_authority=Pubkey(raw.stake_deposit_authority),
        stake_withdraw_bump_seed=raw.stake_withdraw_bump_seed,
        validator_list=Pubkey(raw.validator_list),
        reserve_stake=Pubkey(raw.reserve_stake),
        pool_mint=Pubkey(raw.pool_mint),
        manager_fee_account=Pubkey(raw.manager_fee_account),
        token_program_id=Pubkey(raw.token_program_id),
        total_lamports=raw.total_lamports,
        pool_token_supply=raw.pool_token_supply,
        last_update_epoch=raw.last_update_epoch,
    )


def decode_validator_list(address: Pubkey, data: bytes) -> ValidatorListSnapshot:
    try:
        raw = VALIDATOR_LIST_LAYOUT.parse(data)
    except ConstructError as e:
        raise DecodeError(str(address), f"validator list layout: {e}") from e

    account_type = _account_type(address, raw.header.account_type)
    if account_type is not AccountType.validator_list:
        raise DecodeError(
            str(address), f"expected a validator list account, got {account_type.name}"
        )
    if raw.count > raw.header.max_validators:
        raise DecodeError(
            str(address),
            f"{raw.count} validators exceeds max_validators={raw.header.max_validators}",
        )

    offset = VALIDATOR_LIST_LAYOUT.sizeof()
    end = offset + raw.count * VALIDATOR_STAKE_INFO_SIZE
    if len(data) < end:
        raise DecodeError(
            str(address), f"truncated: {raw.count} entries need {end} bytes, got {len(data)}"
        )

    validators = []
    for start in range(offset, end, VALIDATOR_STAKE_INFO_SIZE):
        entry = VALIDATOR_STAKE_INFO_LAYOUT.parse(data[start : start + VALIDATOR_STAKE_INFO_SIZE])
        try:
            status = StakeStatus(entry.status)
        except ValueError as e:
            raise DecodeError(str(address), f"unknown validator status {entry.status}") from e
        validators.append(
            ValidatorStakeInfo(
                active_stake_lamports=entry.active_stake_lamports,
                transient_stake_lamports=entry.transient_stake_lamports,
                last_update_epoch=entry.last_update_epoch,
                transient_seed_suffix=entry.transient_seed_suffix,
                unused=entry.unused,
                validator_seed_suffix=entry.validator_seed_suffix,
                status=status,
                vote_account_address=Pubkey(entry.vote_account_address),
            )
        )

    return ValidatorListSnapshot(
        address=address,
        header=ValidatorListHeader(account_type=account_type, max_validators=raw.header.max_validators),
        validators=tuple(validators),
    )


def _account_type(address: Pubkey, value: int) -> AccountType:
    try:
        return AccountType(value)
    except ValueError as e:
        raise DecodeError(str(address), f"unknown account type {value}") from e


# --- Module Notes -----------------------------------------------------------
# Tests build fixtures with the same layouts (`STAKE_POOL_LAYOUT.build(...)`), so the
# encoder and decoder can never drift apart.
