"""
stake_pool_updater.api.schemas

Read API transform: decoded validator list -> stable public wire representation.

Responsibilities:
- Encode numeric fields as fixed-width little-endian byte arrays.
- Encode validator status as a single byte via an explicit, exhaustive mapping.
- Encode account type as its variant name.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from stake_pool_updater.chain.state import (
    AccountType,
    StakeStatus,
    ValidatorListSnapshot,
    ValidatorStakeInfo,
)

AccountTypeName = Literal["Uninitialized", "StakePool", "ValidatorList"]

STATUS_BYTES: dict[StakeStatus, int] = {
    StakeStatus.active: 0,
    StakeStatus.deactivating_transient: 1,
    StakeStatus.ready_for_removal: 2,
    StakeStatus.deactivating_validator: 3,
    StakeStatus.deactivating_all: 4,
}

ACCOUNT_TYPE_NAMES: dict[AccountType, AccountTypeName] = {
    AccountType.uninitialized: "Uninitialized",
    AccountType.stake_pool: "StakePool",
    AccountType.validator_list: "ValidatorList",
}


def status_to_byte(status: StakeStatus) -> int:
    return STATUS_BYTES[status]


def le_bytes(value: int, width: int) -> list[int]:
    return list(value.to_bytes(width, "little"))


class ValidatorListHeaderWire(BaseModel):
    account_type: AccountTypeName
    max_validators: int


class ValidatorStakeInfoWire(BaseModel):
    active_stake_lamports: list[int] = Field(min_length=8, max_length=8)
    transient_stake_lamports: list[int] = Field(min_length=8, max_length=8)
    last_update_epoch: list[int] = Field(min_length=8, max_length=8)
    transient_seed_suffix: list[int] = Field(min_length=8, max_length=8)
    unused: list[int] = Field(min_length=4, max_length=4)
    validator_seed_suffix: list[int] = Field(min_length=4, max_length=4)
    status: int = Field(ge=0, le=255)
    # Raw 32 public key bytes.
    vote_account_address: list[int] = Field(min_length=32, max_length=32)


class ValidatorListWire(BaseModel):
    header: ValidatorListHeaderWire
    validators: list[ValidatorStakeInfoWire]


def validator_to_wire(info: ValidatorStakeInfo) -> ValidatorStakeInfoWire:
    return ValidatorStakeInfoWire(
        active_stake_lamports=le_bytes(info.active_stake_lamports, 8),
        transient_stake_lamports=le_bytes(info.transient_stake_lamports, 8),
        last_update_epoch=le_bytes(info.last_update_epoch, 8),
        transient_seed_suffix=le_bytes(info.transient_seed_suffix, 8),
        unused=le_bytes(info.unused, 4),
        validator_seed_suffix=le_bytes(info.validator_seed_suffix, 4),
        status=status_to_byte(info.status),
        vote_account_address=list(bytes(info.vote_account_address)),
    )


def to_wire(validator_list: ValidatorListSnapshot) -> ValidatorListWire:
    return ValidatorListWire(
        header=ValidatorListHeaderWire(
            account_type=ACCOUNT_TYPE_NAMES[validator_list.header.account_type],
            max_validators=validator_list.header.max_validators,
        ),
        validators=[validator_to_wire(v) for v in validator_list.validators],
    )


# --- Module Notes -----------------------------------------------------------
# Consumers decode these arrays byte-for-byte; changing a width or ordering is a
# breaking change to the public API.
