"""
stake_pool_updater.orchestrator.plan

Update plan derivation.

Responsibilities:
- Split the validator list into `UpdateValidatorListBalance` batches.
- Select only lagging batches when `stale_only` is set.
- Append the final settlement batch (pool balance update + removed-entry cleanup).
"""

from __future__ import annotations

from dataclasses import dataclass

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from stake_pool_updater.chain.instructions import (
    MAX_VALIDATORS_TO_UPDATE,
    cleanup_removed_validator_entries,
    find_withdraw_authority_program_address,
    update_stake_pool_balance,
    update_validator_list_balance_chunk,
)
from stake_pool_updater.chain.state import StakePoolSnapshot, ValidatorListSnapshot


@dataclass(frozen=True, slots=True)
class UpdatePlan:
    # One single-instruction batch per chunk of validators, sent in order.
    list_update_batches: tuple[tuple[Instruction, ...], ...]
    final_batch: tuple[Instruction, ...]

    @property
    def transaction_count(self) -> int:
        return len(self.list_update_batches) + 1


def build_update_plan(
    *,
    program_id: Pubkey,
    pool: StakePoolSnapshot,
    validator_list: ValidatorListSnapshot,
    address: Pubkey,
    no_merge: bool,
    stale_only: bool,
    epoch: int,
) -> UpdatePlan:
    """Pure: derives instructions only, performs no I/O."""

    withdraw_authority, _ = find_withdraw_authority_program_address(program_id, address)
    validators = validator_list.validators

    batches: list[tuple[Instruction, ...]] = []
    for start in range(0, len(validators), MAX_VALIDATORS_TO_UPDATE):
        chunk = validators[start : start + MAX_VALIDATORS_TO_UPDATE]
        if stale_only and not any(v.is_stale(epoch) for v in chunk):
            continue
        batches.append(
            (
                update_validator_list_balance_chunk(
                    program_id=program_id,
                    stake_pool_address=address,
                    withdraw_authority=withdraw_authority,
                    pool=pool,
                    chunk=chunk,
                    start_index=start,
                    no_merge=no_merge,
                ),
            )
        )

    final_batch = (
        update_stake_pool_balance(
            program_id=program_id,
            stake_pool_address=address,
            withdraw_authority=withdraw_authority,
            pool=pool,
        ),
        cleanup_removed_validator_entries(
            program_id=program_id,
            stake_pool_address=address,
            validator_list=pool.validator_list,
        ),
    )
    return UpdatePlan(list_update_batches=tuple(batches), final_batch=final_batch)
