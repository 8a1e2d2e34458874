"""
tests.test_plan

Update plan derivation (batching, stale-only selection, final settlement batch).
"""

from __future__ import annotations

from solders.pubkey import Pubkey

from conftest import encode_stake_pool, encode_validator, encode_validator_list
from stake_pool_updater.chain.instructions import (
    INSTRUCTIONS_LAYOUT,
    InstructionType,
    find_withdraw_authority_program_address,
)
from stake_pool_updater.chain.layouts import decode_stake_pool, decode_validator_list
from stake_pool_updater.orchestrator.plan import build_update_plan
from stake_pool_updater.settings import SPL_STAKE_POOL_PROGRAM_ID

PROGRAM_ID = Pubkey.from_string(SPL_STAKE_POOL_PROGRAM_ID)


def _snapshots(validator_epochs: list[int]):
    address = Pubkey.new_unique()
    list_address = Pubkey.new_unique()
    pool = decode_stake_pool(
        address, encode_stake_pool(validator_list=list_address, last_update_epoch=500)
    )
    validators = decode_validator_list(
        list_address,
        encode_validator_list(
            [encode_validator(last_update_epoch=e) for e in validator_epochs], max_validators=32
        ),
    )
    return address, pool, validators


def _plan(validator_epochs: list[int], *, stale_only: bool = False, no_merge: bool = False):
    address, pool, validators = _snapshots(validator_epochs)
    return address, pool, build_update_plan(
        program_id=PROGRAM_ID,
        pool=pool,
        validator_list=validators,
        address=address,
        no_merge=no_merge,
        stale_only=stale_only,
        epoch=501,
    )


def _args(instruction):
    return INSTRUCTIONS_LAYOUT.parse(bytes(instruction.data))


def test_all_validators_are_batched_in_chunks() -> None:
    _, pool, plan = _plan([500] * 10, no_merge=True)

    assert len(plan.list_update_batches) == 3
    starts = [_args(batch[0]).args.start_index for batch in plan.list_update_batches]
    assert starts == [0, 4, 8]
    assert all(_args(batch[0]).args.no_merge == 1 for batch in plan.list_update_batches)
    # 7 fixed accounts + (validator, transient) pair per validator.
    assert [len(batch[0].accounts) for batch in plan.list_update_batches] == [15, 15, 11]
    assert plan.transaction_count == 4


def test_final_batch_updates_balance_then_cleans_up() -> None:
    address, pool, plan = _plan([500, 500, 500])
    balance, cleanup = plan.final_batch

    assert _args(balance).instruction_type == InstructionType.UPDATE_STAKE_POOL_BALANCE
    assert _args(cleanup).instruction_type == InstructionType.CLEANUP_REMOVED_VALIDATOR_ENTRIES
    withdraw_authority, _ = find_withdraw_authority_program_address(PROGRAM_ID, address)
    assert [m.pubkey for m in balance.accounts[:3]] == [address, withdraw_authority, pool.validator_list]
    assert balance.accounts[0].is_writable
    assert [m.pubkey for m in cleanup.accounts] == [address, pool.validator_list]


def test_stale_only_skips_current_chunks() -> None:
    # Chunk 0 fully current, chunk 1 has one lagging validator.
    _, _, plan = _plan([501, 501, 501, 501, 501, 500, 501], stale_only=True)

    assert len(plan.list_update_batches) == 1
    assert _args(plan.list_update_batches[0][0]).args.start_index == 4


def test_stale_only_with_everything_current_keeps_final_batch() -> None:
    _, _, plan = _plan([501, 501], stale_only=True)

    assert plan.list_update_batches == ()
    assert len(plan.final_batch) == 2


def test_empty_validator_list() -> None:
    _, _, plan = _plan([])
    assert plan.list_update_batches == ()
    assert plan.transaction_count == 1
