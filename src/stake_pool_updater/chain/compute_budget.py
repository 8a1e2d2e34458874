"""
stake_pool_updater.chain.compute_budget

Compute Budget program instructions.

Responsibilities:
- Encode the compute unit limit / price directives attached to every update transaction.
"""

from __future__ import annotations

from enum import IntEnum

from construct import Int8ul, Int32ul, Int64ul, Pass, Struct, Switch  # type: ignore
from solders.instruction import Instruction
from solders.pubkey import Pubkey

COMPUTE_BUDGET_PROGRAM_ID = Pubkey.from_string("ComputeBudget111111111111111111111111111111")

MAX_COMPUTE_UNIT_LIMIT = 1_400_000
"""Upper bound the runtime accepts; used as the provisional limit while simulating."""


class ComputeBudgetInstructionType(IntEnum):
    UNUSED = 0
    REQUEST_HEAP_FRAME = 1
    SET_COMPUTE_UNIT_LIMIT = 2
    SET_COMPUTE_UNIT_PRICE = 3
    SET_LOADED_ACCOUNTS_DATA_SIZE_LIMIT = 4


COMPUTE_BUDGET_LAYOUT = Struct(
    "instruction_type" / Int8ul,
    "args"
    / Switch(
        lambda this: this.instruction_type,
        {
            ComputeBudgetInstructionType.SET_COMPUTE_UNIT_LIMIT: Int32ul,
            ComputeBudgetInstructionType.SET_COMPUTE_UNIT_PRICE: Int64ul,
        },
        default=Pass,
    ),
)


def _instruction(kind: ComputeBudgetInstructionType, value: int) -> Instruction:
    return Instruction(
        program_id=COMPUTE_BUDGET_PROGRAM_ID,
        data=COMPUTE_BUDGET_LAYOUT.build(dict(instruction_type=kind, args=value)),
        accounts=[],
    )


def set_compute_unit_limit(units: int) -> Instruction:
    return _instruction(ComputeBudgetInstructionType.SET_COMPUTE_UNIT_LIMIT, units)


def set_compute_unit_price(micro_lamports: int) -> Instruction:
    return _instruction(ComputeBudgetInstructionType.SET_COMPUTE_UNIT_PRICE, micro_lamports)
