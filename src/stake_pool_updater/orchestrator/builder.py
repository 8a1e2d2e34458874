"""
stake_pool_updater.orchestrator.builder

Transaction Builder: turns one batch of instructions into a signed, affordable transaction.

Responsibilities:
- Attach compute unit price/limit directives (default, static or simulated limit).
- Quote the fee for the assembled message and check the fee payer can cover it.
- Sign. Never send.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.transaction import Transaction

from stake_pool_updater.chain.compute_budget import (
    MAX_COMPUTE_UNIT_LIMIT,
    set_compute_unit_limit,
    set_compute_unit_price,
)
from stake_pool_updater.chain.signer import Signer, sign_transaction
from stake_pool_updater.clients.base import TxTransport
from stake_pool_updater.errors import (
    FeeEstimationError,
    InsufficientBalanceError,
    SimulationError,
    TransportError,
)
from stake_pool_updater.observability.logging import get_logger

log = get_logger(__name__)

_U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class ComputeUnitLimit:
    mode: Literal["default", "static", "simulated"]
    units: int | None = None

    @classmethod
    def default(cls) -> ComputeUnitLimit:
        return cls("default")

    @classmethod
    def static(cls, units: int) -> ComputeUnitLimit:
        if not 0 <= units <= _U32_MAX:
            raise ValueError(f"compute unit limit out of range: {units}")
        return cls("static", units)

    @classmethod
    def simulated(cls) -> ComputeUnitLimit:
        return cls("simulated")

    @classmethod
    def parse(cls, raw: str) -> ComputeUnitLimit:
        raw = raw.strip().lower()
        if raw == "default":
            return cls.default()
        if raw == "simulated":
            return cls.simulated()
        return cls.static(int(raw))


class TransactionBuilder:
    def __init__(
        self,
        *,
        transport: TxTransport,
        fee_payer: Signer,
        compute_unit_limit: ComputeUnitLimit,
        compute_unit_price: int | None = None,
    ) -> None:
        self._transport = transport
        self._fee_payer = fee_payer
        self._compute_unit_limit = compute_unit_limit
        self._compute_unit_price = compute_unit_price

    async def build(
        self,
        instructions: Sequence[Instruction],
        *,
        signers: Sequence[Signer] | None = None,
        additional_fee: int = 0,
    ) -> Transaction:
        payer = self._fee_payer.pubkey()
        blockhash = await self._transport.get_latest_blockhash()
        ixs = list(instructions)

        if self._compute_unit_price is not None:
            ixs.append(set_compute_unit_price(self._compute_unit_price))

        if self._compute_unit_limit.mode == "static":
            ixs.append(set_compute_unit_limit(self._compute_unit_limit.units or 0))
        elif self._compute_unit_limit.mode == "simulated":
            await self._apply_simulated_limit(ixs, blockhash)

        message = Message.new_with_blockhash(ixs, payer, blockhash)

        try:
            required_fee = await self._transport.get_fee_for_message(message)
        except TransportError as e:
            raise FeeEstimationError(f"Failed to fetch fee for transaction message: {e}") from e
        if required_fee is None:
            raise FeeEstimationError("Fee for transaction message is unavailable (blockhash expired?)")

        await self._check_fee_payer_balance(additional_fee + required_fee)

        return sign_transaction(message, signers or [self._fee_payer])

    async def _apply_simulated_limit(self, ixs: list[Instruction], blockhash: Hash) -> None:
        # The limit directive must be the last instruction: it is overwritten in place below.
        ixs.append(set_compute_unit_limit(MAX_COMPUTE_UNIT_LIMIT))
        tx = Transaction.new_unsigned(
            Message.new_with_blockhash(ixs, self._fee_payer.pubkey(), blockhash)
        )
        result = await self._transport.simulate(tx)
        if result.err is not None:
            raise SimulationError(f"Simulation failed: {result.err}")
        if result.units_consumed is None:
            raise SimulationError("No units consumed on simulation")
        if not 0 <= result.units_consumed <= _U32_MAX:
            raise SimulationError(f"Simulated units out of range: {result.units_consumed}")

        ixs[-1] = set_compute_unit_limit(result.units_consumed)
        log.debug("compute_unit_limit_simulated", units=result.units_consumed)

    async def _check_fee_payer_balance(self, required: int) -> None:
        payer = self._fee_payer.pubkey()
        balance = await self._transport.get_balance(payer)
        if balance < required:
            raise InsufficientBalanceError(payer=str(payer), required=required, available=balance)


# --- Module Notes -----------------------------------------------------------
# A fresh blockhash is fetched per transaction; transactions are built immediately
# before they are sent so a long pacing delay never leaves them stale.
