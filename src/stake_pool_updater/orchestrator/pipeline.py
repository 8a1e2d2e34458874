"""
stake_pool_updater.orchestrator.pipeline

Submission Pipeline: executes an `UpdatePlan` transaction by transaction.

Responsibilities:
- Send every list-update batch but the last without waiting, pacing between sends.
- Wait for confirmation of the last list-update batch and of the final batch.
- In dry-run mode, simulate instead of sending.
- Abort the rest of the plan on the first failure.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from solders.instruction import Instruction
from solders.transaction import Transaction

from stake_pool_updater.chain.signer import Signer
from stake_pool_updater.clients.base import SimulationResult, TxTransport
from stake_pool_updater.observability.logging import get_logger
from stake_pool_updater.orchestrator.builder import TransactionBuilder
from stake_pool_updater.orchestrator.plan import UpdatePlan

log = get_logger(__name__)

SendMode = Literal["no_wait", "wait"]


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    index: int
    kind: Literal["list_update", "final"]
    mode: SendMode
    signature: str | None = None
    simulation: SimulationResult | None = None

    @property
    def simulated(self) -> bool:
        return self.simulation is not None


class SubmissionPipeline:
    def __init__(
        self,
        *,
        transport: TxTransport,
        builder: TransactionBuilder,
        dry_run: bool = False,
        pacing_seconds: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._builder = builder
        self._dry_run = dry_run
        self._pacing_seconds = pacing_seconds
        self._sleep = sleep

    async def execute(
        self, plan: UpdatePlan, *, signers: Sequence[Signer] | None = None
    ) -> list[SubmissionOutcome]:
        outcomes: list[SubmissionOutcome] = []
        batches = plan.list_update_batches

        for index, batch in enumerate(batches):
            is_last = index == len(batches) - 1
            mode: SendMode = "wait" if is_last else "no_wait"
            outcomes.append(
                await self._submit(batch, index=index, kind="list_update", mode=mode, signers=signers)
            )
            if not is_last:
                # Keeps the RPC node from rate limiting the burst of no-wait sends.
                await self._sleep(self._pacing_seconds)

        outcomes.append(
            await self._submit(
                plan.final_batch, index=len(batches), kind="final", mode="wait", signers=signers
            )
        )
        return outcomes

    async def _submit(
        self,
        batch: Sequence[Instruction],
        *,
        index: int,
        kind: Literal["list_update", "final"],
        mode: SendMode,
        signers: Sequence[Signer] | None,
    ) -> SubmissionOutcome:
        tx = await self._builder.build(batch, signers=signers)
        if self._dry_run:
            return await self._simulate(tx, index=index, kind=kind, mode=mode)

        if mode == "wait":
            signature = await self._transport.send_and_confirm(tx)
        else:
            signature = await self._transport.send_no_wait(tx)
        log.info("transaction_sent", index=index, kind=kind, mode=mode, signature=str(signature))
        return SubmissionOutcome(index=index, kind=kind, mode=mode, signature=str(signature))

    async def _simulate(
        self,
        tx: Transaction,
        *,
        index: int,
        kind: Literal["list_update", "final"],
        mode: SendMode,
    ) -> SubmissionOutcome:
        result = await self._transport.simulate(tx)
        if result.err is not None:
            log.warning("dry_run_simulation_failed", index=index, kind=kind, err=result.err, logs=list(result.logs))
        else:
            log.info("dry_run_simulated", index=index, kind=kind, units_consumed=result.units_consumed)
        return SubmissionOutcome(index=index, kind=kind, mode=mode, simulation=result)


# --- Module Notes -----------------------------------------------------------
# No partial-plan retry: the next watcher tick re-reads state and rebuilds the plan,
# and the program skips validators already updated this epoch.
