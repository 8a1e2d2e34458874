"""
stake_pool_updater.services.epoch_watcher

Epoch Watcher: periodic reconciliation of every configured stake pool.

Responsibilities:
- Each tick, read pool state and the network epoch (bounded, jittered retries).
- When the epoch changed (or an update is forced), build and submit the update plan.
- Report start/success/failure through the notifier.
- Never let one pool's failure, or any cycle failure, escape the background task.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from solders.pubkey import Pubkey
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
    wait_random,
)

from stake_pool_updater.chain.state import StakePoolSnapshot
from stake_pool_updater.clients.base import EpochInfo, TxTransport
from stake_pool_updater.errors import DecodeError, StakePoolUpdaterError, TransportError
from stake_pool_updater.observability.logging import cycle_context, get_logger, log_context
from stake_pool_updater.orchestrator.pipeline import SubmissionPipeline
from stake_pool_updater.orchestrator.plan import build_update_plan
from stake_pool_updater.orchestrator.reader import StateReader
from stake_pool_updater.services.notifications import UpdateNotifier
from stake_pool_updater.settings import Settings

log = get_logger(__name__)


class PoolStatus(enum.StrEnum):
    up_to_date = "UP_TO_DATE"
    updated = "UPDATED"
    failed = "FAILED"
    skipped = "SKIPPED"


@dataclass(frozen=True, slots=True)
class PoolOutcome:
    address: str
    status: PoolStatus
    epoch: int | None = None
    transactions: int = 0
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int = 5
    base_delay: float = 2.0
    max_jitter: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_attempts=settings.epoch_fetch_max_attempts,
            base_delay=settings.epoch_fetch_base_delay_seconds,
            max_jitter=settings.epoch_fetch_max_jitter_seconds,
        )


def _log_fetch_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    log.warning(
        "state_fetch_retry",
        attempt=retry_state.attempt_number,
        delay_seconds=round(delay, 3),
        error=str(exc),
    )


def _log_cycle_failure(task: asyncio.Task[list[PoolOutcome]]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error("cycle_task_failed", error=str(exc), error_type=type(exc).__name__)


class EpochWatcher:
    def __init__(
        self,
        *,
        settings: Settings,
        reader: StateReader,
        transport: TxTransport,
        pipeline: SubmissionPipeline,
        notifier: UpdateNotifier,
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._reader = reader
        self._transport = transport
        self._pipeline = pipeline
        self._notifier = notifier
        self._retry = retry or RetryPolicy.from_settings(settings)
        self._sleep = sleep
        self._program_id = Pubkey.from_string(settings.stake_pool_program_id)

        # Highest pool epoch observed per address; a lower read means a lagging RPC node.
        self._last_epochs: dict[str, int] = {}
        self._cycle_lock = asyncio.Lock()
        self._loop_task: asyncio.Task[None] | None = None
        self._cycle_task: asyncio.Task[list[PoolOutcome]] | None = None

    # -- scheduling ---------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def start(self) -> None:
        if self.running:
            log.warning("epoch_watcher_already_running")
            return
        self._loop_task = asyncio.create_task(self._tick_loop(), name="epoch-watcher")
        log.info("epoch_watcher_started", interval_seconds=self._settings.update_interval_seconds)

    async def stop(self) -> None:
        for task in (self._loop_task, self._cycle_task):
            if task is None or task.done():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._loop_task = None
        self._cycle_task = None
        log.info("epoch_watcher_stopped")

    async def _tick_loop(self) -> None:
        # Fixed cadence: a tick is not delayed by a long cycle, it is skipped instead.
        while True:
            if self._cycle_task is not None and not self._cycle_task.done():
                log.warning("tick_skipped_cycle_in_progress")
            else:
                self._cycle_task = asyncio.create_task(self.run_cycle(), name="epoch-watcher-cycle")
                self._cycle_task.add_done_callback(_log_cycle_failure)
            await self._sleep(self._settings.update_interval_seconds)

    # -- reconciliation -----------------------------------------------------

    async def run_cycle(self) -> list[PoolOutcome]:
        if self._cycle_lock.locked():
            log.warning("cycle_skipped_previous_still_running")
            return []

        async with self._cycle_lock:
            with cycle_context():
                addresses = self._settings.stake_pool_addresses
                if not addresses:
                    log.warning("no_stake_pool_addresses_configured")
                log.info("cycle_started", pools=len(addresses))

                outcomes: list[PoolOutcome] = []
                # Sequential by configured order to bound RPC load.
                for address in addresses:
                    with log_context(pool=address):
                        outcomes.append(await self._reconcile_guarded(address))

                log.info("cycle_finished", statuses=[o.status.value for o in outcomes])
                return outcomes

    async def _reconcile_guarded(self, address: str) -> PoolOutcome:
        try:
            return await self.reconcile_pool(Pubkey.from_string(address))
        except Exception as e:
            log.exception("pool_reconcile_crashed", error=str(e))
            await self._notifier.update_failed(address, e)
            return PoolOutcome(address=address, status=PoolStatus.failed, error=str(e))

    async def reconcile_pool(self, address: Pubkey) -> PoolOutcome:
        key = str(address)
        try:
            pool, epoch_info = await self._fetch_state(address)
        except TransportError as e:
            log.error("state_fetch_exhausted", attempts=self._retry.max_attempts, error=str(e))
            await self._notifier.rpc_unavailable(key)
            return PoolOutcome(address=key, status=PoolStatus.failed, error=str(e))
        except DecodeError as e:
            log.error("stake_pool_decode_failed", error=str(e))
            await self._notifier.update_failed(key, e)
            return PoolOutcome(address=key, status=PoolStatus.failed, error=str(e))

        epoch = epoch_info.epoch
        last_seen = self._last_epochs.get(key)
        if last_seen is not None and pool.last_update_epoch < last_seen:
            log.warning(
                "pool_epoch_regressed",
                observed=pool.last_update_epoch,
                previously_observed=last_seen,
            )
            return PoolOutcome(address=key, status=PoolStatus.skipped, epoch=epoch)
        self._last_epochs[key] = pool.last_update_epoch

        if pool.last_update_epoch >= epoch:
            if pool.last_update_epoch > epoch:
                log.warning("network_epoch_behind_pool", pool_epoch=pool.last_update_epoch, epoch=epoch)
            if not self._settings.force_update:
                log.info("epoch_unchanged", epoch=epoch)
                return PoolOutcome(address=key, status=PoolStatus.up_to_date, epoch=epoch)
            log.info("update_not_required_but_forced", epoch=epoch)

        if self._settings.no_update:
            log.info("update_requested_but_no_update_set", epoch=epoch)
            return PoolOutcome(address=key, status=PoolStatus.skipped, epoch=epoch)

        log.info("epoch_changed_updating", pool_epoch=pool.last_update_epoch, epoch=epoch)
        await self._notifier.update_starting(key, epoch)

        try:
            transactions = await self._update(address, pool, epoch)
        except StakePoolUpdaterError as e:
            log.error("stake_pool_update_failed", error=str(e), error_type=type(e).__name__)
            await self._notifier.update_failed(key, e)
            return PoolOutcome(address=key, status=PoolStatus.failed, epoch=epoch, error=str(e))

        log.info("stake_pool_updated", epoch=epoch, transactions=transactions)
        await self._notifier.update_succeeded(key, epoch, transactions)
        return PoolOutcome(
            address=key, status=PoolStatus.updated, epoch=epoch, transactions=transactions
        )

    async def _fetch_state(self, address: Pubkey) -> tuple[StakePoolSnapshot, EpochInfo]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._retry.max_attempts),
            wait=wait_fixed(self._retry.base_delay) + wait_random(0, self._retry.max_jitter),
            retry=retry_if_exception_type(TransportError),
            reraise=True,
            sleep=self._sleep,
            before_sleep=_log_fetch_retry,
        )
        async for attempt in retrying:
            with attempt:
                pool = await self._reader.fetch_pool(address)
                epoch_info = await self._transport.get_epoch_info()
        return pool, epoch_info

    async def _update(self, address: Pubkey, pool: StakePoolSnapshot, epoch: int) -> int:
        validator_list = await self._reader.fetch_validator_list(pool.validator_list)
        plan = build_update_plan(
            program_id=self._program_id,
            pool=pool,
            validator_list=validator_list,
            address=address,
            no_merge=self._settings.no_merge,
            stale_only=self._settings.stale_only,
            epoch=epoch,
        )
        log.info(
            "update_plan_built",
            validators=len(validator_list.validators),
            list_update_batches=len(plan.list_update_batches),
        )
        outcomes = await self._pipeline.execute(plan)
        return len(outcomes)


# --- Module Notes -----------------------------------------------------------
# `run_cycle` holds a single-flight lock, so a manual trigger and a scheduled tick can
# never reconcile the same pools concurrently.
