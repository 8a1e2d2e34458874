"""
stake_pool_updater.api.app

FastAPI app factory for the stake pool update service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Wire the RPC transport, Slack notifier, state reader, builder, pipeline and watcher.
- Start the epoch watcher with the app and stop it (and close clients) on shutdown.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from stake_pool_updater import __version__
from stake_pool_updater.api.routers.health import router as health_router
from stake_pool_updater.api.routers.validators import INTERNAL_PANIC
from stake_pool_updater.api.routers.validators import router as validators_router
from stake_pool_updater.chain.signer import KeypairSigner, Signer
from stake_pool_updater.clients.base import ChainStateProvider, MessageSender, TxTransport
from stake_pool_updater.clients.rpc import SolanaRpcClient
from stake_pool_updater.clients.slack import SlackClient
from stake_pool_updater.errors import ConfigError
from stake_pool_updater.observability.logging import configure_logging, get_logger
from stake_pool_updater.observability.middleware import RequestContextMiddleware
from stake_pool_updater.orchestrator.builder import ComputeUnitLimit, TransactionBuilder
from stake_pool_updater.orchestrator.pipeline import SubmissionPipeline
from stake_pool_updater.orchestrator.reader import StateReader
from stake_pool_updater.services.epoch_watcher import EpochWatcher
from stake_pool_updater.services.notifications import UpdateNotifier
from stake_pool_updater.settings import Settings

log = get_logger(__name__)


def load_fee_payer(settings: Settings) -> Signer:
    try:
        return KeypairSigner.from_secret(settings.fee_payer_private_key)
    except ValueError as e:
        raise ConfigError("FEE_PAYER_PRIVATE_KEY is not a valid keypair (base58 or JSON byte array)") from e


def create_app(
    *,
    settings: Settings,
    transport: TxTransport | None = None,
    chain_state: ChainStateProvider | None = None,
    sender: MessageSender | None = None,
    start_watcher: bool = True,
) -> FastAPI:
    """
    `transport`, `chain_state` and `sender` default to the Solana RPC and Slack clients;
    tests inject fakes.
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)
    fee_payer = load_fee_payer(settings)
    compute_unit_limit = ComputeUnitLimit.parse(settings.compute_unit_limit)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        http = httpx.AsyncClient(timeout=httpx.Timeout(10.0))
        rpc: SolanaRpcClient | None = None
        tx_transport = transport
        if tx_transport is None:
            rpc = SolanaRpcClient(rpc_url=settings.rpc_url)
            tx_transport = rpc
        provider = chain_state or rpc or tx_transport  # type: ignore[assignment]

        reader = StateReader(provider)
        builder = TransactionBuilder(
            transport=tx_transport,
            fee_payer=fee_payer,
            compute_unit_limit=compute_unit_limit,
            compute_unit_price=settings.compute_unit_price,
        )
        pipeline = SubmissionPipeline(
            transport=tx_transport,
            builder=builder,
            dry_run=settings.dry_run,
            pacing_seconds=settings.send_pacing_seconds,
        )
        notifier = UpdateNotifier(
            channel=settings.slack_channel_id,
            sender=sender or SlackClient(token=settings.slack_token, http=http),
        )
        watcher = EpochWatcher(
            settings=settings,
            reader=reader,
            transport=tx_transport,
            pipeline=pipeline,
            notifier=notifier,
        )

        app.state.transport = tx_transport
        app.state.state_reader = reader
        app.state.watcher = watcher

        log.info(
            "startup",
            port=settings.port,
            pools=list(settings.stake_pool_addresses),
            fee_payer=str(fee_payer.pubkey()),
            dry_run=settings.dry_run,
        )
        if start_watcher:
            await watcher.start()
        try:
            yield
        finally:
            await watcher.stop()
            await http.aclose()
            if rpc is not None:
                await rpc.close()
            log.info("shutdown")

    app = FastAPI(
        title="Stake Pool Updater",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
    )
    app.include_router(health_router, tags=["health"])
    app.include_router(validators_router)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> PlainTextResponse:
        log.error("unhandled_exception", error=str(exc), error_type=type(exc).__name__)
        return PlainTextResponse(INTERNAL_PANIC, status_code=500)

    return app


# --- Module Notes -----------------------------------------------------------
# This file is the composition root: every collaborator is constructed here once and
# handed down explicitly, so no component reads configuration on its own.
