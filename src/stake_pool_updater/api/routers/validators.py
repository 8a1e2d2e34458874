"""
stake_pool_updater.api.routers.validators

Read-only snapshot of the first configured pool's validator list.

Responsibilities:
- `GET /validators`: fetch pool + validator list, return the wire representation.
- Reduce every failure to a short fixed text body with status 500.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from solders.pubkey import Pubkey
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from stake_pool_updater.api.deps import settings_dep, state_reader_dep
from stake_pool_updater.api.schemas import ValidatorListWire, to_wire
from stake_pool_updater.errors import StakePoolUpdaterError
from stake_pool_updater.observability.logging import get_logger
from stake_pool_updater.orchestrator.reader import StateReader
from stake_pool_updater.settings import Settings

router = APIRouter(tags=["validators"])
log = get_logger(__name__)

NO_POOLS = "No stake pool addresses configured"
POOL_FETCH_FAILED = "Failed to fetch stake pool"
LIST_FETCH_FAILED = "Failed to fetch validator list"
INTERNAL_PANIC = "Internal panic occurred"


def _error(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/validators", response_model=ValidatorListWire)
async def get_validators(
    settings: Settings = Depends(settings_dep),
    reader: StateReader = Depends(state_reader_dep),
) -> Any:
    try:
        addresses = settings.stake_pool_addresses
        if not addresses:
            return _error(NO_POOLS)
        address = Pubkey.from_string(addresses[0])

        try:
            pool = await reader.fetch_pool(address)
        except StakePoolUpdaterError as e:
            log.error("validators_pool_fetch_failed", pool=str(address), error=str(e))
            return _error(POOL_FETCH_FAILED)

        try:
            validator_list = await reader.fetch_validator_list(pool.validator_list)
        except StakePoolUpdaterError as e:
            log.error("validators_list_fetch_failed", validator_list=str(pool.validator_list), error=str(e))
            return _error(LIST_FETCH_FAILED)

        return to_wire(validator_list)
    except Exception:
        # Request boundary: internal detail stays in the logs.
        log.exception("validators_internal_error")
        return _error(INTERNAL_PANIC)
