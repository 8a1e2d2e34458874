"""
stake_pool_updater.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and the state reader.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from fastapi import Request

from stake_pool_updater.orchestrator.reader import StateReader
from stake_pool_updater.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Settings are bound to the app in `create_app`; never re-read from the environment.
    return request.app.state.settings  # type: ignore[attr-defined]


def state_reader_dep(request: Request) -> StateReader:
    # Created on app startup in `stake_pool_updater.api.app.create_app`.
    return request.app.state.state_reader  # type: ignore[attr-defined]
