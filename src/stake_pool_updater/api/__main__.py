"""
stake_pool_updater.api.__main__

Entrypoint for running the service via `python -m stake_pool_updater.api`.

Responsibilities:
- Load and validate settings (exit non-zero on configuration errors).
- Create the app (which starts the epoch watcher) and serve it with uvicorn.
"""

from __future__ import annotations

import sys

import uvicorn

from stake_pool_updater.api.app import create_app
from stake_pool_updater.errors import ConfigError
from stake_pool_updater.observability.logging import configure_logging, get_logger
from stake_pool_updater.settings import get_settings


def main() -> None:
    try:
        settings = get_settings()
        app = create_app(settings=settings)
    except ConfigError as e:
        configure_logging(service_name="stake-pool-updater", level="INFO")
        get_logger(__name__).error("config_error", error=str(e))
        sys.exit(1)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
