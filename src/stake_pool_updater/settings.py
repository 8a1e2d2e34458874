"""
stake_pool_updater.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the API and the epoch watcher.
- Hide secrets (fee payer key, Slack token) from repr/logging.
- Load once at startup; every component receives the same immutable instance.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from solders.pubkey import Pubkey

from stake_pool_updater.errors import ConfigError

SPL_STAKE_POOL_PROGRAM_ID = "SPoo1Ku8WFXoNDMHPsrGSTSG1Y47rzgn41SLUNakuHy"


class Settings(BaseSettings):
    """
    Variable names match the deployment environment verbatim (no prefix).
    Required: RPC_URL, FEE_PAYER_PRIVATE_KEY, STAKE_POOL_ADDRESS, SLACK_TOKEN, SLACK_CHANNEL_ID.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    service_name: str = "stake-pool-updater"
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=0, le=65535)

    rpc_url: str
    fee_payer_private_key: str = Field(repr=False)
    # Comma-separated; see `stake_pool_addresses`.
    stake_pool_address: str

    slack_token: str = Field(repr=False)
    slack_channel_id: str

    stake_pool_program_id: str = SPL_STAKE_POOL_PROGRAM_ID

    # Watcher
    update_interval_seconds: float = Field(default=30 * 60, gt=0)
    send_pacing_seconds: float = Field(default=30.0, ge=0)
    epoch_fetch_max_attempts: int = Field(default=5, ge=1)
    epoch_fetch_base_delay_seconds: float = Field(default=2.0, ge=0)
    epoch_fetch_max_jitter_seconds: float = Field(default=1.0, ge=0)

    # Update policy
    dry_run: bool = False
    no_update: bool = False
    force_update: bool = False
    no_merge: bool = False
    stale_only: bool = False

    # Compute budget: "default", "simulated" or a static unit count.
    compute_unit_limit: str = "250000"
    compute_unit_price: int | None = Field(default=None, ge=0)

    @field_validator("rpc_url", "slack_channel_id", "fee_payer_private_key", "slack_token")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("stake_pool_address")
    @classmethod
    def _valid_addresses(cls, value: str) -> str:
        for entry in _split_addresses(value):
            try:
                Pubkey.from_string(entry)
            except ValueError as e:
                raise ValueError(f"invalid stake pool address {entry!r}") from e
        return value

    @field_validator("stake_pool_program_id")
    @classmethod
    def _valid_program_id(cls, value: str) -> str:
        Pubkey.from_string(value)
        return value

    @field_validator("compute_unit_limit")
    @classmethod
    def _valid_compute_unit_limit(cls, value: str) -> str:
        value = value.strip().lower()
        if value in ("default", "simulated"):
            return value
        if not value.isdigit() or int(value) > 0xFFFFFFFF:
            raise ValueError("expected 'default', 'simulated' or a u32 unit count")
        return value

    @property
    def stake_pool_addresses(self) -> tuple[str, ...]:
        return _split_addresses(self.stake_pool_address)


def _split_addresses(raw: str) -> tuple[str, ...]:
    return tuple(s.strip() for s in raw.split(",") if s.strip())


def load_settings(**overrides: object) -> Settings:
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]).upper() for err in e.errors()]
        raise ConfigError(f"invalid configuration: {', '.join(missing)}\n{e}") from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Read the environment exactly once per process.
    return load_settings()


# --- Module Notes -----------------------------------------------------------
# Settings are frozen: the API and the background watcher share the same instance and
# neither may mutate it.
