"""
stake_pool_updater.errors

Error taxonomy shared by the reader, builder, pipeline and watcher.

Responsibilities:
- Distinguish retryable transport failures from fatal decode/simulation/fee failures.
- Carry the amounts involved in a failed fee-payer balance check.
"""

from __future__ import annotations


class StakePoolUpdaterError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(StakePoolUpdaterError):
    """Configuration is missing or invalid; the process must not start."""


class TransportError(StakePoolUpdaterError):
    """An RPC or network call failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class DecodeError(StakePoolUpdaterError):
    """Account bytes could not be decoded into the expected record."""

    def __init__(self, address: str, message: str) -> None:
        super().__init__(f"invalid account {address}: {message}")
        self.address = address


class SimulationError(StakePoolUpdaterError):
    """A simulation did not report usable compute unit consumption."""


class FeeEstimationError(StakePoolUpdaterError):
    """The network could not quote a fee for the assembled message."""


class InsufficientBalanceError(StakePoolUpdaterError):
    def __init__(self, *, payer: str, required: int, available: int) -> None:
        super().__init__(
            f"Fee payer, {payer}, has insufficient balance: "
            f"{required} lamports required, {available} lamports available"
        )
        self.payer = payer
        self.required = required
        self.available = available


class NotificationError(StakePoolUpdaterError):
    """The notification channel rejected or failed to deliver a message."""


# --- Module Notes -----------------------------------------------------------
# Only TransportError raised while reading pool/epoch state is retried (see
# services.epoch_watcher). Everything else is fatal to the pool's current cycle.
