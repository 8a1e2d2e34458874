"""
stake_pool_updater.chain

On-chain data model and encoding helpers.

Responsibilities:
- Immutable snapshots of the stake pool and validator list accounts.
- Binary layouts, instruction builders and signing primitives.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing in this package performs I/O; RPC access lives in `clients.rpc`.
