"""
stake_pool_updater.clients

Client boundary for external collaborators.

Responsibilities:
- Define the contracts the orchestrator depends on (chain state, transaction transport, notifier).
- Provide the production implementations (Solana JSON-RPC, Slack Web API).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The orchestrator depends on the protocols in `clients.base`; tests swap in fakes.
