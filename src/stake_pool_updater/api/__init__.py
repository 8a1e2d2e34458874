"""
stake_pool_updater.api

API package for the stake pool update service.

Responsibilities:
- FastAPI app factory (composition root for the API and the epoch watcher).
- Read-only validator endpoint and its wire schema.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer stays thin: fetch via the state reader, transform, respond.
