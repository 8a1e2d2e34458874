"""
stake_pool_updater.services

Service-layer package.

Responsibilities:
- Own the reconciliation schedule and per-pool update lifecycle.
- Translate lifecycle events into operator notifications.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services are plain Python and tested with fake transports/notifiers.
