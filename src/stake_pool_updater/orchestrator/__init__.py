"""
stake_pool_updater.orchestrator

Update orchestration core.

Responsibilities:
- Read pool state, derive the update plan, build affordable transactions and submit them.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Scheduling, retries and notifications live one layer up in `services.epoch_watcher`.
