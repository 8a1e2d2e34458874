"""
stake_pool_updater.api.routers

HTTP routers (health probes, validator snapshot).
"""

# Package marker.
