"""
stake_pool_updater.observability

Observability package.

Responsibilities:
- Structured logging configuration shared by the API and the epoch watcher.
- Request/cycle context propagation so every log line names its request or pool.
"""

# Package marker.
