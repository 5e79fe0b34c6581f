"""
Polling.

One poll cycle per platform with a bounded worker pool, plus a registry of
the latest status for each platform:

    from scopewatch.polling import PlatformConfig, poll_platform

    result = poll_platform(PlatformConfig(source=source, store=store))
"""

from scopewatch.polling.orchestrator import (
    DEFAULT_CONCURRENCY,
    WIPE_GUARD_THRESHOLD,
    PlatformConfig,
    PollResult,
    apply_ai_normalization,
    build_target_items,
    poll_platform,
)
from scopewatch.polling.status import PollerStatus, PollerStatusRegistry

__all__ = [
    "DEFAULT_CONCURRENCY",
    "WIPE_GUARD_THRESHOLD",
    "PlatformConfig",
    "PollResult",
    "apply_ai_normalization",
    "build_target_items",
    "poll_platform",
    "PollerStatus",
    "PollerStatusRegistry",
]
