"""
Monitoring and observability for ScopeWatch.

Provides Prometheus metrics for poll cycles, program processing and
AI normalization.

Usage:
    from scopewatch.monitoring import track_poll_cycle

    with track_poll_cycle("h1"):
        poll_platform(config)
"""

from scopewatch.monitoring.metrics import (
    CIRCUIT_BREAKER_FAILURES,
    CIRCUIT_BREAKER_STATE,
    NORMALIZATION_CACHE_LOOKUPS,
    NORMALIZATION_CALLS_TOTAL,
    NORMALIZATION_LATENCY,
    POLL_CYCLE_DURATION,
    POLL_CYCLE_TOTAL,
    PROGRAMS_PROCESSED_TOTAL,
    record_cache_lookups,
    record_circuit_breaker_failure,
    record_program_processed,
    track_normalization_call,
    track_poll_cycle,
    update_circuit_breaker_state,
)

__all__ = [
    "CIRCUIT_BREAKER_FAILURES",
    "CIRCUIT_BREAKER_STATE",
    "NORMALIZATION_CACHE_LOOKUPS",
    "NORMALIZATION_CALLS_TOTAL",
    "NORMALIZATION_LATENCY",
    "POLL_CYCLE_DURATION",
    "POLL_CYCLE_TOTAL",
    "PROGRAMS_PROCESSED_TOTAL",
    "record_cache_lookups",
    "record_circuit_breaker_failure",
    "record_program_processed",
    "track_normalization_call",
    "track_poll_cycle",
    "update_circuit_breaker_state",
]
