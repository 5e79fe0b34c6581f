"""
Prometheus metrics for ScopeWatch observability.

Provides standardized metrics for poll cycles, per-program processing,
AI normalization calls and the normalization cache.

Usage:
    from scopewatch.monitoring.metrics import track_poll_cycle

    with track_poll_cycle("h1"):
        poll_platform(config)

    # Or manually
    PROGRAMS_PROCESSED_TOTAL.labels(platform="h1", status="success").inc()
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Gauge, Histogram


# =============================================================================
# Metric Definitions
# =============================================================================

# Poll cycle metrics
POLL_CYCLE_DURATION = Histogram(
    "scopewatch_poll_cycle_duration_seconds",
    "Duration of a platform poll cycle in seconds",
    ["platform"],
    buckets=[1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0],
)

POLL_CYCLE_TOTAL = Counter(
    "scopewatch_poll_cycle_total",
    "Total number of platform poll cycles",
    ["platform", "status"],
)

PROGRAMS_PROCESSED_TOTAL = Counter(
    "scopewatch_programs_processed_total",
    "Programs processed during poll cycles",
    ["platform", "status"],
)

# Normalization metrics
NORMALIZATION_CALLS_TOTAL = Counter(
    "scopewatch_normalization_calls_total",
    "Batched AI normalization calls",
    ["status"],
)

NORMALIZATION_LATENCY = Histogram(
    "scopewatch_normalization_latency_seconds",
    "Latency of one batched AI normalization call",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 45.0, 90.0],
)

NORMALIZATION_CACHE_LOOKUPS = Counter(
    "scopewatch_normalization_cache_lookups_total",
    "Stored AI enhancement lookups per target",
    ["result"],
)

# Circuit breaker metrics
CIRCUIT_BREAKER_STATE = Gauge(
    "scopewatch_circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
    ["service"],
)

CIRCUIT_BREAKER_FAILURES = Counter(
    "scopewatch_circuit_breaker_failures_total",
    "Total failures recorded by circuit breakers",
    ["service"],
)


# =============================================================================
# Tracking Context Managers
# =============================================================================


@contextmanager
def track_poll_cycle(platform: str) -> Generator[None, None, None]:
    """
    Context manager to track poll cycle duration and status.

    Usage:
        with track_poll_cycle("h1"):
            poll_platform(config)
    """
    start_time = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time
        POLL_CYCLE_DURATION.labels(platform=platform).observe(duration)
        POLL_CYCLE_TOTAL.labels(platform=platform, status=status).inc()


@contextmanager
def track_normalization_call() -> Generator[None, None, None]:
    """Context manager to track one batched normalization request."""
    start_time = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        NORMALIZATION_LATENCY.observe(time.perf_counter() - start_time)
        NORMALIZATION_CALLS_TOTAL.labels(status=status).inc()


def record_program_processed(platform: str, status: str) -> None:
    """Count one program outcome ("success", "skipped", "error")."""
    PROGRAMS_PROCESSED_TOTAL.labels(platform=platform, status=status).inc()


def record_cache_lookups(hits: int, misses: int) -> None:
    """Count stored AI enhancement hits and misses for one program."""
    if hits:
        NORMALIZATION_CACHE_LOOKUPS.labels(result="hit").inc(hits)
    if misses:
        NORMALIZATION_CACHE_LOOKUPS.labels(result="miss").inc(misses)


def update_circuit_breaker_state(service: str, state: str) -> None:
    """
    Update circuit breaker state gauge.

    Args:
        service: Service name
        state: Circuit state ("closed", "half_open", "open")
    """
    state_map = {"closed": 0, "half_open": 1, "open": 2}
    CIRCUIT_BREAKER_STATE.labels(service=service).set(state_map.get(state, 0))


def record_circuit_breaker_failure(service: str) -> None:
    """Record a circuit breaker failure."""
    CIRCUIT_BREAKER_FAILURES.labels(service=service).inc()
