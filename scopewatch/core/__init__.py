"""
Core infrastructure modules for ScopeWatch.

Provides common utilities used across the application:
- exceptions: Standardized exception hierarchy
- circuit_breaker: Resilience pattern for external APIs
"""

from scopewatch.core.exceptions import (
    ScopeWatchError,
    RetryableError,
    PermanentError,
    SourceError,
    SourceListingError,
    SourceFetchError,
    ChangeStoreError,
    ChangeStoreUnavailableError,
    ScopeWipeAbortedError,
    NormalizationError,
    NormalizationAPIError,
    NormalizationParseError,
    NormalizationTransportError,
    PollingError,
    ProgramPollError,
    PollCancelledError,
    ConfigurationError,
    CircuitBreakerOpenError,
)

from scopewatch.core.circuit_breaker import (
    CircuitBreaker,
    CircuitState,
    get_circuit_breaker,
    get_all_circuit_breakers,
    reset_all_circuit_breakers,
)

__all__ = [
    # Exceptions
    "ScopeWatchError",
    "RetryableError",
    "PermanentError",
    "SourceError",
    "SourceListingError",
    "SourceFetchError",
    "ChangeStoreError",
    "ChangeStoreUnavailableError",
    "ScopeWipeAbortedError",
    "NormalizationError",
    "NormalizationAPIError",
    "NormalizationParseError",
    "NormalizationTransportError",
    "PollingError",
    "ProgramPollError",
    "PollCancelledError",
    "ConfigurationError",
    "CircuitBreakerOpenError",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitState",
    "get_circuit_breaker",
    "get_all_circuit_breakers",
    "reset_all_circuit_breakers",
]
