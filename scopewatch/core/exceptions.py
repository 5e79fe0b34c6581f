"""
Core exception hierarchy for ScopeWatch.

Provides standardized exception types with categorization for retry logic.
Source adapters and change stores should raise these instead of generic
Exception so the poller can tell transient failures from permanent ones.
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class ScopeWatchError(Exception):
    """Base exception for all ScopeWatch errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryableError(ScopeWatchError):
    """
    Transient errors that should be retried.

    Examples: Rate limits, timeouts, a locked database.
    """

    pass


class PermanentError(ScopeWatchError):
    """
    Errors that won't be fixed by retrying.

    Examples: Invalid input, missing credentials, malformed replies.
    """

    pass


# =============================================================================
# Source Adapter Errors
# =============================================================================


class SourceError(ScopeWatchError):
    """Base exception for source adapter errors."""

    def __init__(
        self,
        source: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.source = source
        super().__init__(f"[{source}] {message}", details)


class SourceListingError(SourceError):
    """Raised when a source cannot list its programs."""

    pass


class SourceFetchError(SourceError):
    """Raised when a single program's scope cannot be fetched."""

    def __init__(
        self,
        source: str,
        handle: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.handle = handle
        super().__init__(source, f"{handle}: {message}", details)


# =============================================================================
# Change Store Errors
# =============================================================================


class ChangeStoreError(ScopeWatchError):
    """Base exception for change store errors."""

    pass


class ChangeStoreUnavailableError(ChangeStoreError, RetryableError):
    """Raised when the store is temporarily unable to accept a write."""

    pass


class ScopeWipeAbortedError(ChangeStoreError):
    """Raised when an update would wipe every target of a program.

    The poller skips persistence for the program but still counts it as
    polled.
    """

    def __init__(self, program_url: str):
        self.program_url = program_url
        super().__init__(
            "aborting update to prevent wiping out all targets for a program",
            {"program_url": program_url},
        )


# =============================================================================
# Normalization Errors
# =============================================================================


class NormalizationError(ScopeWatchError):
    """Base exception for AI normalization errors."""

    pass


class NormalizationAPIError(NormalizationError, PermanentError):
    """Raised when the completion API answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        self.status_code = status_code
        super().__init__(message, {"status_code": status_code})


class NormalizationParseError(NormalizationError, PermanentError):
    """Raised when the completion API reply cannot be parsed."""

    pass


class NormalizationTransportError(NormalizationError, RetryableError):
    """Raised when the completion API cannot be reached."""

    pass


# =============================================================================
# Polling Errors
# =============================================================================


class PollingError(ScopeWatchError):
    """Base exception for poll cycle errors."""

    pass


class ProgramPollError(PollingError):
    """A single program failed during a poll cycle.

    Collected into PollResult.errors; never stops sibling programs.
    """

    def __init__(self, platform: str, handle: str, stage: str, cause: BaseException):
        self.platform = platform
        self.handle = handle
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"[{platform}] {handle}: {stage} failed: {cause}",
            {"stage": stage},
        )


class PollCancelledError(PollingError):
    """Raised when a poll cycle is cancelled before it could reconcile."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"[{platform}] poll cycle cancelled")


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)


# =============================================================================
# Circuit Breaker
# =============================================================================


class CircuitBreakerOpenError(RetryableError):
    """Raised when circuit breaker is open and blocking requests."""

    def __init__(self, service: str, recovery_time: float):
        self.service = service
        self.recovery_time = recovery_time
        super().__init__(
            f"Circuit breaker open for {service}. Recovery in {recovery_time:.1f}s",
            {"service": service, "recovery_time": recovery_time},
        )
