"""Base source adapter interface.

Every platform that publishes program scopes is wrapped in a SourceAdapter.
Adapters are blocking and may be called from several worker threads at
once, so they must not keep per-call state on the instance.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

from scopewatch.models import PollOptions, ProgramData


class SourceAdapter(ABC):
    """Abstract base class for all scope sources.

    Concrete adapters implement program discovery and single-program scope
    fetching. Failures should be raised as SourceListingError or
    SourceFetchError.

    Both operations receive the poll cycle's cancel event. Adapters that
    page through results or retry should check it between requests and
    return early once it is set.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """Initialize adapter with configuration.

        Args:
            config: Configuration dictionary with adapter-specific settings
                (credentials, proxy, page size).
        """
        self.config = config or {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Short platform identifier, e.g. "h1"."""
        ...

    @abstractmethod
    def list_program_handles(
        self, options: PollOptions, cancel: Optional[threading.Event] = None
    ) -> list[str]:
        """List the handles of every program currently published.

        Args:
            options: Filters such as bounty-only or private-only.
            cancel: Set when the poll cycle is being cancelled.

        Returns:
            Program handles, in any order.
        """
        ...

    @abstractmethod
    def fetch_program_scope(
        self, handle: str, options: PollOptions, cancel: Optional[threading.Event] = None
    ) -> ProgramData:
        """Fetch one program's declared scope.

        Args:
            handle: A handle returned by list_program_handles().
            options: The same filters used for listing.
            cancel: Set when the poll cycle is being cancelled.

        Returns:
            The program URL with its in-scope and out-of-scope entries.
        """
        ...
