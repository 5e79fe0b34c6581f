"""Change store interface.

The change store owns program and target persistence, diff computation
and the audit trail. The poller treats it as a black box: each call is
assumed to be atomic, and upserts for different programs may run
concurrently from several worker threads.

Implementations raise ChangeStoreError subclasses. Transient failures
(locked database, dropped connection) should be ChangeStoreUnavailableError
so the poller can retry them. Every operation receives the poll cycle's
cancel event; a remote store may use it to abandon a slow round trip.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Optional

from scopewatch.models import Change, TargetItem, TargetVariant


class ChangeStore(ABC):
    """Abstract base class for change stores."""

    @abstractmethod
    def get_active_program_count(self, platform: str, cancel: Optional[threading.Event] = None) -> int:
        """Number of tracked, non-disabled programs for platform."""
        ...

    @abstractmethod
    def get_ignored_programs(self, platform: str, cancel: Optional[threading.Event] = None) -> set[str]:
        """Handles and program URLs the operator chose to ignore."""
        ...

    @abstractmethod
    def list_ai_enhancements(
        self, program_url: str, cancel: Optional[threading.Event] = None
    ) -> Mapping[str, list[TargetVariant]]:
        """Previously stored AI variants for a program.

        Keys are built with scopewatch.scope.build_target_category_key()
        from the raw target and category. Unknown programs yield an empty
        mapping.
        """
        ...

    @abstractmethod
    def upsert_program_entries(
        self,
        program_url: str,
        platform: str,
        handle: str,
        items: list[TargetItem],
        cancel: Optional[threading.Event] = None,
    ) -> list[Change]:
        """Persist a program's current items and return what changed.

        Raises:
            ScopeWipeAbortedError: If the update would remove every target
                of a program that previously had some.
        """
        ...

    @abstractmethod
    def sync_platform_programs(
        self,
        platform: str,
        polled_urls: Iterable[str],
        cancel: Optional[threading.Event] = None,
    ) -> list[Change]:
        """Disable tracked programs of platform not in polled_urls.

        Returns the program removal changes.
        """
        ...

    @abstractmethod
    def log_changes(self, changes: list[Change], cancel: Optional[threading.Event] = None) -> None:
        """Append changes to the audit trail."""
        ...
