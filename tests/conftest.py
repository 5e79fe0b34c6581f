"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- FakeSource: in-memory source adapter
- FakeStore: thread-safe in-memory change store that records every call
- FakeNormalizer: normalizer driven by a plain function
- program_data: builder for ProgramData
"""

import threading
from collections.abc import Iterable, Mapping

import pytest

from scopewatch.core.circuit_breaker import reset_all_circuit_breakers
from scopewatch.models import (
    Change,
    ChangeType,
    ProgramData,
    ScopeElement,
    TargetItem,
    TargetVariant,
)
from scopewatch.normalization.base import Normalizer
from scopewatch.sources.base import SourceAdapter
from scopewatch.store.base import ChangeStore


class FakeSource(SourceAdapter):
    """Source adapter backed by a dict of handle -> ProgramData or exception."""

    def __init__(self, platform="h1", programs=None, list_error=None):
        super().__init__()
        self._platform = platform
        self.programs = dict(programs or {})
        self.list_error = list_error
        self.fetched: list[str] = []
        self.cancel_events: list = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._platform

    def list_program_handles(self, options, cancel=None):
        self.cancel_events.append(cancel)
        if self.list_error is not None:
            raise self.list_error
        return list(self.programs)

    def fetch_program_scope(self, handle, options, cancel=None):
        with self._lock:
            self.fetched.append(handle)
            self.cancel_events.append(cancel)
        outcome = self.programs[handle]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeStore(ChangeStore):
    """In-memory change store.

    upsert_results maps a program URL to the changes to return, an exception
    to raise, or a tuple of outcomes consumed one call at a time. log_error,
    when set, is raised by every log_changes() call.
    """

    def __init__(
        self,
        active_count=0,
        ignored=None,
        enhancements=None,
        upsert_results=None,
        sync_result=None,
        log_error=None,
    ):
        self.active_count = active_count
        self.ignored = ignored if ignored is not None else set()
        self.enhancements = enhancements or {}
        self.upsert_results = dict(upsert_results or {})
        self.sync_result = sync_result if sync_result is not None else []
        self.upserts: list[tuple[str, str, str, list[TargetItem]]] = []
        self.synced: list[tuple[str, list[str]]] = []
        self.logged: list[list[Change]] = []
        self.log_error = log_error
        self.cancel_events: list = []
        self._lock = threading.Lock()

    def get_active_program_count(self, platform: str, cancel=None) -> int:
        self._saw(cancel)
        if isinstance(self.active_count, Exception):
            raise self.active_count
        return self.active_count

    def get_ignored_programs(self, platform: str, cancel=None) -> set[str]:
        self._saw(cancel)
        if isinstance(self.ignored, Exception):
            raise self.ignored
        return set(self.ignored)

    def list_ai_enhancements(self, program_url: str, cancel=None) -> Mapping[str, list[TargetVariant]]:
        self._saw(cancel)
        if isinstance(self.enhancements, Exception):
            raise self.enhancements
        return self.enhancements.get(program_url, {})

    def upsert_program_entries(self, program_url, platform, handle, items, cancel=None):
        self._saw(cancel)
        with self._lock:
            self.upserts.append((program_url, platform, handle, list(items)))
            outcome = self.upsert_results.get(program_url, [])
            if isinstance(outcome, tuple):
                outcome, rest = outcome[0], outcome[1:]
                self.upsert_results[program_url] = rest if rest else outcome
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    def sync_platform_programs(self, platform: str, polled_urls: Iterable[str], cancel=None) -> list[Change]:
        self._saw(cancel)
        with self._lock:
            self.synced.append((platform, sorted(polled_urls)))
            outcome = self.sync_result
            if isinstance(outcome, tuple):
                outcome, rest = outcome[0], outcome[1:]
                self.sync_result = rest if rest else outcome
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    def log_changes(self, changes: list[Change], cancel=None) -> None:
        self._saw(cancel)
        if self.log_error is not None:
            raise self.log_error
        with self._lock:
            self.logged.append(list(changes))

    def _saw(self, cancel) -> None:
        with self._lock:
            self.cancel_events.append(cancel)

    def upserted_items(self, program_url: str) -> list[TargetItem]:
        for url, _, _, items in self.upserts:
            if url == program_url:
                return items
        raise KeyError(program_url)


class FakeNormalizer(Normalizer):
    """Normalizer that applies fn to each item, or raises error."""

    def __init__(self, fn=None, error=None):
        self.fn = fn
        self.error = error
        self.calls: list[list[TargetItem]] = []
        self._lock = threading.Lock()

    def normalize_targets(self, info, items, cancel=None):
        with self._lock:
            self.calls.append(list(items))
        if self.error is not None:
            raise self.error
        if self.fn is None:
            return list(items)
        return [self.fn(item) for item in items]


def make_change(program_url: str, platform: str = "h1", target: str = "example.com",
                change_type: ChangeType = ChangeType.ADDED) -> Change:
    return Change(
        program_url=program_url,
        platform=platform,
        handle=program_url.rsplit("/", 1)[-1],
        target_normalized=target,
        target_raw=target,
        change_type=change_type,
    )


def make_program(url: str, in_scope: list[str] = (), out_of_scope: list[str] = (),
                 category: str = "url") -> ProgramData:
    return ProgramData(
        url=url,
        in_scope=[ScopeElement(target=t, category=category) for t in in_scope],
        out_of_scope=[ScopeElement(target=t, category=category) for t in out_of_scope],
    )


@pytest.fixture(autouse=True)
def _reset_breakers():
    """Circuit breakers are process-wide; start every test closed."""
    reset_all_circuit_breakers()
    yield
    reset_all_circuit_breakers()


@pytest.fixture
def program_data():
    """Builder for ProgramData with plain string targets."""
    return make_program
