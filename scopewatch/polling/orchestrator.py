"""Platform poll cycle.

poll_platform() runs one cycle for one source:

    Init -> Listing -> (Guarded abort | Fanout) -> Reconcile -> Done

Listing failures propagate to the caller. Per-program failures are
collected in PollResult.errors and never stop sibling programs.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_when_event_set,
    wait_exponential,
)

from scopewatch.core.exceptions import (
    ChangeStoreError,
    PollCancelledError,
    ProgramPollError,
    RetryableError,
    ScopeWipeAbortedError,
)
from scopewatch.models import Change, PollOptions, ProgramData, ProgramInfo, TargetItem
from scopewatch.monitoring.metrics import record_cache_lookups, record_program_processed
from scopewatch.normalization.base import Normalizer
from scopewatch.scope import build_target_category_key, normalize_program_url
from scopewatch.sources.base import SourceAdapter
from scopewatch.store.base import ChangeStore

DEFAULT_CONCURRENCY = 5

# An empty listing is trusted only while the store tracks at most this many
# programs for the platform.
WIPE_GUARD_THRESHOLD = 10

ProgramDoneCallback = Callable[[str, list[Change], bool], None]


def _nop_logger():
    return structlog.wrap_logger(
        structlog.ReturnLogger(), processors=[], wrapper_class=structlog.BoundLogger
    )


@dataclass
class PlatformConfig:
    """Everything poll_platform() needs for a single platform."""

    source: SourceAdapter
    store: ChangeStore
    options: PollOptions = field(default_factory=PollOptions)
    concurrency: int = DEFAULT_CONCURRENCY
    normalizer: Optional[Normalizer] = None
    log: Any = None
    # Called once per processed program from the worker thread.
    on_program_done: Optional[ProgramDoneCallback] = None
    store_write_attempts: int = 5
    store_retry_backoff: float = 1.0


@dataclass(frozen=True)
class PollResult:
    """Outcome of one platform poll cycle."""

    platform: str
    polled_program_urls: tuple[str, ...] = ()
    program_changes: tuple[Change, ...] = ()
    removed_program_changes: tuple[Change, ...] = ()
    is_first_run: bool = False
    errors: tuple[Exception, ...] = ()
    sync_skipped: bool = False


def build_target_items(program: ProgramData) -> list[TargetItem]:
    """Flatten a program's scope into items, in-scope entries first."""
    items = [TargetItem.from_element(e, in_scope=True) for e in program.in_scope]
    items.extend(TargetItem.from_element(e, in_scope=False) for e in program.out_of_scope)
    return items


def apply_ai_normalization(
    normalizer: Normalizer,
    store: ChangeStore,
    info: ProgramInfo,
    items: list[TargetItem],
    log: Any = None,
    cancel: Optional[threading.Event] = None,
) -> list[TargetItem]:
    """Attach AI variants to items, reusing stored enhancements first.

    Only items without stored variants are sent to the normalizer. If the
    normalizer fails or returns nothing, those items are kept as they are.
    The output has the same length and order as items.
    """
    log = log or _nop_logger()
    try:
        cached = store.list_ai_enhancements(info.program_url, cancel=cancel)
    except Exception as e:
        log.warning("ai_enhancements_unavailable", program_url=info.program_url, error=str(e))
        cached = {}

    out: list[TargetItem] = []
    positions: list[int] = []
    candidates: list[TargetItem] = []
    for item in items:
        variants = cached.get(build_target_category_key(item.uri, item.category))
        if variants:
            out.append(item.model_copy(update={"variants": list(variants)}))
            continue
        positions.append(len(out))
        out.append(item)
        candidates.append(item)

    record_cache_lookups(hits=len(items) - len(candidates), misses=len(candidates))
    if not candidates:
        return out

    try:
        normalized = normalizer.normalize_targets(info, candidates, cancel)
    except Exception as e:
        log.warning("ai_normalization_failed", program_url=info.program_url, error=str(e))
        return out

    if len(normalized) != len(candidates):
        if normalized:
            log.warning(
                "ai_normalization_size_mismatch",
                program_url=info.program_url,
                expected=len(candidates),
                received=len(normalized),
            )
        return out

    for pos, item in zip(positions, normalized):
        out[pos] = item
    return out


class _CycleAggregate:
    """Cross-worker results; every mutation holds the lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self.polled_urls: list[str] = []
        self.changes: list[Change] = []
        self.errors: list[Exception] = []

    def add_program(self, program_url: str, changes: list[Change]) -> None:
        with self._lock:
            self.polled_urls.append(program_url)
            self.changes.extend(changes)

    def add_error(self, error: Exception) -> None:
        with self._lock:
            self.errors.append(error)


class _PollCycle:
    """State shared by the workers of one poll_platform() call."""

    def __init__(self, config: PlatformConfig, cancel: Optional[threading.Event]):
        self.config = config
        self.cancel = cancel
        self.platform = config.source.name
        self.log = (config.log or _nop_logger()).bind(platform=self.platform)
        self.aggregate = _CycleAggregate()
        self.ignored: set[str] = set()
        self.is_first_run = False

    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()

    def store_write(self, fn: Callable, *args):
        """Call a store write, retrying transient failures until cancelled."""
        stop = stop_after_attempt(max(1, self.config.store_write_attempts))
        if self.cancel is not None:
            stop = stop | stop_when_event_set(self.cancel)
        retryer = Retrying(
            retry=retry_if_exception_type(RetryableError),
            stop=stop,
            wait=wait_exponential(multiplier=self.config.store_retry_backoff, max=30),
            before_sleep=lambda retry_state: self.log.warning(
                "store_write_retry",
                operation=fn.__name__,
                attempt=retry_state.attempt_number,
                error=str(retry_state.outcome.exception()),
            ),
            reraise=True,
        )
        return retryer(fn, *args, cancel=self.cancel)

    def run(self) -> PollResult:
        source, store = self.config.source, self.config.store

        active_count: Optional[int] = None
        try:
            active_count = store.get_active_program_count(self.platform, cancel=self.cancel)
        except ChangeStoreError as e:
            self.log.warning("program_count_unavailable", error=str(e))
        self.is_first_run = active_count == 0

        try:
            ignored = store.get_ignored_programs(self.platform, cancel=self.cancel)
            self.ignored = {normalize_program_url(entry) for entry in ignored}
        except ChangeStoreError as e:
            self.log.warning("ignored_programs_unavailable", error=str(e))

        if self.cancelled():
            raise PollCancelledError(self.platform)

        handles = source.list_program_handles(self.config.options, cancel=self.cancel)

        if not handles and (active_count is None or active_count > WIPE_GUARD_THRESHOLD):
            self.log.error(
                "empty_listing_sync_aborted",
                active_programs=active_count,
                threshold=WIPE_GUARD_THRESHOLD,
            )
            return PollResult(platform=self.platform, is_first_run=self.is_first_run, sync_skipped=True)

        if self.is_first_run and handles:
            self.log.info("first_poll_populating", programs=len(handles))

        if handles:
            concurrency = self.config.concurrency if self.config.concurrency > 0 else DEFAULT_CONCURRENCY
            workers = min(concurrency, len(handles))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"poll-{self.platform}") as pool:
                for handle in handles:
                    pool.submit(self.process_handle, handle)

        if self.cancelled():
            raise PollCancelledError(self.platform)

        removed = self.reconcile()

        return PollResult(
            platform=self.platform,
            polled_program_urls=tuple(self.aggregate.polled_urls),
            program_changes=tuple(self.aggregate.changes),
            removed_program_changes=tuple(removed),
            is_first_run=self.is_first_run,
            errors=tuple(self.aggregate.errors),
        )

    def reconcile(self) -> list[Change]:
        store = self.config.store
        try:
            removed = self.store_write(
                store.sync_platform_programs, self.platform, list(self.aggregate.polled_urls)
            )
        except ChangeStoreError as e:
            self.log.warning("program_sync_failed", error=str(e))
            self.aggregate.add_error(e)
            return []

        if removed and not self.is_first_run:
            try:
                store.log_changes(removed, cancel=self.cancel)
            except Exception as e:
                self.log.warning("removed_changes_log_failed", error=str(e))
        return removed

    def process_handle(self, handle: str) -> None:
        """Worker entry point; never raises."""
        if self.cancelled():
            return
        if handle in self.ignored:
            self.log.debug("program_ignored", handle=handle)
            record_program_processed(self.platform, "skipped")
            return

        try:
            outcome = self.process_program(handle)
        except ProgramPollError as e:
            self.log.warning("program_poll_failed", handle=handle, stage=e.stage, error=str(e.cause))
            self.aggregate.add_error(e)
            record_program_processed(self.platform, "error")
            return
        except Exception as e:
            self.log.error("program_processing_crashed", handle=handle, error=str(e))
            self.aggregate.add_error(ProgramPollError(self.platform, handle, "process", e))
            record_program_processed(self.platform, "error")
            return

        if outcome is None:
            record_program_processed(self.platform, "skipped")
            return

        program_url, changes = outcome
        self.aggregate.add_program(program_url, changes)
        record_program_processed(self.platform, "success")

        if self.config.on_program_done is not None:
            try:
                self.config.on_program_done(program_url, changes, self.is_first_run)
            except Exception as e:
                self.log.warning("program_callback_failed", program_url=program_url, error=str(e))

    def process_program(self, handle: str) -> Optional[tuple[str, list[Change]]]:
        """Fetch, normalize and persist one program.

        Returns None when the program is skipped.

        Raises:
            ProgramPollError: If fetching or persisting fails.
        """
        config = self.config
        try:
            program = config.source.fetch_program_scope(handle, config.options, cancel=self.cancel)
        except Exception as e:
            raise ProgramPollError(self.platform, handle, "fetch", e) from e

        program_url = normalize_program_url(program.url)
        if program_url in self.ignored:
            self.log.debug("program_ignored", handle=handle, program_url=program_url)
            return None

        items = build_target_items(program)
        if config.normalizer is not None and items:
            if self.cancelled():
                return None
            info = ProgramInfo(program_url=program_url, platform=self.platform, handle=handle)
            items = apply_ai_normalization(config.normalizer, config.store, info, items, self.log, self.cancel)

        if self.cancelled():
            return None

        try:
            changes = self.store_write(
                config.store.upsert_program_entries, program_url, self.platform, handle, items
            )
        except ScopeWipeAbortedError:
            self.log.warning("scope_wipe_aborted", handle=handle, program_url=program_url)
            return program_url, []
        except Exception as e:
            raise ProgramPollError(self.platform, handle, "persist", e) from e

        if changes and not self.is_first_run:
            try:
                config.store.log_changes(changes, cancel=self.cancel)
            except Exception as e:
                self.log.warning("changes_log_failed", program_url=program_url, error=str(e))

        return program_url, changes


def poll_platform(config: PlatformConfig, cancel: Optional[threading.Event] = None) -> PollResult:
    """Poll one platform and reconcile the store with what was found.

    Args:
        config: Source, store and tuning for the cycle.
        cancel: When set, workers stop before their next network call and
            the cycle raises PollCancelledError without reconciling.

    Returns:
        The cycle's PollResult. A guarded abort returns an empty result
        with sync_skipped=True.

    Raises:
        PollCancelledError: If cancel was set during the cycle.
        Exception: Whatever the source raises while listing handles.
    """
    return _PollCycle(config, cancel).run()
