"""Scheduler for periodic ScopeWatch poll cycles.

This module provides a scheduling system that:
- Uses APScheduler to run a poll cycle at a fixed interval, starting immediately
- Polls every configured source in turn with poll_platform()
- Records the outcome of each platform in a PollerStatusRegistry
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from scopewatch.config.settings import get_settings
from scopewatch.core.exceptions import PollCancelledError
from scopewatch.models import PollOptions
from scopewatch.monitoring.metrics import track_poll_cycle
from scopewatch.normalization.base import Normalizer
from scopewatch.polling.orchestrator import PlatformConfig, PollResult, poll_platform
from scopewatch.polling.status import PollerStatus, PollerStatusRegistry
from scopewatch.sources.base import SourceAdapter
from scopewatch.store.base import ChangeStore

logger = structlog.get_logger(__name__)

POLL_JOB_ID = "scopewatch_poll_cycle"


class PollScheduler:
    """Runs poll cycles across several sources.

    Example:
        scheduler = PollScheduler([HackerOneSource(...)], store)
        scheduler.start()
        ...
        scheduler.shutdown()

    A failing platform never stops the others; its error ends up in the
    status registry.
    """

    def __init__(
        self,
        sources: Iterable[SourceAdapter],
        store: ChangeStore,
        normalizer: Optional[Normalizer] = None,
        registry: Optional[PollerStatusRegistry] = None,
        interval_hours: Optional[float] = None,
        concurrency: Optional[int] = None,
        options: Optional[PollOptions] = None,
        skipped_platforms: Iterable[str] = (),
        log: Any = None,
    ):
        """Initialize the scheduler.

        Args:
            sources: Source adapters polled in order each cycle.
            store: Change store shared by every platform.
            normalizer: Optional AI normalizer.
            registry: Status registry; a new one is created if omitted.
            interval_hours: Hours between cycles. Defaults to settings.
            concurrency: Workers per platform. Defaults to settings.
            options: Filters passed to every source.
            skipped_platforms: Platforms that are configured off, reported
                as skipped each cycle.
            log: Logger used for the scheduler and its poll cycles.
        """
        settings = get_settings()
        self._sources = list(sources)
        self._store = store
        self._normalizer = normalizer
        self.registry = registry or PollerStatusRegistry()
        self._interval_hours = interval_hours if interval_hours is not None else settings.poll_interval_hours
        self._concurrency = concurrency if concurrency is not None else settings.poll_concurrency
        self._options = options or PollOptions()
        self._skipped = list(skipped_platforms)
        self._log = log or logger
        self._scheduler: Optional[BackgroundScheduler] = None
        self._stop = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def run_cycle(self) -> dict[str, PollResult]:
        """Poll every source once, sequentially.

        Returns:
            Results of the platforms that completed.
        """
        self._log.info("poll_cycle_starting", platforms=len(self._sources))
        cycle_start = time.perf_counter()

        for platform in self._skipped:
            self.registry.mark_skipped(platform, reason="not configured")

        results: dict[str, PollResult] = {}
        for source in self._sources:
            if self._stop.is_set():
                break
            result = self._poll_one(source)
            if result is not None:
                results[source.name] = result

        self._log.info(
            "poll_cycle_completed",
            platforms=len(results),
            duration_seconds=round(time.perf_counter() - cycle_start, 2),
        )
        return results

    def _poll_one(self, source: SourceAdapter) -> Optional[PollResult]:
        platform = source.name
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        config = PlatformConfig(
            source=source,
            store=self._store,
            options=self._options,
            concurrency=self._concurrency,
            normalizer=self._normalizer,
            log=self._log,
        )

        try:
            with track_poll_cycle(platform):
                result = poll_platform(config, cancel=self._stop)
        except PollCancelledError:
            self._log.info("platform_poll_cancelled", platform=platform)
            return None
        except Exception as e:
            self._log.error("platform_poll_failed", platform=platform, error=str(e))
            self.registry.record(
                PollerStatus(
                    platform=platform,
                    started_at=started_at,
                    duration=time.perf_counter() - start,
                    success=False,
                    error=str(e),
                )
            )
            return None

        self.registry.record(
            PollerStatus(
                platform=platform,
                started_at=started_at,
                duration=time.perf_counter() - start,
                success=True,
                skipped=result.sync_skipped,
                programs_polled=len(result.polled_program_urls),
                error=f"{len(result.errors)} program errors" if result.errors else None,
            )
        )
        self._log.info(
            "platform_poll_finished",
            platform=platform,
            programs=len(result.polled_program_urls),
            changes=len(result.program_changes),
            removed=len(result.removed_program_changes),
            errors=len(result.errors),
        )
        return result

    def start(self) -> None:
        """Start polling in the background; the first cycle runs right away."""
        if self._scheduler is not None:
            self._log.warning("scheduler_already_running")
            return

        self._stop.clear()
        self._scheduler = BackgroundScheduler(timezone=timezone.utc)
        self._scheduler.add_job(
            self.run_cycle,
            trigger=IntervalTrigger(hours=self._interval_hours),
            id=POLL_JOB_ID,
            name="ScopeWatch poll cycle",
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        self._log.info("scheduler_started", interval_hours=self._interval_hours)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler and cancel any running cycle."""
        if self._scheduler is None:
            self._log.warning("scheduler_not_running")
            return

        self._stop.set()
        self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        self._log.info("scheduler_stopped")
