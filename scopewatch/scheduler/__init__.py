"""Periodic poll scheduling."""

from scopewatch.scheduler.scheduler import POLL_JOB_ID, PollScheduler

__all__ = ["POLL_JOB_ID", "PollScheduler"]
