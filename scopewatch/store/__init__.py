"""Change store interface consumed by the poller."""

from scopewatch.store.base import ChangeStore

__all__ = ["ChangeStore"]
