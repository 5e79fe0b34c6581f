"""
Scope Sources.

A source adapter knows how to list a platform's programs and fetch one
program's scope. Platform scraping itself lives outside this package;
adapters register themselves and are selected by name:

    from scopewatch.sources import SourceAdapter, register_source, get_source

    @register_source("h1")
    class HackerOneSource(SourceAdapter):
        ...

    source = get_source("h1", {"username": "...", "token": "..."})
"""

from scopewatch.sources.base import SourceAdapter
from scopewatch.sources.registry import get_source, list_sources, register_source

__all__ = [
    "SourceAdapter",
    "get_source",
    "list_sources",
    "register_source",
]
