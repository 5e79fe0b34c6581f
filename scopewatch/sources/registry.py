"""Source adapter registry for configuration-time adapter selection.

Provides decorator-based registration and factory function for adapters.
"""

from typing import TYPE_CHECKING, Any

from scopewatch.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from scopewatch.sources.base import SourceAdapter


_sources: dict[str, type["SourceAdapter"]] = {}


def register_source(name: str):
    """Decorator to register a source adapter class.

    Args:
        name: Platform identifier the adapter is selected by.

    Returns:
        Decorator function that registers the class.

    Example:
        @register_source("h1")
        class HackerOneSource(SourceAdapter):
            ...
    """

    def decorator(cls: type["SourceAdapter"]):
        _sources[name.strip().lower()] = cls
        return cls

    return decorator


def get_source(name: str, config: dict[str, Any] | None = None) -> "SourceAdapter":
    """Factory function to get a source adapter instance.

    Args:
        name: The platform identifier to instantiate.
        config: Configuration dictionary for the adapter.

    Returns:
        Instantiated adapter.

    Raises:
        ConfigurationError: If no adapter is registered under name.
    """
    key = name.strip().lower()
    if key not in _sources:
        raise ConfigurationError(f"Unknown source: {name}", config_key="source")
    return _sources[key](config)


def list_sources() -> list[str]:
    """List all registered platform identifiers."""
    return sorted(_sources)
