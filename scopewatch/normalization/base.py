"""Normalizer interface, configuration and provider factory."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from scopewatch.core.exceptions import ConfigurationError
from scopewatch.models import ProgramInfo, TargetItem

if TYPE_CHECKING:
    import httpx

    from scopewatch.config.settings import Settings


class Normalizer(ABC):
    """Transforms raw scope targets into cleaned variants via an LLM."""

    @abstractmethod
    def normalize_targets(
        self,
        info: ProgramInfo,
        items: list[TargetItem],
        cancel: Optional[threading.Event] = None,
    ) -> list[TargetItem]:
        """Return one item per input item, in input order.

        Each output item may carry new variants. The call is atomic: on
        failure it raises and returns nothing.

        Args:
            info: Program context used only for prompt construction.
            items: Items to normalize; an empty list is a no-op.
            cancel: Set to abort before the next external call.
        """
        ...


@dataclass
class NormalizerConfig:
    """Controls how the AI normalizer behaves.

    Zero or empty values fall back to the provider defaults.
    """

    provider: str = "openai"
    api_key: str = ""
    model: str = ""
    endpoint: str = ""
    max_batch: int = 0
    max_concurrency: int = 0
    proxy: Optional[str] = None
    timeout: float = 45.0
    http_client: Optional["httpx.Client"] = None
    log: Any = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "NormalizerConfig":
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else ""
        return cls(
            provider=settings.ai_provider,
            api_key=api_key,
            model=settings.ai_model,
            endpoint=settings.ai_endpoint,
            max_batch=settings.ai_max_batch,
            max_concurrency=settings.ai_max_concurrency,
            proxy=settings.ai_proxy,
            timeout=settings.ai_timeout_seconds,
        )


_providers: dict[str, Callable[[NormalizerConfig], Normalizer]] = {}


def register_provider(name: str):
    """Decorator to register a Normalizer implementation for a provider."""

    def decorator(cls):
        _providers[name] = cls
        return cls

    return decorator


def new_normalizer(config: NormalizerConfig) -> Normalizer:
    """Build a concrete Normalizer for the configured provider.

    Raises:
        ConfigurationError: If the provider is unknown or misconfigured.
    """
    provider = (config.provider or "").strip().lower() or "openai"
    factory = _providers.get(provider)
    if factory is None:
        raise ConfigurationError(f"unsupported AI provider: {provider}", config_key="ai_provider")
    return factory(config)
