"""
AI Target Normalization.

Cleans messy scope entries (wildcards, alternations, prose) into concrete
variants by batching them through an LLM:

    from scopewatch.normalization import NormalizerConfig, new_normalizer

    normalizer = new_normalizer(NormalizerConfig(api_key="sk-..."))
    items = normalizer.normalize_targets(info, items)
"""

from scopewatch.normalization.base import (
    Normalizer,
    NormalizerConfig,
    new_normalizer,
    register_provider,
)
from scopewatch.normalization.merge import (
    NormalizedResult,
    chunk_items,
    merge_normalized,
    sanitize_targets,
)
from scopewatch.normalization.openai_normalizer import OpenAINormalizer
from scopewatch.normalization.prompts import SYSTEM_PROMPT

__all__ = [
    "Normalizer",
    "NormalizerConfig",
    "new_normalizer",
    "register_provider",
    "NormalizedResult",
    "chunk_items",
    "merge_normalized",
    "sanitize_targets",
    "OpenAINormalizer",
    "SYSTEM_PROMPT",
]
