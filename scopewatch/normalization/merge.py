"""Merging LLM normalization results back into target items."""

from dataclasses import dataclass, field
from typing import Optional

from scopewatch.models import TargetItem, TargetVariant
from scopewatch.scope import normalize_target


@dataclass
class NormalizedResult:
    """Normalization outcome for one input item."""

    targets: list[str] = field(default_factory=list)
    in_scope: Optional[bool] = None
    category: Optional[str] = None
    notes: str = ""

    @property
    def has_override(self) -> bool:
        return self.in_scope is not None or self.category is not None


def sanitize_targets(targets: list[str]) -> list[str]:
    """Trim, lower-case, drop empties and de-duplicate, keeping first-seen order."""
    out: list[str] = []
    seen: set[str] = set()
    for target in targets:
        cleaned = target.strip().lower()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        out.append(cleaned)
    return out


def chunk_items(items: list[TargetItem], size: int) -> list[tuple[int, list[TargetItem]]]:
    """Split items into (base_id, chunk) pairs in input order."""
    if size <= 0:
        size = len(items) or 1
    return [(start, items[start : start + size]) for start in range(0, len(items), size)]


def merge_normalized(
    items: list[TargetItem],
    base_id: int,
    normalized: dict[int, NormalizedResult],
) -> list[TargetItem]:
    """Attach variants from normalized results to a chunk of items.

    Item i of the chunk is looked up under base_id + i. Items without a
    result are returned unchanged with no variants.
    """
    out: list[TargetItem] = []
    for idx, original in enumerate(items):
        result = normalized.get(base_id + idx)
        if result is None:
            out.append(original.model_copy(update={"variants": []}))
            continue

        update: dict = {"variants": []}
        if result.in_scope is not None:
            update["in_scope"] = result.in_scope

        base_value = normalize_target(original.uri).strip().lower()
        variants = []
        for target in sanitize_targets(result.targets):
            # Same value as the raw target with nothing else to say.
            if base_value and target == base_value and not result.has_override:
                continue
            variants.append(
                TargetVariant(value=target, in_scope=result.in_scope, category=result.category)
            )
        update["variants"] = variants
        out.append(original.model_copy(update=update))
    return out
