"""Pydantic models for ScopeWatch core entities."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChangeType(str, Enum):
    """Direction of a recorded scope change."""
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


# =============================================================================
# Source Adapter Models
# =============================================================================


class PollOptions(BaseModel):
    """Filters passed through to source adapters unchanged."""

    model_config = ConfigDict(frozen=True)

    bounty_only: bool = Field(default=False, description="Only reward-eligible programs")
    private_only: bool = Field(default=False, description="Only private programs")
    categories: str = Field(default="all", description="Comma-separated categories or 'all'")


class ScopeElement(BaseModel):
    """One raw scope entry as a source adapter returns it."""

    target: str
    description: str = ""
    category: str = ""
    is_bbp: bool = False


class ProgramData(BaseModel):
    """One program's declared scope."""

    url: str = Field(..., min_length=1, description="Canonical program URL")
    in_scope: list[ScopeElement] = Field(default_factory=list)
    out_of_scope: list[ScopeElement] = Field(default_factory=list)


# =============================================================================
# Target Models
# =============================================================================


class TargetVariant(BaseModel):
    """A normalized alternative for a target.

    ``in_scope`` and ``category`` are overrides; None means "inherit from the
    parent item".
    """

    value: str
    in_scope: Optional[bool] = None
    category: Optional[str] = None

    @property
    def has_in_scope(self) -> bool:
        return self.in_scope is not None

    @property
    def has_category(self) -> bool:
        return self.category is not None


class TargetItem(BaseModel):
    """One scope entry in the uniform item model."""

    uri: str
    category: str = ""
    description: str = ""
    in_scope: bool = True
    is_bbp: bool = False
    variants: list[TargetVariant] = Field(default_factory=list)

    @classmethod
    def from_element(cls, element: ScopeElement, in_scope: bool) -> "TargetItem":
        return cls(
            uri=element.target,
            category=element.category,
            description=element.description,
            in_scope=in_scope,
            is_bbp=element.is_bbp,
        )


class ProgramInfo(BaseModel):
    """Program context handed to the normalizer for prompt construction."""

    model_config = ConfigDict(frozen=True)

    program_url: str
    platform: str
    handle: str


# =============================================================================
# Change Records
# =============================================================================


class Change(BaseModel):
    """A single change event produced by the change store.

    The poller only aggregates and forwards these.
    """

    model_config = ConfigDict(frozen=True)

    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    program_url: str
    platform: str
    handle: str
    target_normalized: str = ""
    target_raw: str = ""
    target_ai_normalized: str = ""
    category: str = ""
    in_scope: bool = True
    is_bbp: bool = False
    change_type: ChangeType
