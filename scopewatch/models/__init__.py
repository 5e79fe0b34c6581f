"""
Data Models and Schemas.

Pydantic models shared by source adapters, the normalizer, the change
store and the poller:

- ScopeElement / ProgramData: what a source adapter returns
- TargetItem / TargetVariant: the uniform item model
- ProgramInfo: prompt context for the normalizer
- Change: opaque change records owned by the change store
"""

from scopewatch.models.schemas import (
    Change,
    ChangeType,
    PollOptions,
    ProgramData,
    ProgramInfo,
    ScopeElement,
    TargetItem,
    TargetVariant,
)

__all__ = [
    "Change",
    "ChangeType",
    "PollOptions",
    "ProgramData",
    "ProgramInfo",
    "ScopeElement",
    "TargetItem",
    "TargetVariant",
]
