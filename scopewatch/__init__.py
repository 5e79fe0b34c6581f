"""
ScopeWatch - bug bounty scope polling with AI target normalization.

This package contains the core modules for the ScopeWatch system:
- polling: Platform poll cycle orchestrator and status registry
- normalization: Batched LLM normalization of messy scope targets
- scheduler: Periodic poll cycles across several platforms
- sources: Source adapter interface and registry
- store: Change store interface
- scope: Unified categories and target canonicalization
- config: Pydantic settings and structlog configuration
- models: Data models for scope entries, targets and changes
"""

__version__ = "0.1.0"
