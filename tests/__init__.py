"""
ScopeWatch Test Suite.

- unit/: Poll cycle, normalizer, scope helpers, scheduler and support modules
- conftest.py: Shared fakes (source, store, normalizer) and fixtures

Run tests with: pytest
"""
