"""
Shared utilities for the memoizer.

This package aggregates common building blocks consumed by the memoizer package:

- config: Runtime configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Do not import from the memoizer package into shared/.
"""
