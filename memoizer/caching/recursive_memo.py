"""
Self-recursive Fibonacci with a shared memo table.

``FibonacciMemo`` owns one ``MemoCache`` keyed by the single index argument.
A miss on ``n`` queries ``n - 1`` and then ``n - 2`` through the same object
before storing ``n``, so every smaller index is cached by the time the
top-level call returns. Indices far above the cached range are first warmed
upward in fixed chunks so the descent never outgrows the interpreter stack.
"""

import math
from numbers import Real
from typing import Optional, Union

from shared.errors import DomainError
from .memo_cache import MemoCache


Number = Union[int, float]

# Largest distance a single recursive descent may cover before the table is warmed.
WARM_CHUNK = 64


def fib(n: Number) -> Number:
    """Plain recursive definition: fib(n) = 1 for n <= 1, else fib(n-1) + fib(n-2)."""
    return 1 if n <= 1 else fib(n - 1) + fib(n - 2)


class FibonacciMemo:
    """Callable memoized Fibonacci holding its own cache."""

    def __init__(self, cache: Optional[MemoCache] = None):
        self.cache = cache if cache is not None else MemoCache("fib_memo")

    def __call__(self, n: Number) -> Number:
        _check_index(n)
        if n - WARM_CHUNK > 1 and n not in self.cache and (n - WARM_CHUNK) not in self.cache:
            self._warm(n)
        return self.cache.get_or_compute(n, lambda: self._compute(n))

    def _warm(self, n: Number) -> None:
        """Fill the table below ``n`` in ascending steps of WARM_CHUNK indices.

        Each step is an ordinary recursive call whose descent stops at the
        previous step, so recursion depth stays bounded by the chunk size.
        """
        steps = int((n - 1) // WARM_CHUNK)
        for step in range(steps, 0, -1):
            self(n - step * WARM_CHUNK)

    def _compute(self, n: Number) -> Number:
        if n <= 1:
            return 1
        return self(n - 1) + self(n - 2)

    def cached_indices(self):
        """Indices currently held by the table, ascending."""
        return sorted(self.cache.keys())


def make_fib_memo(cache: Optional[MemoCache] = None) -> FibonacciMemo:
    """Build a memoized Fibonacci with a fresh (or the given) table."""
    return FibonacciMemo(cache)


def _check_index(n) -> None:
    # bool is an int subclass but never a meaningful index
    if isinstance(n, bool) or not isinstance(n, Real):
        raise DomainError(
            f"fibonacci index must be a real number, got {type(n).__name__}",
            {"value": repr(n)},
        )
    if not math.isfinite(n):
        raise DomainError(
            "fibonacci index must be finite",
            {"value": repr(n)},
        )
