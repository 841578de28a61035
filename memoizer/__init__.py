"""
memoizer: at-most-once evaluation caches for deterministic callables.
"""

from .caching import CompositeKey, FibonacciMemo, MemoCache, combine_hashes, fib, make_fib_memo, memoize, wrap

__version__ = "1.0.0"

__all__ = [
    "CompositeKey",
    "FibonacciMemo",
    "MemoCache",
    "combine_hashes",
    "fib",
    "make_fib_memo",
    "memoize",
    "wrap",
]
