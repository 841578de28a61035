"""
Memoization caching package.

Provides the composite key hasher, the generic memoization adapter and the
self-recursive Fibonacci instance built on it. Caches never evict; their
lifetime is that of the wrapper that owns them.
"""

from .key_hasher import CompositeKey, combine_hashes, EMPTY_KEY_HASH, HASH_MIX_CONSTANT
from .memo_cache import MemoCache, memoize, wrap, LOCK_MODES
from .recursive_memo import FibonacciMemo, fib, make_fib_memo

__all__ = [
    "CompositeKey",
    "combine_hashes",
    "EMPTY_KEY_HASH",
    "HASH_MIX_CONSTANT",
    "MemoCache",
    "memoize",
    "wrap",
    "LOCK_MODES",
    "FibonacciMemo",
    "fib",
    "make_fib_memo",
]
