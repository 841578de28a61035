"""
Memoization cache adapter.

``memoize(f)`` returns a callable with the same calling contract as ``f`` that
consults a private table keyed by the exact argument sequence. On a miss the
underlying callable runs once, its result is stored and returned; on failure
nothing is stored and the exception propagates unchanged, so a retry
re-invokes the callable.

The wrapped callable must be deterministic and free of side effects. If it is
not, cached results can diverge from what a fresh call would return; that is
the caller's responsibility.

The table only grows: there is no eviction and no expiry.
"""

import asyncio
import inspect
import functools
import threading
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional, Tuple, TYPE_CHECKING

from opentelemetry import trace

from shared.errors import ValidationError
from shared.logging import get_logger
from .key_hasher import CompositeKey

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


LOCK_MODES = ("per_key", "global")

_tracer = trace.get_tracer("memoizer.caching")

# Set on an exception once its failure has been reported at warning level.
_FAILURE_LOGGED = "_memoizer_failure_logged"


class _KeyLock:
    """Per-key lock plus the number of callers currently holding or awaiting it."""

    __slots__ = ("lock", "users")

    def __init__(self, lock):
        self.lock = lock
        self.users = 0


class MemoCache:
    """Unbounded key -> result table with at-most-once evaluation per key.

    ``lock_mode`` selects the concurrency discipline:

    - ``"global"``: one re-entrant lock serializes lookup, evaluation and
      insertion. A slow miss blocks every other key.
    - ``"per_key"``: lookups for distinct keys proceed concurrently; concurrent
      misses on the same key wait on a per-key lock, and only the first caller
      evaluates.

    Coroutine evaluations always coalesce per key with ``asyncio.Lock``.
    A per-key lock is dropped as soon as no caller holds or awaits it.
    """

    def __init__(
        self,
        name: str = "memo",
        *,
        lock_mode: str = "per_key",
        metrics: Optional["MetricsCollector"] = None,
    ):
        if lock_mode not in LOCK_MODES:
            raise ValidationError(
                f"unknown lock mode {lock_mode!r}",
                {"lock_mode": lock_mode, "allowed": list(LOCK_MODES)},
            )
        self.name = name
        self.lock_mode = lock_mode
        self.metrics = metrics
        self.logger = get_logger("memoizer.cache")

        self._table: Dict[Hashable, Any] = {}
        self._table_lock = threading.Lock()
        self._global_lock = threading.RLock()
        self._key_locks: Dict[Hashable, _KeyLock] = {}
        self._async_key_locks: Dict[Hashable, _KeyLock] = {}

        self._hits = 0
        self._misses = 0
        self._evaluations = 0
        self._failures = 0

    def __len__(self) -> int:
        with self._table_lock:
            return len(self._table)

    def __contains__(self, key: Hashable) -> bool:
        with self._table_lock:
            return key in self._table

    def keys(self) -> List[Hashable]:
        """Snapshot of the cached keys."""
        with self._table_lock:
            return list(self._table)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """Return the value stored under ``key``, evaluating ``compute`` on a miss."""
        if self.lock_mode == "global":
            with self._global_lock:
                found, value = self._probe(key)
                if found:
                    self._record_hit()
                    return value
                self._record_miss(key)
                return self._evaluate(key, compute)

        found, value = self._probe(key)
        if found:
            self._record_hit()
            return value

        key_lock = self._acquire_key_lock(self._key_locks, key, threading.RLock)
        try:
            with key_lock.lock:
                # Another thread may have stored the value while we waited.
                found, value = self._probe(key)
                if found:
                    self._record_hit()
                    return value
                self._record_miss(key)
                return self._evaluate(key, compute)
        finally:
            self._release_key_lock(self._key_locks, key, key_lock)

    async def get_or_compute_async(self, key: Hashable, compute: Callable[[], Awaitable[Any]]) -> Any:
        """Coroutine counterpart of :meth:`get_or_compute`."""
        found, value = self._probe(key)
        if found:
            self._record_hit()
            return value

        key_lock = self._acquire_key_lock(self._async_key_locks, key, asyncio.Lock)
        try:
            async with key_lock.lock:
                found, value = self._probe(key)
                if found:
                    self._record_hit()
                    return value
                self._record_miss(key)

                with self._timed(), _tracer.start_as_current_span("memo.evaluate", attributes={"memo.cache": self.name}):
                    try:
                        value = await compute()
                    except Exception as exc:
                        self._record_failure(key, exc)
                        raise
                self._store(key, value)
                return value
        finally:
            self._release_key_lock(self._async_key_locks, key, key_lock)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._table_lock:
            return {
                "name": self.name,
                "lock_mode": self.lock_mode,
                "entries": len(self._table),
                "hits": self._hits,
                "misses": self._misses,
                "evaluations": self._evaluations,
                "failures": self._failures,
            }

    def _probe(self, key: Hashable) -> Tuple[bool, Any]:
        with self._table_lock:
            if key in self._table:
                return True, self._table[key]
        return False, None

    def _acquire_key_lock(self, locks: Dict[Hashable, _KeyLock], key: Hashable, factory) -> _KeyLock:
        with self._table_lock:
            key_lock = locks.get(key)
            if key_lock is None:
                key_lock = locks[key] = _KeyLock(factory())
            key_lock.users += 1
            return key_lock

    def _release_key_lock(self, locks: Dict[Hashable, _KeyLock], key: Hashable, key_lock: _KeyLock) -> None:
        with self._table_lock:
            key_lock.users -= 1
            if key_lock.users == 0 and locks.get(key) is key_lock:
                del locks[key]

    def _timed(self):
        """Time one evaluation into the duration histogram when metrics are enabled."""
        if not self.metrics:
            return nullcontext()
        return self.metrics.time_operation("memo_evaluation_duration_seconds", cache=self.name)

    def _evaluate(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        with self._timed(), _tracer.start_as_current_span("memo.evaluate", attributes={"memo.cache": self.name}):
            try:
                value = compute()
            except Exception as exc:
                self._record_failure(key, exc)
                raise
        self._store(key, value)
        return value

    def _store(self, key: Hashable, value: Any) -> None:
        with self._table_lock:
            self._table[key] = value
            self._evaluations += 1
            entries = len(self._table)

        self.logger.debug("Cached value", cache=self.name, key=repr(key))
        self._record_metrics("success", entries)

    def _record_hit(self) -> None:
        with self._table_lock:
            self._hits += 1
        self._increment("memo_cache_hits_total", cache=self.name)

    def _record_miss(self, key: Hashable) -> None:
        with self._table_lock:
            self._misses += 1
        self.logger.debug("Cache miss", cache=self.name, key=repr(key))
        self._increment("memo_cache_misses_total", cache=self.name)

    def _record_failure(self, key: Hashable, exc: Exception) -> None:
        with self._table_lock:
            self._failures += 1

        # Nested memoized calls re-raise the same exception; warn only where it first surfaced.
        if getattr(exc, _FAILURE_LOGGED, False):
            self.logger.debug(
                "Memoized call failed in a nested evaluation; nothing cached",
                cache=self.name,
                key=repr(key),
                error_type=type(exc).__name__,
            )
        else:
            setattr(exc, _FAILURE_LOGGED, True)
            self.logger.warning(
                "Memoized call failed; nothing cached",
                cache=self.name,
                key=repr(key),
                error=str(exc),
                error_type=type(exc).__name__,
            )
        self._record_metrics("failure", None)

    def _increment(self, metric_name: str, **labels) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter(metric_name, **labels)
        except Exception as exc:  # pragma: no cover - metrics failures should never break a cache call
            self.logger.debug("Failed to record cache metric", metric=metric_name, error=str(exc))

    def _record_metrics(self, outcome: str, entries: Optional[int]) -> None:
        """Record metrics for one evaluation."""
        if not self.metrics:
            return

        try:
            self.metrics.increment_counter("memo_evaluations_total", cache=self.name, outcome=outcome)
            if entries is not None:
                self.metrics.set_gauge("memo_cache_entries", entries, cache=self.name)
        except Exception as exc:  # pragma: no cover - metrics failures should never break a cache call
            self.logger.debug("Failed to record evaluation metrics", error=str(exc))


def memoize(
    func: Optional[Callable] = None,
    *,
    cache: Optional[MemoCache] = None,
    lock_mode: Optional[str] = None,
    metrics: Optional["MetricsCollector"] = None,
    name: Optional[str] = None,
):
    """Wrap ``func`` so that each distinct argument sequence is evaluated at most once.

    Works bare (``@memoize``), with options (``@memoize(lock_mode="global")``)
    or as a plain call (``memoize(f)``). Coroutine functions get an async
    wrapper. The wrapper exposes ``cache`` and ``cache_info()``.
    """
    def decorator(fn: Callable) -> Callable:
        if cache is not None:
            memo_cache = cache
        else:
            memo_cache = MemoCache(
                name or getattr(fn, "__qualname__", repr(fn)),
                lock_mode=lock_mode or "per_key",
                metrics=metrics,
            )

        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def async_wrapper(*args, **kwargs):
                key = CompositeKey.from_call(args, kwargs)
                return await memo_cache.get_or_compute_async(key, lambda: fn(*args, **kwargs))

            wrapper = async_wrapper
        else:
            @functools.wraps(fn)
            def sync_wrapper(*args, **kwargs):
                key = CompositeKey.from_call(args, kwargs)
                return memo_cache.get_or_compute(key, lambda: fn(*args, **kwargs))

            wrapper = sync_wrapper

        wrapper.cache = memo_cache
        wrapper.cache_info = memo_cache.stats
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


wrap = memoize
