"""
End-to-end tests for memoizing a blocking operation.
"""

import threading
import time

import pytest

from memoizer import make_fib_memo, memoize
from memoizer.cli import main
from memoizer.slow import slow_operation


DELAY_SECONDS = 1


class TestSlowOperationFlow:
    """Memoized slow operation with a real delay."""

    def test_first_call_blocks_then_hits_are_immediate(self):
        """Test that only the first of seven calls pays the delay."""
        slow_memo = memoize(slow_operation)

        start = time.perf_counter()
        first = slow_memo(DELAY_SECONDS)
        assert time.perf_counter() - start >= DELAY_SECONDS

        for _ in range(6):
            start = time.perf_counter()
            assert slow_memo(DELAY_SECONDS) == first
            assert time.perf_counter() - start < 0.1

        stats = slow_memo.cache_info()
        assert stats["evaluations"] == 1
        assert stats["hits"] == 6

    def test_concurrent_first_access_pays_delay_once(self):
        """Test that threads racing on a cold key share one evaluation."""
        slow_memo = memoize(slow_operation, lock_mode="per_key")
        results = []

        def worker():
            results.append(slow_memo(DELAY_SECONDS))

        start = time.perf_counter()
        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        elapsed = time.perf_counter() - start

        assert results == [DELAY_SECONDS] * 4
        assert elapsed < DELAY_SECONDS * 2
        assert slow_memo.cache_info()["evaluations"] == 1


class TestCliFlow:
    """CLI runs over real collaborators."""

    @pytest.fixture(autouse=True)
    def fast_repeat(self, monkeypatch):
        monkeypatch.delenv("MEMOIZER_LOCK_MODE", raising=False)
        monkeypatch.setenv("MEMOIZER_REPEAT_CALLS", "6")

    def test_memo_command_blocks_once(self, capsys):
        start = time.perf_counter()
        assert main(["memo", str(DELAY_SECONDS)]) == 0
        elapsed = time.perf_counter() - start

        assert capsys.readouterr().out == f"{DELAY_SECONDS}\n"
        assert DELAY_SECONDS <= elapsed < DELAY_SECONDS * 2

    def test_fib_command_matches_library(self, capsys):
        assert main(["fib", "25"]) == 0
        assert capsys.readouterr().out == f"{make_fib_memo()(25)}\n"
