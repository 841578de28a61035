"""
Unit tests for the memoized recursive Fibonacci.
"""

import pytest

from memoizer.caching.memo_cache import MemoCache
from memoizer.caching.recursive_memo import FibonacciMemo, fib, make_fib_memo
from shared.errors import DomainError


def closed_definition(n):
    values = [1, 1]
    while len(values) <= n:
        values.append(values[-1] + values[-2])
    return values[n]


class TestFibonacciMemo:
    """Test cases for FibonacciMemo."""

    @pytest.fixture
    def fib_memo(self):
        """Create a FibonacciMemo with a fresh table."""
        return make_fib_memo()

    def test_matches_definition_up_to_30(self, fib_memo):
        """Test every index in [0, 30] against the recursive definition."""
        for n in range(31):
            assert fib_memo(n) == closed_definition(n)

    def test_call_order_does_not_matter(self, fib_memo):
        """Test that a larger index computed first leaves smaller ones correct."""
        assert fib_memo(10) == 89
        assert fib_memo(5) == 8
        assert fib_memo(5) == make_fib_memo()(5)

    def test_table_filled_bottom_up(self, fib_memo):
        """Test that all smaller indices are cached once the top call returns."""
        fib_memo(10)
        assert fib_memo.cached_indices() == list(range(11))

    def test_each_index_evaluated_once(self, fib_memo):
        """Test evaluation and hit counts for one top-level call."""
        fib_memo(10)
        stats = fib_memo.cache.stats()

        assert stats["evaluations"] == 11
        assert stats["misses"] == 11
        assert stats["hits"] == 8

        fib_memo(10)
        assert fib_memo.cache.stats()["evaluations"] == 11

    def test_large_index_matches_definition(self, fib_memo):
        """Test an index far deeper than one recursive descent can reach."""
        assert fib_memo(1000) == closed_definition(1000)
        assert fib_memo.cached_indices() == list(range(1001))

    def test_large_index_after_partial_warmup(self, fib_memo):
        """Test that a deep call on top of an already filled prefix stays correct."""
        fib_memo(150)
        assert fib_memo(700) == closed_definition(700)
        assert fib_memo(151) == closed_definition(151)

    def test_large_float_index(self, fib_memo):
        """Test the warmup on the float lattice used by decoded arguments."""
        assert fib_memo(400.0) == pytest.approx(float(closed_definition(400)), rel=1e-12)

    def test_agrees_with_plain_recursion(self, fib_memo):
        """Test agreement with the unmemoized reference, including fractional indices."""
        for n in (0, 1, 2, 7, 15, 2.5, -3, 0.5):
            assert fib_memo(n) == fib(n)

    def test_base_cases(self, fib_memo):
        """Test that indices at or below one yield one."""
        assert fib_memo(0) == 1
        assert fib_memo(1) == 1
        assert fib_memo(-4) == 1

    def test_instances_do_not_share_tables(self):
        """Test that each instance owns its cache."""
        first = make_fib_memo()
        second = make_fib_memo()
        first(12)

        assert len(first.cache) == 13
        assert len(second.cache) == 0

    def test_explicit_cache(self):
        """Test that a caller-provided cache is used as the table."""
        cache = MemoCache("fib_global", lock_mode="global")
        fib_memo = FibonacciMemo(cache)

        assert fib_memo(20) == 10946
        assert 20 in cache

    @pytest.mark.parametrize("bad_index", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_index_rejected(self, fib_memo, bad_index):
        """Test that indices that never reach the base case are rejected."""
        with pytest.raises(DomainError):
            fib_memo(bad_index)
        assert len(fib_memo.cache) == 0

    @pytest.mark.parametrize("bad_index", ["5", True, None])
    def test_non_numeric_index_rejected(self, fib_memo, bad_index):
        """Test that non-numeric indices are rejected."""
        with pytest.raises(DomainError):
            fib_memo(bad_index)
