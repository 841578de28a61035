"""
Composite cache keys for memoized calls.

A key is the ordered argument sequence of one invocation. Its hash folds the
element hashes left to right with the golden-ratio mixing step, so permuting
the arguments changes the hash. Equality is always decided element-wise;
colliding hashes never make two keys equal.
"""

from typing import Any, Iterable, Tuple

from shared.errors import KeyHashError


HASH_MIX_CONSTANT = 0x9E3779B9
HASH_MASK = (1 << 64) - 1
EMPTY_KEY_HASH = 0


def element_hash(value: Any, position: int = 0) -> int:
    """Hash one key element, reduced to an unsigned 64-bit value."""
    try:
        return hash(value) & HASH_MASK
    except TypeError as exc:
        raise KeyHashError(position, value) from exc


def combine_hashes(values: Iterable[Any]) -> int:
    """Combine the hashes of an ordered sequence of values into one hash."""
    iterator = iter(values)
    try:
        first = next(iterator)
    except StopIteration:
        return EMPTY_KEY_HASH

    h = element_hash(first, 0)
    for position, value in enumerate(iterator, start=1):
        e = element_hash(value, position)
        h ^= (e + HASH_MIX_CONSTANT + (h << 6) + (h >> 2)) & HASH_MASK
    return h


class CompositeKey:
    """Hashable, immutable key over an ordered tuple of argument values."""

    __slots__ = ("values", "_hash")

    def __init__(self, values: Iterable[Any]):
        self.values: Tuple[Any, ...] = tuple(values)
        self._hash = combine_hashes(self.values)

    @classmethod
    def from_call(cls, args: Tuple[Any, ...], kwargs: dict) -> "CompositeKey":
        """Build a key for a call; keyword arguments follow a marker in name order."""
        if not kwargs:
            return cls(args)
        return cls(args + (_KWARGS_MARK,) + tuple(sorted(kwargs.items())))

    @property
    def arity(self) -> int:
        return len(self.values)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompositeKey):
            return NotImplemented
        return self._hash == other._hash and self.values == other.values

    def __repr__(self) -> str:
        return f"CompositeKey{self.values!r}"


class _KwargsMark:
    """Separates positional from keyword arguments inside a key."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<kwargs>"


_KWARGS_MARK = _KwargsMark()
