"""Exclusive prefix scans by pairwise contraction."""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

T = TypeVar("T")


def parallel_scan_contract(
    f: Callable[[T, T], T], identity: T, values: Sequence[T]
) -> tuple[list[T], T]:
    """Exclusive scan of `values` under `f`, and the total.

    The length must be zero, one or a power of two.
    """
    values = list(values)
    n = len(values)
    if n == 0:
        return [], identity
    if n == 1:
        return [identity], values[0]
    if n % 2:
        raise ValueError(f"contraction needs an even number of values, got {n}")

    evens = values[0::2]
    contracted = [f(left, right) for left, right in zip(evens, values[1::2])]
    partial, total = parallel_scan_contract(f, identity, contracted)

    result: list[T] = []
    for prefix, left in zip(partial, evens):
        result.append(prefix)
        result.append(f(prefix, left))
    return result, total


def parallel_scan(
    f: Callable[[T, T], T], identity: T, values: Sequence[T]
) -> tuple[list[T], T]:
    """Exclusive scan of any length, padding with `identity` to a power of two."""
    values = list(values)
    n = len(values)
    if n == 0:
        return [], identity
    size = 1 << (n - 1).bit_length()
    if size != n:
        padded = values + [identity] * (size - n)
        result, total = parallel_scan_contract(f, identity, padded)
        return result[:n], total
    return parallel_scan_contract(f, identity, values)


def parallel_scan_add(identity: int, values: Sequence[int]) -> tuple[list[int], int]:
    """Given a, return b with b[i] = identity + sum(a[:i]), and the total."""
    return parallel_scan(lambda x, y: x + y, identity, values)