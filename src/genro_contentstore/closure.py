# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Cycle-safe transitive closure over a relation.

The same walk serves type inheritance (declared supertypes) and group
membership (declared member-of / declared members).
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, Iterator, TypeVar

T = TypeVar('T', bound=Hashable)


def iter_closure(start: T, related: Callable[[T], Iterable[T]]) -> Iterator[T]:
    """Yield every identity reachable from ``start`` through ``related``.

    Depth-first pre-order, each identity exactly once, ``start`` excluded.
    Iterative with an explicit visited set, so cyclic relations terminate
    and deep chains do not hit the recursion limit.

    Args:
        start: The identity to walk from.
        related: Function returning the directly related identities.

    Example:
        >>> graph = {'a': ['b'], 'b': ['a', 'c'], 'c': []}
        >>> list(iter_closure('a', graph.__getitem__))
        ['b', 'c']
    """
    visited = {start}
    stack = list(reversed(list(related(start))))
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        yield current
        stack.extend(reversed(list(related(current))))


def closure(start: T, related: Callable[[T], Iterable[T]]) -> list[T]:
    """Return the closure as a list (see iter_closure)."""
    return list(iter_closure(start, related))
