"""Ordinal arithmetic for question catalog partitions.

Pure functions over ``{question_id: order}`` maps. They return only the
ordinals that change, so the caller writes exactly the rows a mutation
affects. Every plan is derived from the state passed in, which lets a
retried unit of work recompute it from a fresh read.
"""

from typing import Dict, Hashable, Iterable, TypeVar

Key = TypeVar("Key", bound=Hashable)


def plan_move(orders: Dict[Key, int], key: Key, target: int) -> Dict[Key, int]:
    """Ordinal changes that move ``key`` to ``target``.

    Moving forward shifts every ordinal in ``(current, target]`` down by one;
    moving backward shifts every ordinal in ``[target, current)`` up by one.
    The moved key lands at ``target``. Moving onto the current ordinal
    changes nothing.
    """
    current = orders[key]
    if target == current:
        return {}

    changes: Dict[Key, int] = {}
    for other, order in orders.items():
        if other == key:
            continue
        if current < target and current < order <= target:
            changes[other] = order - 1
        elif target < current and target <= order < current:
            changes[other] = order + 1

    changes[key] = target
    return changes


def plan_remove(orders: Dict[Key, int], key: Key) -> Dict[Key, int]:
    """Ordinal changes for the keys left behind when ``key`` is removed."""
    removed = orders[key]
    return {
        other: order - 1
        for other, order in orders.items()
        if other != key and order > removed
    }


def repack(keys: Iterable[Key], orders: Dict[Key, int]) -> Dict[Key, int]:
    """Ordinal changes that make ``keys`` (in their intended sequence) 0..N-1."""
    return {
        key: index
        for index, key in enumerate(keys)
        if orders.get(key) != index
    }


def is_contiguous(orders: Iterable[int]) -> bool:
    """Whether the ordinals are exactly 0..N-1."""
    values = sorted(orders)
    return values == list(range(len(values)))
