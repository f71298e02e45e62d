from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence, TypeVar


T = TypeVar("T")
R = TypeVar("R")


def map_bounded(
    func: Callable[[T], R],
    items: Sequence[T],
    max_workers: int = 1,
) -> list[R]:
    """Apply ``func`` to every item, keeping input order in the result.

    One worker (or a single item) runs serially in the calling thread; more
    workers share a thread pool capped at ``max_workers`` so third-party
    APIs only ever see that many requests in flight.
    """
    workers = max(1, min(int(max_workers), len(items) or 1))
    if workers == 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(func, items))
