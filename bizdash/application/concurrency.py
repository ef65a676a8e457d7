"""Fan-out/join helper used by every concurrent stage."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")


def run_all(tasks: Sequence[Callable[[], T]], max_workers: int | None = None) -> list[T]:
    """Run every task on a thread pool and wait for all of them.

    Results come back in submission order. When tasks fail, the exception of
    the earliest submitted failing task is raised once every sibling has
    finished; the others are discarded.
    """
    if not tasks:
        return []
    workers = max(1, min(max_workers or len(tasks), len(tasks)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(task) for task in tasks]
        wait(futures)
    for future in futures:
        error = future.exception()
        if error is not None:
            raise error
    return [future.result() for future in futures]
