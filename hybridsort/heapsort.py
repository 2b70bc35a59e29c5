from __future__ import annotations

import logging
import os
import threading
from collections.abc import MutableSequence
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable

logger = logging.getLogger(__name__)


PARALLEL_THRESHOLD = 20


def _largest(a: MutableSequence[int], lo: int, n: int, i: int) -> int:
    largest = i
    left = 2 * i + 1
    right = left + 1
    if left < n and a[lo + left] > a[lo + largest]:
        largest = left
    if right < n and a[lo + right] > a[lo + largest]:
        largest = right
    return largest


def _heapify(a: MutableSequence[int], lo: int, n: int, i: int) -> None:
    """Sift node `i` down the heap of size `n` stored at `a[lo:lo + n]`."""
    while True:
        largest = _largest(a, lo, n, i)
        if largest == i:
            return
        a[lo + i], a[lo + largest] = a[lo + largest], a[lo + i]
        i = largest


def heap_sort(a: MutableSequence[int], lo: int = 0, hi: int | None = None) -> None:
    """Sort the closed range `a[lo..hi]` in place with a classic heap sort."""
    if hi is None:
        hi = len(a) - 1
    n = hi - lo + 1
    if n <= 1:
        return

    for i in range(n // 2 - 1, -1, -1):
        _heapify(a, lo, n, i)

    for end in range(n - 1, 0, -1):
        a[lo], a[lo + end] = a[lo + end], a[lo]
        _heapify(a, lo, end, 0)


class JoinSet:
    """Counts tasks submitted to an executor until they have all finished.

    A task may spawn further tasks into the same set; the count is raised
    before the parent task lowers it, so `wait` never returns while a chain
    of tasks is still running. The first exception raised by a task is
    re-raised from `wait`.
    """

    def __init__(self, executor: Executor):
        self._executor = executor
        self._cond = threading.Condition()
        self._pending = 0
        self._errors: list[BaseException] = []

    @property
    def pending(self) -> int:
        with self._cond:
            return self._pending

    def spawn(self, fn: Callable[..., None], *args) -> None:
        with self._cond:
            self._pending += 1
        try:
            self._executor.submit(self._run, fn, args)
        except BaseException:
            with self._cond:
                self._pending -= 1
                if self._pending == 0:
                    self._cond.notify_all()
            raise

    def _run(self, fn: Callable[..., None], args: tuple) -> None:
        try:
            fn(*args)
        except Exception as exc:
            with self._cond:
                self._errors.append(exc)
        finally:
            with self._cond:
                self._pending -= 1
                if self._pending == 0:
                    self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            while self._pending:
                self._cond.wait()
            if self._errors:
                exc = self._errors[0]
                self._errors.clear()
                raise exc


def _heapify_task(
    a: MutableSequence[int],
    lo: int,
    n: int,
    i: int,
    joins: JoinSet,
) -> None:
    largest = _largest(a, lo, n, i)
    if largest == i:
        return
    a[lo + i], a[lo + largest] = a[lo + largest], a[lo + i]
    # leaves have nothing left to sift
    if largest < n // 2:
        joins.spawn(_heapify_task, a, lo, n, largest, joins)


def heap_sort_parallel(
    a: MutableSequence[int],
    lo: int = 0,
    hi: int | None = None,
    *,
    parallel_threshold: int = PARALLEL_THRESHOLD,
    max_workers: int | None = None,
) -> None:
    """Heap sort `a[lo..hi]` in place, fanning sift-downs out onto threads.

    The heap is built one level at a time, deepest level first. The nodes of
    a level root disjoint subtrees, so their sift-downs run concurrently and
    are joined before the level above starts. During extraction each root
    sift-down is joined before the next root is removed. Heaps of at most
    `parallel_threshold` elements are sifted synchronously.

    Raises ValueError if `max_workers` is given and is not positive.
    """
    if max_workers is not None and max_workers <= 0:
        raise ValueError("max_workers must be greater than 0")
    if hi is None:
        hi = len(a) - 1
    n = hi - lo + 1
    if n <= parallel_threshold:
        heap_sort(a, lo, hi)
        return

    if max_workers is None:
        max_workers = os.cpu_count() or 2

    logger.debug("parallel heap sort of %d elements at offset %d", n, lo)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        joins = JoinSet(pool)

        last = n // 2 - 1
        for level in range((last + 1).bit_length() - 1, -1, -1):
            first = (1 << level) - 1
            for i in range(min(last, 2 * first), first - 1, -1):
                joins.spawn(_heapify_task, a, lo, n, i, joins)
            joins.wait()

        for end in range(n - 1, 0, -1):
            a[lo], a[lo + end] = a[lo + end], a[lo]
            if end > parallel_threshold:
                joins.spawn(_heapify_task, a, lo, end, 0, joins)
                joins.wait()
            else:
                _heapify(a, lo, end, 0)
