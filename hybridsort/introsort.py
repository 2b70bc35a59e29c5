from __future__ import annotations

import logging
from collections.abc import MutableSequence, Sequence

from hybridsort.heapsort import PARALLEL_THRESHOLD, heap_sort, heap_sort_parallel

logger = logging.getLogger(__name__)


INSERTION_THRESHOLD = 10


def _log2_floor(n: int) -> int:
    if n <= 0:
        raise ValueError("n must be > 0")
    return n.bit_length() - 1


def depth_budget(n: int) -> int:
    """Number of partitioning levels allowed before falling back to heap sort."""
    if n <= 1:
        return 0
    return 2 * _log2_floor(n)


def _insertion_sort(a: MutableSequence[int], lo: int, hi: int) -> None:
    """lo and hi are inclusive"""
    for i in range(lo + 1, hi + 1):
        v = a[i]
        j = i - 1
        while j >= lo and a[j] > v:
            a[j + 1] = a[j]
            j -= 1
        a[j + 1] = v


def _median_of_three(a: MutableSequence[int], lo: int, hi: int) -> int:
    # orders a[lo] <= a[hi] <= a[mid], leaving the median at hi
    mid = lo + (hi - lo) // 2
    if a[mid] < a[lo]:
        a[mid], a[lo] = a[lo], a[mid]
    if a[hi] < a[lo]:
        a[hi], a[lo] = a[lo], a[hi]
    if a[mid] < a[hi]:
        a[mid], a[hi] = a[hi], a[mid]
    return hi


def _partition(a: MutableSequence[int], lo: int, hi: int) -> int:
    """Lomuto partition of a[lo..hi] around a median-of-three pivot.

    Returns the pivot's final index p: a[lo..p-1] < a[p] <= a[p+1..hi].
    """
    pivot = a[_median_of_three(a, lo, hi)]
    i = lo - 1
    for j in range(lo, hi):
        if a[j] < pivot:
            i += 1
            a[i], a[j] = a[j], a[i]
    a[i + 1], a[hi] = a[hi], a[i + 1]
    return i + 1


def _introsort_recursive(
    a: MutableSequence[int],
    lo: int,
    hi: int,
    depth: int,
    *,
    insertion_threshold: int,
    parallel_threshold: int,
    max_workers: int | None,
    parallel: bool,
) -> None:
    if lo >= hi:
        return

    if hi - lo <= insertion_threshold:
        _insertion_sort(a, lo, hi)
        return

    if depth == 0:
        logger.debug("depth budget exhausted on [%d, %d], heap sorting", lo, hi)
        if parallel:
            heap_sort_parallel(
                a,
                lo,
                hi,
                parallel_threshold=parallel_threshold,
                max_workers=max_workers,
            )
        else:
            heap_sort(a, lo, hi)
        return

    p = _partition(a, lo, hi)
    options = dict(
        insertion_threshold=insertion_threshold,
        parallel_threshold=parallel_threshold,
        max_workers=max_workers,
        parallel=parallel,
    )
    _introsort_recursive(a, lo, p - 1, depth - 1, **options)
    _introsort_recursive(a, p + 1, hi, depth - 1, **options)


def sort(
    a: MutableSequence[int],
    *,
    insertion_threshold: int = INSERTION_THRESHOLD,
    parallel_threshold: int = PARALLEL_THRESHOLD,
    max_workers: int | None = None,
    parallel: bool = True,
) -> None:
    """Sort a sequence of integers in place, in non-descending order.

    Quicksort with median-of-three pivots, insertion sort on ranges spanning
    at most `insertion_threshold` + 1 elements, and heap sort once the
    partitioning depth reaches 2 * floor(log2(n)). With `parallel` the heap
    sort fallback fans sift-downs out onto up to `max_workers` threads for
    heaps larger than `parallel_threshold`. Equal elements may be reordered.
    Raises ValueError if `max_workers` is given and is not positive, whether
    or not the fallback is reached.
    """
    if max_workers is not None and max_workers <= 0:
        raise ValueError("max_workers must be greater than 0")
    n = len(a)
    if n <= 1:
        return

    _introsort_recursive(
        a,
        0,
        n - 1,
        depth_budget(n),
        insertion_threshold=insertion_threshold,
        parallel_threshold=parallel_threshold,
        max_workers=max_workers,
        parallel=parallel,
    )


def is_sorted(a: Sequence[int]) -> bool:
    for i in range(1, len(a)):
        if a[i - 1] > a[i]:
            return False
    return True
