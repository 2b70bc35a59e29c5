from __future__ import annotations

import logging
import os
import random
import time
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from random import randint as rd
from typing import Callable

import matplotlib.pyplot as plt

from hybridsort.heapsort import heap_sort_parallel
from hybridsort.introsort import sort

logger = logging.getLogger(__name__)


def default_sort(arr):
    arr.sort()


ALGORITHMS: dict[str, Callable[[list[int]], None]] = {
    "introsort": sort,
    "introsort (sequential heap)": partial(sort, parallel=False),
    "parallel heap sort": heap_sort_parallel,
    ".sort()": default_sort,
}


def random_values(n, low=-10_000_000, high=10_000_000):
    return [rd(low, high) for _ in range(n)]


def trend_with_jumps(n, jump_prob=0.05):
    arr = []
    value = 1
    for _ in range(n):
        if random.random() < jump_prob:
            value += rd(-10, 10)
        else:
            value += rd(0, 1)

        if value < 1:
            value = 1

        arr.append(value)

    return arr


def ascending(n):
    return list(range(n))


def descending(n):
    return list(range(n, 0, -1))


def alternating_high_low(n):
    high = list(range(n, 0, -1))
    low = list(range(1, n + 1))
    arr = []
    for h, l in zip(high, low):
        arr.append(h)
        arr.append(l)
    return arr[:n]


def few_distinct(n, distinct_values=3, max_value=20):
    base_values = random.sample(range(1, max_value + 1), k=distinct_values)
    return [random.choice(base_values) for _ in range(n)]


def all_equal(n):
    return [7] * n


GENERATORS: dict[str, Callable[[int], list[int]]] = {
    "random": random_values,
    "trend with jumps": trend_with_jumps,
    "ascending": ascending,
    "descending": descending,
    "alternating": alternating_high_low,
    "few distinct": few_distinct,
    "all equal": all_equal,
}


def measure(sort_fn, base_arr, reps=3):
    """Best wall time of `reps` runs of `sort_fn` on fresh copies of `base_arr`."""
    best = float("inf")
    if len(base_arr) <= 1:
        return 0.0
    for _ in range(reps):
        arr = base_arr.copy()
        start = time.perf_counter()
        sort_fn(arr)
        end = time.perf_counter()
        best = min(best, end - start)
    return best


def bench_one_n(args):
    n, base_arr, reps = args
    return n, {name: measure(fn, base_arr, reps=reps) for name, fn in ALGORITHMS.items()}


def run_bench(tasks, workers=None):
    """Time every algorithm on each `(n, base_arr, reps)` task.

    Returns `{algorithm name: [seconds per task]}` in task order.
    """
    times = {name: [] for name in ALGORITHMS}

    with ProcessPoolExecutor(max_workers=workers) as executor:
        for n, result in executor.map(bench_one_n, tasks):
            logger.debug("n=%d done", n)
            for name, t in result.items():
                times[name].append(t)

    return times


def plot_results(sizes, series, title, path=None):
    """
    sizes - list of array sizes
    series - list of tuples (label, values), where values is a list of times corresponding to sizes
    title  - title of the plot
    path   - file to save the figure to; the figure is shown when None
    """
    fig = plt.figure(figsize=(10, 6))
    for label, values in series:
        plt.plot(sizes, values, label=label)

    plt.title(title)
    plt.xlabel("Array size")
    plt.ylabel("Time, sec")
    plt.grid(True)
    plt.legend()
    plt.tight_layout()
    if path is None:
        plt.show()
    else:
        fig.savefig(path)
    plt.close(fig)


def benchmark(sizes, reps=3, workers=None, plot_dir=None, shapes=None):
    """Run every input shape over `sizes`, log a table and plot each shape.

    Returns `{shape: {algorithm: [seconds per size]}}`.
    """
    results = {}
    for shape in shapes or GENERATORS:
        generate = GENERATORS[shape]
        tasks = [(n, generate(n), reps) for n in sizes]
        times = run_bench(tasks, workers=workers)
        results[shape] = times

        logger.info("%s data:", shape)
        for name, values in times.items():
            logger.info("  %-28s %s", name, " ".join(f"{t:.4f}" for t in values))

        path = None
        if plot_dir is not None:
            os.makedirs(plot_dir, exist_ok=True)
            path = os.path.join(plot_dir, shape.replace(" ", "_") + ".png")
        plot_results(
            sizes,
            list(times.items()),
            f"{shape.capitalize()} data sorting comparison",
            path=path,
        )
    return results
