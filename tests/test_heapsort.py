import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from hybridsort import heapsort
from hybridsort.heapsort import JoinSet, _heapify, heap_sort, heap_sort_parallel
from hybridsort.introsort import is_sorted

N_TESTS = 100
MAX_TEST_ARRAY_SIZE = 300


def gen_array(rng, n=None, low=-1000, high=1000):
    if n is None:
        n = rng.randint(0, MAX_TEST_ARRAY_SIZE)
    return [rng.randint(low, high) for _ in range(n)]


def is_max_heap(a, lo, n):
    for i in range(n):
        for child in (2 * i + 1, 2 * i + 2):
            if child < n and a[lo + child] > a[lo + i]:
                return False
    return True


@pytest.mark.parametrize("heap_sort_fn", [heap_sort, heap_sort_parallel])
def test_heap_sort_randomized(heap_sort_fn):
    rng = random.Random(2024)
    for _ in range(N_TESTS):
        x = gen_array(rng)
        ref = sorted(x)
        heap_sort_fn(x)
        assert x == ref


@pytest.mark.parametrize("heap_sort_fn", [heap_sort, heap_sort_parallel])
@pytest.mark.parametrize("values", [[], [1], [2, 1], [5, 3, 3, -1, 0], [0] * 64])
def test_heap_sort_small_and_degenerate(heap_sort_fn, values):
    ref = sorted(values)
    heap_sort_fn(values)
    assert values == ref


@pytest.mark.parametrize("n", [20, 21])
def test_parallel_threshold_boundary(n, monkeypatch):
    spawned = []
    spawn = JoinSet.spawn

    def counting_spawn(self, fn, *args):
        spawned.append(args)
        spawn(self, fn, *args)

    monkeypatch.setattr(JoinSet, "spawn", counting_spawn)
    rng = random.Random(n)
    for _ in range(20):
        x = gen_array(rng, n)
        ref = sorted(x)
        heap_sort_parallel(x)
        assert x == ref

    if n <= heapsort.PARALLEL_THRESHOLD:
        assert not spawned
    else:
        assert spawned


def test_heap_sort_subrange():
    x = [100, 5, 4, 3, 2, 1, -100]
    heap_sort(x, 1, 5)
    assert x == [100, 1, 2, 3, 4, 5, -100]

    rng = random.Random(3)
    y = gen_array(rng, 200)
    head, tail = y[:50], y[150:]
    heap_sort_parallel(y, 50, 149, parallel_threshold=4)
    assert y[:50] == head
    assert y[150:] == tail
    assert is_sorted(y[50:150])


def test_heapify_restores_heap():
    x = [1, 9, 8, 7, 6, 5, 4]
    _heapify(x, 0, len(x), 0)
    assert is_max_heap(x, 0, len(x))
    assert x[0] == 9


@pytest.mark.parametrize("max_workers", [1, 2, 8])
@pytest.mark.parametrize("parallel_threshold", [0, 1, 20])
def test_heap_sort_parallel_settings(max_workers, parallel_threshold):
    rng = random.Random(max_workers * 31 + parallel_threshold)
    x = gen_array(rng, 1500, -50, 50)
    ref = sorted(x)
    heap_sort_parallel(x, parallel_threshold=parallel_threshold, max_workers=max_workers)
    assert x == ref


def test_heap_sort_parallel_repeated_runs_are_deterministic():
    rng = random.Random(10_000)
    base = [rng.randint(0, 2_500) for _ in range(10_000)]
    rng.shuffle(base)
    ref = sorted(base)
    for _ in range(3):
        x = base.copy()
        heap_sort_parallel(x, max_workers=8)
        assert x == ref


def test_concurrent_sift_downs_root_disjoint_subtrees(monkeypatch):
    batches = [[]]
    spawn, wait = JoinSet.spawn, JoinSet.wait

    def recording_spawn(self, fn, *args):
        # tasks spawned from worker threads descend inside their parent's subtree
        if threading.current_thread() is threading.main_thread():
            n, i = args[2], args[3]
            batches[-1].append((n, i))
        spawn(self, fn, *args)

    def recording_wait(self):
        wait(self)
        batches.append([])

    monkeypatch.setattr(JoinSet, "spawn", recording_spawn)
    monkeypatch.setattr(JoinSet, "wait", recording_wait)

    rng = random.Random(11)
    x = gen_array(rng, 300)
    ref = sorted(x)
    heap_sort_parallel(x, max_workers=4)
    assert x == ref

    batches = [b for b in batches if b]
    assert batches
    for batch in batches:
        # one heap level per barrier: no node is an ancestor of another
        assert len({(i + 1).bit_length() for _, i in batch}) == 1
        assert len({n for n, _ in batch}) == 1

    build = [b for b in batches if b[0][0] == 300]
    extract = [b for b in batches if b[0][0] < 300]
    assert sorted(i for b in build for _, i in b) == list(range(150))
    assert all(b == [(b[0][0], 0)] for b in extract)
    assert [b[0][0] for b in extract] == list(range(299, 20, -1))


def test_join_set_waits_for_chained_tasks():
    done = []

    with ThreadPoolExecutor(max_workers=2) as pool:
        joins = JoinSet(pool)

        def chain(k):
            if k:
                joins.spawn(chain, k - 1)
            done.append(k)

        joins.spawn(chain, 50)
        joins.wait()
        assert joins.pending == 0
        assert sorted(done) == list(range(51))


def test_join_set_reraises_task_error():
    def boom():
        raise RuntimeError("boom")

    with ThreadPoolExecutor(max_workers=2) as pool:
        joins = JoinSet(pool)
        joins.spawn(boom)
        with pytest.raises(RuntimeError, match="boom"):
            joins.wait()
        # errors are reported once
        joins.wait()


def test_join_set_wait_without_tasks_returns():
    with ThreadPoolExecutor(max_workers=1) as pool:
        JoinSet(pool).wait()


@pytest.mark.parametrize("n", [5, 500])
def test_heap_sort_parallel_rejects_non_positive_max_workers(n):
    x = list(range(n, 0, -1))
    with pytest.raises(ValueError, match="max_workers"):
        heap_sort_parallel(x, max_workers=0)
    assert x == list(range(n, 0, -1))


def test_join_set_spawn_failure_releases_count():
    pool = ThreadPoolExecutor(max_workers=1)
    pool.shutdown()
    joins = JoinSet(pool)
    with pytest.raises(RuntimeError):
        joins.spawn(lambda: None)
    assert joins.pending == 0
    joins.wait()
