import numpy as np
import pytest

from boids.spatial import SpatialIndex, axis_span


def brute_force(positions, i, radius, extents, wrap, z_enabled, active):
    found = set()
    for j in range(active):
        if j == i:
            continue
        d = positions[j] - positions[i]
        for axis in range(3):
            if wrap[axis] and d[axis] > 0.5 * extents[axis]:
                d[axis] -= extents[axis]
            elif wrap[axis] and d[axis] < -0.5 * extents[axis]:
                d[axis] += extents[axis]
        if not z_enabled:
            d[2] = 0.0
        if float(d @ d) <= radius * radius:
            found.add(j)
    return found


def random_positions(n, extents, z_enabled, seed=3):
    rng = np.random.default_rng(seed)
    positions = rng.random((n, 3)) * np.asarray(extents)
    if not z_enabled:
        positions[:, 2] = 0.5
    return positions


def gathered(index, i, radius, max_count=0):
    out = np.zeros(len(index.next), dtype=np.int32)
    found = index.gather(i, radius, max_count, out)
    return [int(j) for j in out[:found]]


@pytest.mark.parametrize("wrap,z_enabled", [
    ((True, True, True), False),
    ((False, False, False), False),
    ((True, False, True), False),
    ((True, True, True), True),
    ((False, False, False), True),
])
def test_gather_matches_brute_force(wrap, z_enabled):
    extents = (1.0, 0.5625, 1.0)
    n = 400
    radius = 0.08
    positions = random_positions(n, extents, z_enabled)

    index = SpatialIndex(n)
    index.configure(radius, extents, wrap, z_enabled)
    index.build(positions, n)

    for i in range(0, n, 7):
        result = gathered(index, i, radius)
        assert len(result) == len(set(result))
        assert set(result) == brute_force(positions, i, radius, extents, wrap, z_enabled, n)


def test_gather_respects_max_count():
    n = 300
    positions = random_positions(n, (1.0, 1.0, 1.0), False)
    index = SpatialIndex(n)
    index.configure(0.2, (1.0, 1.0, 1.0), (True, True, True), False)
    index.build(positions, n)

    full = gathered(index, 0, 0.2)
    assert len(full) > 5
    capped = gathered(index, 0, 0.2, max_count=5)
    assert len(capped) == 5
    assert set(capped) <= set(full)


def test_buckets_are_index_ascending():
    n = 50
    positions = np.zeros((n, 3))
    positions[:, :2] = 0.25
    index = SpatialIndex(n)
    index.configure(0.5, (1.0, 1.0, 1.0), (True, True, True), False)
    index.build(positions, n)

    cell = int(np.flatnonzero(index.head[:index.num_cells] != -1)[0])
    chain = []
    j = index.head[cell]
    while j != -1:
        chain.append(int(j))
        j = index.next[j]
    assert chain == list(range(n))


def test_large_radius_visits_each_neighbor_once():
    n = 64
    positions = random_positions(n, (1.0, 1.0, 1.0), False, seed=11)
    index = SpatialIndex(n)
    index.configure(0.05, (1.0, 1.0, 1.0), (True, True, True), False)
    index.build(positions, n)

    result = gathered(index, 5, 10.0)
    assert sorted(result) == [j for j in range(n) if j != 5]


def test_inactive_agents_are_not_indexed():
    n = 20
    positions = np.full((n, 3), 0.5)
    index = SpatialIndex(n)
    index.configure(0.1, (1.0, 1.0, 1.0), (True, True, True), False)
    index.build(positions, 8)

    assert sorted(gathered(index, 0, 0.1)) == list(range(1, 8))


def test_build_clamps_active_count_to_capacity():
    n = 10
    positions = np.full((n, 3), 0.5)
    index = SpatialIndex(n)
    index.configure(0.1, (1.0, 1.0, 1.0), (True, True, True), False)
    index.build(positions, 1000)
    assert index.active_count == n


def test_for_each_neighbor_calls_back_per_neighbor():
    positions = np.array([[0.1, 0.1, 0.5], [0.12, 0.1, 0.5], [0.9, 0.9, 0.5], [0.11, 0.12, 0.5]])
    index = SpatialIndex(4)
    index.configure(0.05, (1.0, 1.0, 1.0), (False, False, False), False)
    index.build(positions, 4)

    seen = []
    visited = index.for_each_neighbor(0, 0.05, 0, seen.append)
    assert visited == 2
    assert sorted(seen) == [1, 3]


def test_wrap_finds_neighbors_across_the_edge():
    positions = np.array([[0.01, 0.5, 0.5], [0.99, 0.5, 0.5]])
    index = SpatialIndex(2)
    index.configure(0.05, (1.0, 1.0, 1.0), (True, True, True), False)
    index.build(positions, 2)
    assert gathered(index, 0, 0.05) == [1]

    index.configure(0.05, (1.0, 1.0, 1.0), (False, False, False), False)
    index.build(positions, 2)
    assert gathered(index, 0, 0.05) == []


def test_cell_counts_are_capped():
    index = SpatialIndex(4)
    index.configure(1e-9, (1.0, 1.0, 1.0), (True, True, True), False)
    assert tuple(index.dims) == (512, 512, 1)
    index.configure(1e-9, (1.0, 1.0, 1.0), (True, True, True), True)
    assert tuple(index.dims) == (64, 64, 64)
    assert index.num_cells <= len(index.head)


def test_axis_span_covers_whole_axis_for_wide_reach():
    assert axis_span(3, 5, 8, True) == (0, 8)
    assert axis_span(3, 1, 8, True) == (2, 3)
    assert axis_span(0, 1, 8, True) == (-1, 3)
    assert axis_span(0, 2, 8, False) == (0, 3)
    assert axis_span(7, 2, 8, False) == (5, 3)
