"""
邻域查询测试
"""

import threading

import numpy as np
import pytest

from src.clustering.errors import CapacityExceeded
from src.clustering.point_store import PointStore
from src.clustering.utils import (
    NeighborFinder,
    region_query,
    labels_to_partition,
    same_partition,
)


class TestNeighborFinder:
    """线性扫描邻域查询"""

    def test_includes_self(self):
        store = PointStore([(0.0, 0.0), (10.0, 10.0)])
        finder = NeighborFinder(store, epsilon=1.0)

        assert finder.neighbors(0).tolist() == [0]
        assert finder.neighbors(1).tolist() == [1]

    def test_boundary_distance_is_inclusive(self):
        store = PointStore([(0.0, 0.0), (3.0, 4.0), (3.0, 4.0001)])
        finder = NeighborFinder(store, epsilon=5.0)

        assert finder.neighbors(0).tolist() == [0, 1]

    def test_results_are_in_index_order(self):
        points = np.array([[2.0, 0.0], [0.0, 0.0], [1.0, 0.0], [50.0, 0.0]])
        finder = NeighborFinder(PointStore(points), epsilon=2.0)

        assert finder.neighbors(2).tolist() == [0, 1, 2]

    def test_explicit_eps_squared_overrides_default(self):
        store = PointStore([(0.0, 0.0), (2.0, 0.0)])
        finder = NeighborFinder(store, epsilon=1.0)

        assert finder.neighbors(0, eps_squared=4.0).tolist() == [0, 1]

    def test_duplicate_points_are_neighbors(self):
        store = PointStore([(1.0, 1.0), (1.0, 1.0), (1.0, 1.0)])
        finder = NeighborFinder(store, epsilon=1e-9)

        assert finder.neighbors(1).tolist() == [0, 1, 2]

    def test_capacity_exceeded_is_reported(self):
        store = PointStore([(0.0, 0.0), (0.1, 0.0), (0.2, 0.0), (0.3, 0.0)])
        finder = NeighborFinder(store, epsilon=1.0, max_neighbors=3)

        with pytest.raises(CapacityExceeded) as exc_info:
            finder.neighbors(0)

        assert exc_info.value.point_index == 0
        assert exc_info.value.count == 4
        assert exc_info.value.limit == 3

    def test_capacity_exactly_met_is_allowed(self):
        store = PointStore([(0.0, 0.0), (0.1, 0.0), (0.2, 0.0)])
        finder = NeighborFinder(store, epsilon=1.0, max_neighbors=3)

        assert finder.neighbors(0).tolist() == [0, 1, 2]

    def test_matches_brute_force(self, noisy_blobs):
        finder = NeighborFinder(PointStore(noisy_blobs), epsilon=2.0)

        for idx in (0, 17, 250, len(noisy_blobs) - 1):
            diff = noisy_blobs - noisy_blobs[idx]
            expected = np.nonzero((diff ** 2).sum(axis=1) <= 4.0)[0]
            np.testing.assert_array_equal(finder.neighbors(idx), expected)

    def test_concurrent_queries_agree(self, noisy_blobs):
        finder = NeighborFinder(PointStore(noisy_blobs), epsilon=2.0)
        expected = [finder.neighbors(i).tolist() for i in range(50)]
        results = {}

        def query(offset):
            results[offset] = [finder.neighbors(i).tolist() for i in range(50)]

        threads = [threading.Thread(target=query, args=(k,)) for k in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(result == expected for result in results.values())


class TestHelpers:

    def test_region_query(self):
        points = np.array([[0.0, 0.0], [1.0, 0.0], [5.0, 0.0]])
        assert region_query(points, 0, 1.0) == [0, 1]

    def test_partition_ignores_numbering(self):
        assert same_partition(np.array([1, 1, 2, 0]), np.array([7, 7, 3, 0]))
        assert not same_partition(np.array([1, 1, 2, 0]), np.array([1, 2, 2, 0]))
        assert not same_partition(np.array([1, 1]), np.array([1, 1, 1]))

    def test_partition_separates_noise(self):
        clusters, noise = labels_to_partition(np.array([0, 2, 2, 0, 5]))
        assert noise == frozenset({0, 3})
        assert clusters == frozenset({frozenset({1, 2}), frozenset({4})})
