"""
簇扩展与簇ID合并测试
"""

import threading

import numpy as np
import pytest

from src.clustering.cluster_ids import ClusterIdAllocator
from src.clustering.expander import ClusterExpander
from src.clustering.point_store import PointStore, NOISE, UNLABELED
from src.clustering.utils import NeighborFinder


def build(points, epsilon: float, min_pts: int, abort_event=None):
    store = PointStore(points)
    finder = NeighborFinder(store, epsilon)
    allocator = ClusterIdAllocator()
    expander = ClusterExpander(store, finder, min_pts, allocator, abort_event=abort_event)
    return store, finder, allocator, expander


def seed(store, finder, allocator, point_idx):
    """模拟调度器对核心点的处理：抢占visited、标记核心、分配ID"""
    assert store.test_and_set_visited(point_idx)
    neighbors = finder.neighbors(point_idx)
    store.mark_core(point_idx)
    return allocator.next_id(), neighbors


class TestClusterExpander:
    """迭代式扩展"""

    def test_absorbs_density_reachable_points(self):
        points = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0), (10.0, 0.0)]
        store, finder, allocator, expander = build(points, 1.5, 2)

        cluster_id, neighbors = seed(store, finder, allocator, 0)
        stats = expander.expand(cluster_id, neighbors)

        assert store.labels.tolist() == [1, 1, 1, 1, UNLABELED]
        assert stats.n_claimed == 4
        assert not stats.aborted
        # 每个被访问的点只计算一次邻域
        assert store.visited.tolist() == [True, True, True, True, False]

    def test_border_point_is_claimed_but_not_expanded(self):
        # 点3只有两个邻居（点2和自身），min_pts=3 时不是核心点
        points = [(0.0, 0.0), (0.3, 0.0), (0.6, 0.0), (1.5, 0.0), (2.6, 0.0)]
        store, finder, allocator, expander = build(points, 1.0, 3)

        cluster_id, neighbors = seed(store, finder, allocator, 0)
        expander.expand(cluster_id, neighbors)

        assert store.label(3) == cluster_id
        assert not store.is_core(3)
        # 点4只能经由点3到达，而点3不是核心点
        assert store.label(4) == UNLABELED
        assert not store.is_visited(4)

    def test_noise_point_is_upgraded(self):
        points = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
        store, finder, allocator, expander = build(points, 1.5, 3)

        store.test_and_set_visited(0)
        store.mark_noise(0)

        cluster_id, neighbors = seed(store, finder, allocator, 1)
        expander.expand(cluster_id, neighbors)

        assert store.label(0) == cluster_id

    def test_long_chain_does_not_recurse(self):
        n = 5000
        points = np.column_stack([np.arange(n, dtype=np.float64), np.zeros(n)])
        store, finder, allocator, expander = build(points, 1.0, 2)

        cluster_id, neighbors = seed(store, finder, allocator, 0)
        expander.expand(cluster_id, neighbors)

        assert (store.labels == cluster_id).all()

    def test_contact_with_other_cluster_is_recorded(self):
        points = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
        store, finder, allocator, expander = build(points, 1.5, 2)

        # 另一个扩展已经认领并展开了点2
        other_id = allocator.next_id()
        store.test_and_set_visited(2)
        store.mark_core(2)
        store.claim(2, other_id)

        cluster_id, neighbors = seed(store, finder, allocator, 0)
        stats = expander.expand(cluster_id, neighbors)

        assert store.label(2) == other_id
        assert stats.n_contacts == 1
        assert allocator.contacts == [(cluster_id, other_id, 2)]

    def test_abort_stops_expansion(self):
        abort = threading.Event()
        abort.set()
        points = [(0.0, 0.0), (1.0, 0.0)]
        store, finder, allocator, expander = build(points, 1.5, 2, abort_event=abort)

        cluster_id, neighbors = seed(store, finder, allocator, 0)
        stats = expander.expand(cluster_id, neighbors)

        assert stats.aborted
        assert stats.n_claimed == 0

    def test_contacts_stop_after_core_contact(self):
        # 5x5网格，上两行已被另一个簇认领并展开
        xs, ys = np.meshgrid(np.arange(5.0), np.arange(5.0))
        points = np.column_stack([xs.ravel(), ys.ravel()])
        store, finder, allocator, expander = build(points, 1.5, 3)

        other_id = allocator.next_id()
        for idx in range(15, 25):
            store.test_and_set_visited(idx)
            store.mark_core(idx)
            store.claim(idx, other_id)

        cluster_id, neighbors = seed(store, finder, allocator, 0)
        stats = expander.expand(cluster_id, neighbors)

        assert stats.n_claimed == 15
        assert stats.n_contacts == 1
        assert len(allocator.contacts) == 1
        assert allocator.resolve(store)[cluster_id] == other_id


class TestClusterIdAllocator:
    """簇ID分配与合并"""

    def test_ids_start_at_one(self):
        allocator = ClusterIdAllocator()
        assert [allocator.next_id() for _ in range(3)] == [1, 2, 3]
        assert allocator.n_allocated == 3

    def test_contact_on_core_point_merges(self):
        store = PointStore([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])
        allocator = ClusterIdAllocator()
        a, b = allocator.next_id(), allocator.next_id()

        store.claim(0, b)
        store.claim(1, b)
        store.claim(2, a)
        store.mark_core(1)
        allocator.record_contacts([(a, b, 1)])

        assert allocator.resolve(store) == {1: 1, 2: 1}
        assert allocator.final_labels(store).tolist() == [1, 1, 1]

    def test_contact_on_border_point_does_not_merge(self):
        store = PointStore([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])
        allocator = ClusterIdAllocator()
        a, b = allocator.next_id(), allocator.next_id()

        store.claim(0, a)
        store.claim(1, a)
        store.claim(2, b)
        allocator.record_contacts([(b, a, 1)])

        assert allocator.resolve(store) == {1: 1, 2: 2}

    def test_final_labels_are_dense_in_input_order(self):
        store = PointStore([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)])
        allocator = ClusterIdAllocator()
        ids = [allocator.next_id() for _ in range(5)]

        store.claim(0, ids[4])
        store.mark_noise(1)
        store.claim(2, ids[1])
        store.claim(3, ids[4])

        assert allocator.final_labels(store).tolist() == [1, NOISE, 2, 1]

    def test_transitive_merges(self):
        store = PointStore([(float(i), 0.0) for i in range(4)])
        allocator = ClusterIdAllocator()
        ids = [allocator.next_id() for _ in range(4)]
        for idx, cid in enumerate(ids):
            store.claim(idx, cid)
            store.mark_core(idx)

        allocator.record_contacts([(ids[3], ids[2], 2), (ids[1], ids[0], 0), (ids[2], ids[1], 1)])

        assert len(set(allocator.final_labels(store).tolist())) == 1
