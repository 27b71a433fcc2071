"""
簇扩展
从核心点出发吸收所有密度可达的点
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Optional, List, Set, Tuple

import numpy as np

from .cluster_ids import ClusterIdAllocator
from .point_store import PointStore, NOISE, UNLABELED
from .utils import NeighborFinder


@dataclass
class ExpansionStats:
    """一次扩展的统计"""
    cluster_id: int
    n_claimed: int = 0
    n_core_expanded: int = 0
    n_contacts: int = 0
    aborted: bool = False


class ClusterExpander:
    """
    迭代式簇扩展器

    visited 控制邻域计算（每个点至多一次），label 控制最终归属
    （CAS，先到者胜），两者相互独立地同步。
    """

    def __init__(self, store: PointStore, finder: NeighborFinder, min_pts: int,
                 id_allocator: ClusterIdAllocator,
                 abort_event: Optional[threading.Event] = None):
        """
        初始化扩展器

        Args:
            store: 共享点集
            finder: 邻域查询器
            min_pts: 核心点的最小邻居数（含自身）
            id_allocator: 簇ID分配器，用于登记并发扩展间的接触
            abort_event: 置位后在下一次出队时停止扩展
        """
        self.store = store
        self.finder = finder
        self.min_pts = min_pts
        self.id_allocator = id_allocator
        self.abort_event = abort_event

    def expand(self, cluster_id: int, seeds: Iterable[int]) -> ExpansionStats:
        """
        将从种子邻域密度可达的所有点吸收进cluster_id

        Args:
            cluster_id: 已分配给核心点的簇ID
            seeds: 核心点的邻居集合（含核心点自身）

        Returns:
            扩展统计
        """
        stats = ExpansionStats(cluster_id=cluster_id)
        contacts: List[Tuple[int, int, int]] = []
        contacted: Set[Tuple[int, int]] = set()
        # 已经在某个核心点上接触过的簇，之后的接触不再登记
        linked: Set[int] = set()
        frontier = deque(int(i) for i in seeds)

        try:
            while frontier:
                if self.abort_event is not None and self.abort_event.is_set():
                    stats.aborted = True
                    break

                point_idx = frontier.popleft()

                if self.store.test_and_set_visited(point_idx):
                    neighbors = self.finder.neighbors(point_idx)
                    if len(neighbors) >= self.min_pts:
                        self.store.mark_core(point_idx)
                        stats.n_core_expanded += 1
                        frontier.extend(self._pending(neighbors, cluster_id))

                previous = self.store.claim(point_idx, cluster_id)
                if previous == UNLABELED or previous == NOISE:
                    stats.n_claimed += 1
                elif previous != cluster_id and previous not in linked:
                    if (previous, point_idx) not in contacted:
                        contacted.add((previous, point_idx))
                        contacts.append((cluster_id, previous, point_idx))
                    if self.store.is_core(point_idx):
                        linked.add(previous)
        finally:
            stats.n_contacts = len(contacts)
            self.id_allocator.record_contacts(contacts)

        return stats

    def _pending(self, neighbors: np.ndarray, cluster_id: int) -> List[int]:
        """过滤掉已归属当前簇的点；标签单调，读到cluster_id即不会再变"""
        labels = self.store.label
        return [int(j) for j in neighbors if labels(int(j)) != cluster_id]
