"""
簇ID分配与合并
"""

import threading
import numpy as np
from typing import Dict, List, Tuple

from ..parallel.sync import AtomicCounter
from .point_store import PointStore, NOISE, UNLABELED


class ClusterIdAllocator:
    """
    进程内唯一的簇ID生成器

    ID从1开始单调递增。并发扩展在同一密度连通区域内相遇时会留下
    接触记录 (cluster_id, owner_id, point_idx)，在所有工作线程结束后
    由 resolve() 用并查集合并。
    """

    def __init__(self):
        self._counter = AtomicCounter(0)
        self._contacts: List[Tuple[int, int, int]] = []
        self._contacts_lock = threading.Lock()

    def next_id(self) -> int:
        return self._counter.increment()

    @property
    def n_allocated(self) -> int:
        return self._counter.value

    def record_contacts(self, contacts: List[Tuple[int, int, int]]) -> None:
        """登记一批接触记录（每个扩展结束时调用一次）"""
        if not contacts:
            return
        with self._contacts_lock:
            self._contacts.extend(contacts)

    @property
    def contacts(self) -> List[Tuple[int, int, int]]:
        with self._contacts_lock:
            return list(self._contacts)

    def resolve(self, store: PointStore) -> Dict[int, int]:
        """
        计算每个已分配ID的代表ID

        只有接触点本身是核心点时两个簇才是密度相连的；
        落在边界点上的接触不触发合并。必须在所有工作线程结束后调用。

        Args:
            store: 点集

        Returns:
            {簇ID: 代表ID}
        """
        parent = list(range(self.n_allocated + 1))

        def find(x: int) -> int:
            root = x
            while parent[root] != root:
                root = parent[root]
            while parent[x] != root:
                parent[x], x = root, parent[x]
            return root

        for cluster_id, owner_id, point_idx in self.contacts:
            if not store.is_core(point_idx):
                continue
            root_a, root_b = find(cluster_id), find(owner_id)
            if root_a != root_b:
                # 保留较小的ID作为代表
                parent[max(root_a, root_b)] = min(root_a, root_b)

        return {cid: find(cid) for cid in range(1, self.n_allocated + 1)}

    def final_labels(self, store: PointStore) -> np.ndarray:
        """
        生成输出标签：合并后的簇按输入顺序从1开始连续编号，噪声为0

        Args:
            store: 点集

        Returns:
            标签数组
        """
        representative = self.resolve(store)
        raw_labels = store.labels
        final = np.zeros(len(raw_labels), dtype=np.int64)
        renumbered: Dict[int, int] = {}

        for idx, label in enumerate(raw_labels.tolist()):
            if label == NOISE or label == UNLABELED:
                continue
            root = representative[label]
            if root not in renumbered:
                renumbered[root] = len(renumbered) + 1
            final[idx] = renumbered[root]

        return final
