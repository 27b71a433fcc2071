"""
聚类工具函数
邻域查询（线性扫描）与聚类划分比较
"""

import numpy as np
from typing import List, Optional, FrozenSet, Tuple
from numba import jit

from .errors import CapacityExceeded
from .point_store import PointStore, NOISE, UNLABELED


@jit(nopython=True, nogil=True)
def _scan_neighbors(xs: np.ndarray, ys: np.ndarray, point_idx: int,
                    eps_squared: float, out: np.ndarray) -> int:
    """
    线性扫描查找邻居（Numba编译，释放GIL）

    最多写入 out.shape[0] 个索引，但始终返回真实的邻居总数，
    由调用方判断是否超出容量。
    """
    px = xs[point_idx]
    py = ys[point_idx]
    capacity = out.shape[0]
    count = 0
    for j in range(xs.shape[0]):
        dx = xs[j] - px
        dy = ys[j] - py
        if dx * dx + dy * dy <= eps_squared:
            if count < capacity:
                out[count] = j
            count += 1
    return count


class NeighborFinder:
    """
    基于线性扫描的邻域查询

    只读取不可变坐标，可被多个工作线程同时调用。
    """

    def __init__(self, store: PointStore, epsilon: float,
                 max_neighbors: Optional[int] = None):
        """
        初始化邻域查询器

        Args:
            store: 点集
            epsilon: 邻域半径
            max_neighbors: 单次查询的最大邻居数，None表示不限制
        """
        self.store = store
        self.epsilon = epsilon
        self.eps_squared = epsilon * epsilon
        self.max_neighbors = max_neighbors if max_neighbors is not None else max(len(store), 1)

    def neighbors(self, point_idx: int, eps_squared: Optional[float] = None) -> np.ndarray:
        """
        查找与指定点平方距离不超过eps_squared的所有点（包含自身）

        Args:
            point_idx: 目标点索引
            eps_squared: 平方半径，默认使用构造时的epsilon

        Returns:
            邻居索引数组（按索引升序）

        Raises:
            CapacityExceeded: 邻居数超过max_neighbors
        """
        if eps_squared is None:
            eps_squared = self.eps_squared

        buffer = np.empty(min(self.max_neighbors, len(self.store)), dtype=np.int64)
        count = _scan_neighbors(self.store.xs, self.store.ys, point_idx,
                                eps_squared, buffer)

        if count > self.max_neighbors:
            raise CapacityExceeded(point_idx, count, self.max_neighbors)

        return buffer[:count]


def region_query(points: np.ndarray, point_idx: int, eps: float) -> List[int]:
    """
    对普通数组做一次邻域查询的便捷函数

    Args:
        points: 形状为(n_samples, 2)的数组
        point_idx: 目标点索引
        eps: 邻域半径

    Returns:
        邻域内点的索引列表（包含自身）
    """
    store = PointStore(points, lock_stripes=1)
    return NeighborFinder(store, eps).neighbors(point_idx).tolist()


def labels_to_partition(labels: np.ndarray) -> Tuple[FrozenSet[FrozenSet[int]], FrozenSet[int]]:
    """
    将标签数组转换为与簇编号无关的划分

    Args:
        labels: 聚类标签，0为噪声

    Returns:
        (簇集合的集合, 噪声点集合)
    """
    labels = np.asarray(labels)
    clusters = {}
    noise = set()

    for idx, label in enumerate(labels.tolist()):
        if label == NOISE or label == UNLABELED:
            noise.add(idx)
        else:
            clusters.setdefault(label, set()).add(idx)

    return frozenset(frozenset(members) for members in clusters.values()), frozenset(noise)


def same_partition(labels1: np.ndarray, labels2: np.ndarray) -> bool:
    """判断两组标签是否在重新编号意义下相同"""
    if len(labels1) != len(labels2):
        return False
    return labels_to_partition(labels1) == labels_to_partition(labels2)
