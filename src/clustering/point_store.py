"""
点集存储
不可变坐标 + 逐点的并发安全状态（visited / core / label）
"""

import numpy as np
from typing import Tuple, Union, Sequence

from ..parallel.sync import StripedLocks

# 标签编码：-1 未标记，0 噪声，>=1 为簇ID
UNLABELED = -1
NOISE = 0


class PointStore:
    """
    并发DBSCAN的共享点集

    坐标在构造时写入一次并设为只读；visited 与 label 只能通过
    test_and_set_visited / compare_and_swap_label / claim 修改，
    每个操作在一把分段锁内完成一次读和一次写。
    """

    def __init__(self, points: Union[np.ndarray, Sequence[Tuple[float, float]]],
                 lock_stripes: int = 64):
        """
        初始化点集

        Args:
            points: 形状为(n_samples, 2)的坐标
            lock_stripes: 分段锁数量
        """
        coords = np.array(points, dtype=np.float64)
        if coords.size == 0:
            coords = coords.reshape(0, 2)
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise ValueError(f"点数据形状必须为(n, 2)，实际为 {coords.shape}")
        if not np.all(np.isfinite(coords)):
            raise ValueError("点数据包含非有限值（NaN或inf）")

        coords.setflags(write=False)
        self.coords = coords
        # 按列连续存储，供邻域扫描内核使用
        self.xs = np.ascontiguousarray(coords[:, 0])
        self.ys = np.ascontiguousarray(coords[:, 1])
        self.xs.setflags(write=False)
        self.ys.setflags(write=False)

        n_samples = coords.shape[0]
        self._visited = np.zeros(n_samples, dtype=np.bool_)
        self._core = np.zeros(n_samples, dtype=np.bool_)
        self._labels = np.full(n_samples, UNLABELED, dtype=np.int64)
        self._locks = StripedLocks(lock_stripes)

    def __len__(self) -> int:
        return self.coords.shape[0]

    @property
    def n_points(self) -> int:
        return len(self)

    # ---- visited -------------------------------------------------------

    def test_and_set_visited(self, index: int) -> bool:
        """
        原子地将visited置为True

        Returns:
            本次调用是否完成了 False -> True 的转换
        """
        with self._locks.lock_for(index):
            if self._visited[index]:
                return False
            self._visited[index] = True
            return True

    def is_visited(self, index: int) -> bool:
        return bool(self._visited[index])

    # ---- core ----------------------------------------------------------

    def mark_core(self, index: int) -> None:
        """标记核心点。只由赢得visited的工作线程调用一次"""
        with self._locks.lock_for(index):
            self._core[index] = True

    def is_core(self, index: int) -> bool:
        return bool(self._core[index])

    # ---- label ---------------------------------------------------------

    def compare_and_swap_label(self, index: int, expected: int, new: int) -> bool:
        """
        比较并交换标签

        Args:
            index: 点索引
            expected: 期望的当前标签
            new: 新标签

        Returns:
            是否交换成功
        """
        with self._locks.lock_for(index):
            if self._labels[index] != expected:
                return False
            self._labels[index] = new
            return True

    def claim(self, index: int, cluster_id: int) -> int:
        """
        尝试将点归入cluster_id

        只有当前标签为未标记或噪声时才会写入；已属于某个簇的点保持不变。

        Args:
            index: 点索引
            cluster_id: 簇ID（>=1）

        Returns:
            操作前的标签。返回UNLABELED或NOISE表示本次认领成功
        """
        if cluster_id < 1:
            raise ValueError(f"簇ID必须为正整数: {cluster_id}")

        with self._locks.lock_for(index):
            previous = int(self._labels[index])
            if previous == UNLABELED or previous == NOISE:
                self._labels[index] = cluster_id
            return previous

    def mark_noise(self, index: int) -> bool:
        """将未标记的点标为噪声，之后仍可被某个簇吸收"""
        return self.compare_and_swap_label(index, UNLABELED, NOISE)

    def label(self, index: int) -> int:
        return int(self._labels[index])

    # ---- 快照 ----------------------------------------------------------

    @property
    def labels(self) -> np.ndarray:
        """标签数组的副本"""
        return self._labels.copy()

    @property
    def visited(self) -> np.ndarray:
        return self._visited.copy()

    @property
    def core_mask(self) -> np.ndarray:
        return self._core.copy()

    def n_visited(self) -> int:
        return int(np.count_nonzero(self._visited))
