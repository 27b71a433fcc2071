"""
串行DBSCAN实现
单线程参考实现，用于验证并发版本的聚类划分
"""

import numpy as np
from collections import deque
from typing import List
import time

from .config import ClusteringConfig


class DBSCANSequential:
    """串行版本的DBSCAN聚类算法"""

    def __init__(self, eps: float = 2.5, min_samples: int = 2):
        """
        初始化DBSCAN参数

        Args:
            eps: 邻域半径
            min_samples: 核心点的最小邻居数（含自身）
        """
        self.eps = eps
        self.min_samples = min_samples
        self.labels_ = None
        self.core_sample_indices_ = None
        self.components_ = None
        self.execution_time = 0

    def fit(self, points: np.ndarray) -> 'DBSCANSequential':
        """
        执行DBSCAN聚类

        Args:
            points: 形状为(n_samples, 2)的numpy数组

        Returns:
            self: 返回聚类器实例
        """
        ClusteringConfig(epsilon=self.eps, min_pts=self.min_samples).validate()
        start_time = time.time()

        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        n_samples = points.shape[0]
        eps_squared = self.eps * self.eps

        # -1表示未访问，0表示噪声
        labels = np.full(n_samples, -1, dtype=np.int64)
        is_core = np.zeros(n_samples, dtype=np.bool_)
        cluster_id = 0

        for i in range(n_samples):
            if labels[i] != -1:
                continue

            neighbors = self._find_neighbors(points, i, eps_squared)

            if len(neighbors) < self.min_samples:
                labels[i] = 0
                continue

            # 发现核心点，开始新的聚类
            cluster_id += 1
            labels[i] = cluster_id
            is_core[i] = True
            self._expand_cluster(points, labels, is_core, neighbors, cluster_id, eps_squared)

        self.labels_ = labels
        self.core_sample_indices_ = np.where(is_core)[0]
        self.components_ = points[self.core_sample_indices_]
        self.execution_time = time.time() - start_time

        return self

    def _find_neighbors(self, points: np.ndarray, point_idx: int,
                        eps_squared: float) -> List[int]:
        """
        查找指定点邻域内的所有点（包含自身）

        Args:
            points: 所有点的数组
            point_idx: 目标点的索引
            eps_squared: 平方邻域半径

        Returns:
            邻域内点的索引列表
        """
        diff = points - points[point_idx]
        squared = diff[:, 0] ** 2 + diff[:, 1] ** 2
        return np.nonzero(squared <= eps_squared)[0].tolist()

    def _expand_cluster(self, points: np.ndarray, labels: np.ndarray,
                        is_core: np.ndarray, seeds: List[int],
                        cluster_id: int, eps_squared: float):
        """
        从种子点扩展聚类

        Args:
            points: 所有点的数组
            labels: 标签数组
            is_core: 核心点标记
            seeds: 种子点索引列表
            cluster_id: 当前聚类ID
            eps_squared: 平方邻域半径
        """
        frontier = deque(seeds)
        while frontier:
            point_idx = frontier.popleft()

            if labels[point_idx] == 0:  # 之前标记为噪声，作为边界点吸收
                labels[point_idx] = cluster_id
                continue

            if labels[point_idx] != -1:
                continue

            labels[point_idx] = cluster_id
            neighbors = self._find_neighbors(points, point_idx, eps_squared)

            if len(neighbors) >= self.min_samples:
                is_core[point_idx] = True
                frontier.extend(j for j in neighbors if labels[j] <= 0)

    def get_cluster_stats(self) -> dict:
        """
        获取聚类统计信息

        Returns:
            包含聚类统计信息的字典
        """
        if self.labels_ is None:
            return {}

        unique_labels = np.unique(self.labels_)
        stats = {
            'n_clusters': len(unique_labels) - (1 if 0 in unique_labels else 0),
            'n_noise': int(np.sum(self.labels_ == 0)),
            'n_core_points': len(self.core_sample_indices_),
            'execution_time': self.execution_time,
            'cluster_sizes': {}
        }

        for label in unique_labels:
            if label != 0:  # 跳过噪声点
                stats['cluster_sizes'][int(label)] = int(np.sum(self.labels_ == label))

        return stats
