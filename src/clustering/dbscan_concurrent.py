"""
并发DBSCAN实现
固定大小线程池 + 逐点原子状态的共享内存密度聚类
"""

import threading
import time
from dataclasses import dataclass, field
from typing import List, Tuple, Optional, Dict, Any, Union, Sequence

import numpy as np
import pandas as pd

from ..parallel.workers import TaskScheduler, ClusteringWorker, SchedulerReport
from .cluster_ids import ClusterIdAllocator
from .config import ClusteringConfig
from .errors import ClusteringCancelled
from .expander import ClusterExpander
from .point_store import PointStore
from .utils import NeighborFinder


@dataclass
class ClusteringResult:
    """聚类输出：按输入顺序的 (x, y, label)，label=0 为噪声"""
    points: np.ndarray
    labels: np.ndarray
    core_mask: np.ndarray
    config: ClusteringConfig
    execution_time: float = 0.0
    scheduler_report: Optional[SchedulerReport] = None
    n_merged_ids: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def n_clusters(self) -> int:
        return int(self.labels.max()) if len(self.labels) else 0

    @property
    def n_noise(self) -> int:
        return int(np.sum(self.labels == 0))

    def to_triples(self) -> List[Tuple[float, float, int]]:
        """转换为 (x, y, clusterLabel) 列表"""
        return [(float(x), float(y), int(label))
                for (x, y), label in zip(self.points, self.labels)]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({
            'x': self.points[:, 0],
            'y': self.points[:, 1],
            'cluster': self.labels
        })

    def get_cluster_stats(self) -> dict:
        """
        获取聚类统计信息

        Returns:
            包含聚类统计信息的字典
        """
        unique_labels, counts = np.unique(self.labels, return_counts=True)
        return {
            'n_points': len(self.labels),
            'n_clusters': self.n_clusters,
            'n_noise': self.n_noise,
            'n_core_points': int(np.sum(self.core_mask)),
            'n_merged_ids': self.n_merged_ids,
            'execution_time': self.execution_time,
            'cluster_sizes': {int(label): int(count)
                              for label, count in zip(unique_labels, counts) if label != 0}
        }


def cluster(points: Union[np.ndarray, Sequence[Tuple[float, float]]],
            epsilon: float,
            min_pts: int,
            max_concurrency: int = 16,
            max_neighbors_per_query: Optional[int] = None,
            cancel_event: Optional[threading.Event] = None,
            lock_stripes: int = 64,
            verbose: bool = False) -> ClusteringResult:
    """
    对二维点集执行并发DBSCAN

    Args:
        points: 形状为(n_samples, 2)的坐标
        epsilon: 邻域半径
        min_pts: 核心点的最小邻居数（含自身）
        max_concurrency: 工作线程数
        max_neighbors_per_query: 单次邻域查询的邻居上限
        cancel_event: 协作式取消信号
        lock_stripes: 分段锁数量
        verbose: 是否打印进度信息

    Returns:
        聚类结果

    Raises:
        ConfigError: 参数非法，聚类不会启动
        CapacityExceeded: 某次邻域查询超过上限，本次聚类作废
        ClusteringCancelled: 聚类在完成前被取消
    """
    config = ClusteringConfig(
        epsilon=epsilon,
        min_pts=min_pts,
        max_concurrency=max_concurrency,
        max_neighbors_per_query=max_neighbors_per_query,
        lock_stripes=lock_stripes
    ).validate()

    return _run(config, points, cancel_event, verbose)


def _run(config: ClusteringConfig, points, cancel_event: Optional[threading.Event],
         verbose: bool) -> ClusteringResult:
    start_time = time.time()

    store = PointStore(points, lock_stripes=config.lock_stripes)
    n_samples = len(store)

    finder = NeighborFinder(store, config.epsilon, config.max_neighbors_per_query)
    id_allocator = ClusterIdAllocator()
    scheduler = TaskScheduler(config.max_concurrency, cancel_event=cancel_event)
    expander = ClusterExpander(store, finder, config.min_pts, id_allocator,
                               abort_event=scheduler.abort_event)

    def make_worker(worker_id: int) -> ClusteringWorker:
        return ClusteringWorker(worker_id, store, finder, expander,
                                id_allocator, config.min_pts)

    if verbose:
        print(f"使用 {min(config.max_concurrency, max(n_samples, 1))} 个工作线程处理 {n_samples} 个点...")

    report = scheduler.run(n_samples, make_worker)

    if report.cancelled:
        raise ClusteringCancelled(report.n_processed, n_samples, n_visited=store.n_visited())

    labels = id_allocator.final_labels(store)
    n_merged = id_allocator.n_allocated - (int(labels.max()) if n_samples else 0)

    result = ClusteringResult(
        points=store.coords,
        labels=labels,
        core_mask=store.core_mask,
        config=config,
        execution_time=time.time() - start_time,
        scheduler_report=report,
        n_merged_ids=n_merged
    )

    if verbose:
        print(f"聚类完成: {result.n_clusters} 个簇, {result.n_noise} 个噪声点, "
              f"耗时 {result.execution_time:.4f} 秒")

    return result


class DBSCANConcurrent:
    """多线程版本的DBSCAN聚类算法"""

    def __init__(self, eps: float = 2.5, min_samples: int = 2,
                 max_concurrency: int = 16,
                 max_neighbors: Optional[int] = None,
                 lock_stripes: int = 64,
                 verbose: bool = False):
        """
        初始化并发DBSCAN参数

        Args:
            eps: 邻域半径
            min_samples: 核心点的最小邻居数（含自身）
            max_concurrency: 工作线程数量
            max_neighbors: 单次邻域查询的邻居上限，None表示不限制
            lock_stripes: 分段锁数量
            verbose: 是否打印进度信息
        """
        self.eps = eps
        self.min_samples = min_samples
        self.max_concurrency = max_concurrency
        self.max_neighbors = max_neighbors
        self.lock_stripes = lock_stripes
        self.verbose = verbose

        self.labels_ = None
        self.core_sample_indices_ = None
        self.components_ = None
        self.result_: Optional[ClusteringResult] = None
        self.execution_time = 0
        self._cancel_event = threading.Event()

    @property
    def config(self) -> ClusteringConfig:
        return ClusteringConfig(
            epsilon=self.eps,
            min_pts=self.min_samples,
            max_concurrency=self.max_concurrency,
            max_neighbors_per_query=self.max_neighbors,
            lock_stripes=self.lock_stripes
        )

    def fit(self, points: np.ndarray) -> 'DBSCANConcurrent':
        """
        执行并发DBSCAN聚类

        Args:
            points: 形状为(n_samples, 2)的numpy数组

        Returns:
            self: 返回聚类器实例
        """
        config = self.config.validate()
        self._cancel_event.clear()

        result = _run(config, points, self._cancel_event, self.verbose)

        self.result_ = result
        self.labels_ = result.labels
        self.core_sample_indices_ = np.where(result.core_mask)[0]
        self.components_ = result.points[self.core_sample_indices_]
        self.execution_time = result.execution_time

        return self

    def fit_predict(self, points: np.ndarray) -> np.ndarray:
        return self.fit(points).labels_

    def cancel(self) -> None:
        """从其他线程请求取消正在进行的fit"""
        self._cancel_event.set()

    def get_cluster_stats(self) -> dict:
        """
        获取聚类统计信息（与串行版本兼容）
        """
        if self.result_ is None:
            return {}

        stats = self.result_.get_cluster_stats()
        stats['max_concurrency'] = self.max_concurrency
        return stats

    def get_performance_stats(self) -> dict:
        """
        获取性能统计信息

        Returns:
            性能统计字典
        """
        stats = self.get_cluster_stats()
        if self.result_ is not None and self.result_.scheduler_report is not None:
            stats['scheduler'] = self.result_.scheduler_report.to_dict()
        return stats
