"""
并行工作线程管理
固定大小的线程池消费共享的点索引队列
"""

import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Callable, Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ..clustering.cluster_ids import ClusterIdAllocator
    from ..clustering.expander import ClusterExpander
    from ..clustering.point_store import PointStore
    from ..clustering.utils import NeighborFinder


@dataclass
class WorkerStats:
    """工作线程统计"""
    worker_id: int
    n_tasks_completed: int = 0
    n_clusters_seeded: int = 0
    n_noise_marked: int = 0
    total_processing_time: float = 0.0

    @property
    def avg_processing_time(self) -> float:
        if self.n_tasks_completed == 0:
            return 0.0
        return self.total_processing_time / self.n_tasks_completed


@dataclass
class SchedulerReport:
    """一次调度的汇总结果"""
    n_tasks: int
    n_workers: int
    worker_stats: List[WorkerStats] = field(default_factory=list)
    cancelled: bool = False
    elapsed_time: float = 0.0

    @property
    def n_processed(self) -> int:
        return sum(s.n_tasks_completed for s in self.worker_stats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'n_tasks': self.n_tasks,
            'n_workers': self.n_workers,
            'n_processed': self.n_processed,
            'cancelled': self.cancelled,
            'elapsed_time': self.elapsed_time,
            'workers': [
                {
                    'worker_id': s.worker_id,
                    'n_tasks_completed': s.n_tasks_completed,
                    'n_clusters_seeded': s.n_clusters_seeded,
                    'avg_processing_time': s.avg_processing_time
                }
                for s in self.worker_stats
            ]
        }


class ClusteringWorker:
    """处理单个点索引的DBSCAN工作线程"""

    def __init__(self, worker_id: int, store: 'PointStore', finder: 'NeighborFinder',
                 expander: 'ClusterExpander', id_allocator: 'ClusterIdAllocator',
                 min_pts: int):
        """
        初始化工作线程

        Args:
            worker_id: 工作线程ID
            store: 共享点集
            finder: 邻域查询器
            expander: 簇扩展器
            id_allocator: 簇ID分配器
            min_pts: 核心点的最小邻居数（含自身）
        """
        self.worker_id = worker_id
        self.store = store
        self.finder = finder
        self.expander = expander
        self.id_allocator = id_allocator
        self.min_pts = min_pts
        self.stats = WorkerStats(worker_id=worker_id)

    def process_point(self, point_idx: int) -> None:
        """
        处理一个点：抢占visited，计算邻域，核心点则分配新簇ID并扩展

        Args:
            point_idx: 点索引
        """
        if not self.store.test_and_set_visited(point_idx):
            return

        neighbors = self.finder.neighbors(point_idx)

        if len(neighbors) < self.min_pts:
            # 暂记为噪声，之后可能作为边界点被吸收
            if self.store.mark_noise(point_idx):
                self.stats.n_noise_marked += 1
            return

        self.store.mark_core(point_idx)
        cluster_id = self.id_allocator.next_id()
        self.stats.n_clusters_seeded += 1
        self.expander.expand(cluster_id, neighbors)

    def run(self, task_queue: queue.Queue, cancel_event: threading.Event,
            abort_event: threading.Event) -> WorkerStats:
        """
        消费任务队列直到为空、被取消或其他线程出错

        Args:
            task_queue: 点索引队列
            cancel_event: 协作式取消信号
            abort_event: 错误中止信号

        Returns:
            工作线程统计
        """
        while not (cancel_event.is_set() or abort_event.is_set()):
            try:
                point_idx = task_queue.get_nowait()
            except queue.Empty:
                break

            start_time = time.time()
            try:
                self.process_point(point_idx)
            except Exception:
                abort_event.set()
                raise
            self.stats.n_tasks_completed += 1
            self.stats.total_processing_time += time.time() - start_time

        return self.stats


class TaskScheduler:
    """
    有界并行调度器

    线程池大小限制的是工作线程的创建数量，而不只是同时执行的数量：
    所有点索引放入一个共享队列，由固定数量的工作线程循环取出处理。
    """

    def __init__(self, max_concurrency: int = 16,
                 cancel_event: Optional[threading.Event] = None):
        """
        初始化调度器

        Args:
            max_concurrency: 工作线程数量
            cancel_event: 外部取消信号（可选）
        """
        if max_concurrency < 1:
            raise ValueError(f"工作线程数必须为正数: {max_concurrency}")

        self.max_concurrency = max_concurrency
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.abort_event = threading.Event()

    def cancel(self) -> None:
        """停止分发新任务，进行中的扩展会执行完毕"""
        self.cancel_event.set()

    def run(self, n_tasks: int,
            worker_factory: Callable[[int], ClusteringWorker]) -> SchedulerReport:
        """
        调度所有点索引并等待全部工作线程结束

        Args:
            n_tasks: 点的数量，任务为 0..n_tasks-1
            worker_factory: 根据worker_id创建工作线程对象

        Returns:
            调度汇总

        Raises:
            Exception: 任一工作线程抛出的第一个异常
        """
        start_time = time.time()

        task_queue: queue.Queue = queue.Queue()
        for point_idx in range(n_tasks):
            task_queue.put(point_idx)

        n_workers = min(self.max_concurrency, max(n_tasks, 1))
        workers = [worker_factory(worker_id) for worker_id in range(n_workers)]

        first_error: Optional[BaseException] = None
        with ThreadPoolExecutor(max_workers=n_workers,
                                thread_name_prefix='dbscan-worker') as executor:
            futures = [
                executor.submit(worker.run, task_queue, self.cancel_event, self.abort_event)
                for worker in workers
            ]

            # 屏障：等待所有工作线程结束
            for future in futures:
                error = future.exception()
                if error is not None and first_error is None:
                    first_error = error

        if first_error is not None:
            raise first_error

        report = SchedulerReport(
            n_tasks=n_tasks,
            n_workers=n_workers,
            worker_stats=[worker.stats for worker in workers],
            cancelled=self.cancel_event.is_set() and not task_queue.empty(),
            elapsed_time=time.time() - start_time
        )

        return report
