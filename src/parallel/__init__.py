"""
并行计算模块
DBSCAN算法的线程池调度与同步原语
"""

from .sync import AtomicCounter, StripedLocks
from .workers import TaskScheduler, ClusteringWorker, WorkerStats, SchedulerReport

__all__ = [
    'AtomicCounter',
    'StripedLocks',
    'TaskScheduler',
    'ClusteringWorker',
    'WorkerStats',
    'SchedulerReport'
]
