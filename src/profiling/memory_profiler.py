"""
内存分析器
在聚类引擎外部监控进程内存与Python内存分配
"""

import tracemalloc
import psutil
import os
import time
from typing import Dict, List, Tuple, Optional, Any, Callable
from dataclasses import dataclass

import pandas as pd


@dataclass
class MemorySnapshot:
    """内存快照"""
    label: str
    timestamp: float
    memory_usage_mb: float
    peak_memory_mb: float
    traced_current_mb: float = 0.0
    traced_peak_mb: float = 0.0


class MemoryProfiler:
    """内存分析器"""

    def __init__(self, track_allocations: bool = True, verbose: bool = False):
        """
        初始化内存分析器

        Args:
            track_allocations: 是否用tracemalloc跟踪Python内存分配
            verbose: 是否打印快照信息
        """
        self.track_allocations = track_allocations
        self.verbose = verbose
        self.snapshots: List[MemorySnapshot] = []
        self.start_time: Optional[float] = None
        self.process = psutil.Process(os.getpid())
        self.peak_memory = 0.0
        self._started_tracing = False

    def start(self) -> None:
        """开始内存分析"""
        self.start_time = time.time()
        self.snapshots.clear()
        self.peak_memory = 0.0

        if self.track_allocations and not tracemalloc.is_tracing():
            tracemalloc.start()
            self._started_tracing = True

    def take_snapshot(self, label: str = "") -> MemorySnapshot:
        """
        拍摄内存快照

        Args:
            label: 快照标签

        Returns:
            内存快照对象
        """
        current_time = time.time() - self.start_time if self.start_time else 0.0
        memory_usage_mb = self.process.memory_info().rss / 1024 / 1024
        self.peak_memory = max(self.peak_memory, memory_usage_mb)

        traced_current, traced_peak = 0, 0
        if tracemalloc.is_tracing():
            traced_current, traced_peak = tracemalloc.get_traced_memory()

        snapshot = MemorySnapshot(
            label=label,
            timestamp=current_time,
            memory_usage_mb=memory_usage_mb,
            peak_memory_mb=self.peak_memory,
            traced_current_mb=traced_current / 1024 / 1024,
            traced_peak_mb=traced_peak / 1024 / 1024
        )
        self.snapshots.append(snapshot)

        if self.verbose and label:
            print(f"[{label}] 内存使用: {memory_usage_mb:.2f} MB, 峰值: {self.peak_memory:.2f} MB")

        return snapshot

    def stop(self) -> None:
        """停止内存分析"""
        if self._started_tracing and tracemalloc.is_tracing():
            tracemalloc.stop()
        self._started_tracing = False

        if self.verbose:
            print(f"内存分析已停止，峰值内存: {self.peak_memory:.2f} MB")

    def profile_function(self, func: Callable, *args, **kwargs) -> Tuple[Any, Dict[str, Any]]:
        """
        分析函数的内存使用

        Args:
            func: 要分析的函数
            *args: 函数参数
            **kwargs: 函数关键字参数

        Returns:
            (函数结果, 内存分析结果)
        """
        self.start()
        if tracemalloc.is_tracing():
            tracemalloc.reset_peak()

        try:
            before = self.take_snapshot("开始前")
            result = func(*args, **kwargs)
            after = self.take_snapshot("结束后")
        finally:
            self.stop()

        analysis = {
            'function_name': getattr(func, '__name__', 'function'),
            'memory_usage_before_mb': before.memory_usage_mb,
            'memory_usage_after_mb': after.memory_usage_mb,
            'memory_increase_mb': after.memory_usage_mb - before.memory_usage_mb,
            'peak_memory_mb': after.peak_memory_mb,
            # Python层面的分配量：峰值减去调用前的驻留量
            'allocated_peak_mb': max(after.traced_peak_mb - before.traced_current_mb, 0.0),
            'retained_mb': after.traced_current_mb - before.traced_current_mb
        }

        return result, analysis

    def analyze_memory_patterns(self) -> Dict[str, Any]:
        """
        分析内存使用模式

        Returns:
            内存模式分析结果
        """
        if len(self.snapshots) < 2:
            return {}

        df = pd.DataFrame([
            {'timestamp': s.timestamp, 'memory_usage_mb': s.memory_usage_mb}
            for s in self.snapshots
        ])

        return {
            'total_time': df['timestamp'].max() - df['timestamp'].min(),
            'avg_memory_usage_mb': df['memory_usage_mb'].mean(),
            'max_memory_usage_mb': df['memory_usage_mb'].max(),
            'min_memory_usage_mb': df['memory_usage_mb'].min(),
            'total_memory_growth_mb': df['memory_usage_mb'].iloc[-1] - df['memory_usage_mb'].iloc[0]
        }

    def __enter__(self):
        """上下文管理器入口"""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """上下文管理器出口"""
        self.stop()
