"""
性能分析模块
聚类引擎外部的计时、内存监控与并发度对比
"""

from .memory_profiler import MemoryProfiler, MemorySnapshot
from .time_profiler import TimeProfiler, profile_function
from .performance_analyzer import PerformanceAnalyzer, BenchmarkResult, compare_implementations, reference_labels

__all__ = [
    'MemoryProfiler',
    'MemorySnapshot',
    'TimeProfiler',
    'profile_function',
    'PerformanceAnalyzer',
    'BenchmarkResult',
    'compare_implementations',
    'reference_labels'
]
