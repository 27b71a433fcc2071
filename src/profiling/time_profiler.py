"""
时间性能分析器
在聚类引擎外部测量执行时间，可选cProfile详细分析
"""

import time
import cProfile
import pstats
import io
from contextlib import contextmanager
from typing import Dict, List, Tuple, Optional, Any, Callable
from functools import wraps
import numpy as np
from dataclasses import dataclass, field
from collections import defaultdict
import warnings


@dataclass
class TimeMeasurement:
    """时间测量结果"""
    name: str
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    children: List['TimeMeasurement'] = field(default_factory=list)

    def stop(self) -> float:
        """停止计时并返回持续时间"""
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time
        return self.duration


class TimeProfiler:
    """时间性能分析器"""

    def __init__(self, enable_profiling: bool = False):
        """
        初始化时间分析器

        Args:
            enable_profiling: 是否启用cProfile详细分析
        """
        self.enable_profiling = enable_profiling
        self.measurements: List[TimeMeasurement] = []
        self.current_stack: List[TimeMeasurement] = []
        self.function_timings: Dict[str, List[float]] = defaultdict(list)
        self.profiler: Optional[cProfile.Profile] = None

    def start(self, name: str) -> TimeMeasurement:
        """
        开始计时，嵌套调用会形成调用树

        Args:
            name: 测量名称

        Returns:
            时间测量对象
        """
        measurement = TimeMeasurement(name=name, start_time=time.perf_counter())

        if self.current_stack:
            self.current_stack[-1].children.append(measurement)
        else:
            self.measurements.append(measurement)

        self.current_stack.append(measurement)
        return measurement

    def stop(self, name: Optional[str] = None) -> Optional[float]:
        """
        停止计时

        Args:
            name: 要停止的测量名称（None则停止栈顶测量）

        Returns:
            持续时间（秒）
        """
        if not self.current_stack:
            return None

        if name is not None and self.current_stack[-1].name != name:
            warnings.warn(f"测量 '{name}' 不在栈顶，停止的是 '{self.current_stack[-1].name}'")

        measurement = self.current_stack.pop()
        duration = measurement.stop()
        self.function_timings[measurement.name].append(duration)
        return duration

    @contextmanager
    def measure(self, name: str):
        """以上下文管理器方式计时一个代码块"""
        self.start(name)
        try:
            yield
        finally:
            self.stop(name)

    def profile_function(self, func: Callable, *args, **kwargs) -> Tuple[Any, Dict[str, Any]]:
        """
        分析函数的执行时间

        Args:
            func: 要分析的函数
            *args: 函数参数
            **kwargs: 函数关键字参数

        Returns:
            (函数结果, 性能分析结果)
        """
        name = getattr(func, '__name__', 'function')

        if self.enable_profiling:
            self.profiler = cProfile.Profile()
            self.profiler.enable()

        try:
            with self.measure(name):
                result = func(*args, **kwargs)
        finally:
            if self.profiler is not None:
                self.profiler.disable()

        analysis = {
            'function_name': name,
            'execution_time': self.function_timings[name][-1],
            'n_calls': len(self.function_timings[name])
        }

        if self.profiler is not None:
            analysis['top_functions'] = self._top_functions(limit=10)

        return result, analysis

    def _top_functions(self, limit: int = 10) -> List[Dict[str, Any]]:
        """按累计时间排序的cProfile统计"""
        stats = pstats.Stats(self.profiler, stream=io.StringIO())
        top = []
        for (filename, lineno, func_name), (_, ncalls, tottime, cumtime, _) in stats.stats.items():
            top.append({
                'function': f"{filename}:{lineno}({func_name})",
                'ncalls': ncalls,
                'tottime': tottime,
                'cumtime': cumtime
            })
        top.sort(key=lambda x: x['cumtime'], reverse=True)
        return top[:limit]

    @property
    def total_execution_time(self) -> float:
        return float(sum(m.duration or 0.0 for m in self.measurements))

    def generate_performance_report(self) -> Dict[str, Any]:
        """
        生成性能分析报告

        Returns:
            性能报告
        """
        def node(meas: TimeMeasurement, depth: int = 0) -> Dict[str, Any]:
            return {
                'name': meas.name,
                'duration': meas.duration or 0,
                'depth': depth,
                'children': [node(child, depth + 1) for child in meas.children]
            }

        return {
            'total_execution_time': self.total_execution_time,
            'call_tree': [node(meas) for meas in self.measurements],
            'function_timings': {
                func: {
                    'total': float(np.sum(times)),
                    'avg': float(np.mean(times)),
                    'std': float(np.std(times)),
                    'n_calls': len(times)
                }
                for func, times in self.function_timings.items()
            }
        }

    def reset(self) -> None:
        """重置分析器"""
        self.measurements.clear()
        self.current_stack.clear()
        self.function_timings.clear()
        self.profiler = None


def profile_function(func: Callable = None, detailed: bool = False):
    """
    装饰器：被装饰函数返回 (结果, 性能分析结果)

    Args:
        func: 要装饰的函数
        detailed: 是否启用cProfile
    """

    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            profiler = TimeProfiler(enable_profiling=detailed)
            return profiler.profile_function(f, *args, **kwargs)

        return wrapper

    if func is None:
        return decorator
    return decorator(func)
