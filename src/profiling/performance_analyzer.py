"""
综合性能分析器
比较不同并发度下的执行时间、内存与聚类一致性
"""

import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Any, Sequence
from dataclasses import dataclass, asdict
import json
from pathlib import Path

from sklearn.cluster import DBSCAN
from sklearn.metrics import adjusted_rand_score

from ..clustering.dbscan_concurrent import DBSCANConcurrent
from ..clustering.dbscan_sequential import DBSCANSequential
from ..clustering.utils import same_partition
from .memory_profiler import MemoryProfiler
from .time_profiler import TimeProfiler


@dataclass
class BenchmarkResult:
    """单次基准测试结果"""
    name: str
    max_concurrency: int
    execution_time: float
    memory_increase_mb: float
    allocated_peak_mb: float
    n_clusters: int
    n_noise: int
    accuracy: Optional[float] = None
    same_partition: Optional[bool] = None
    success: bool = True
    error: Optional[str] = None


def reference_labels(points: np.ndarray, eps: float, min_samples: int,
                     method: str = 'sequential') -> np.ndarray:
    """
    计算参考聚类标签（0为噪声）

    Args:
        points: 点数据
        eps: 邻域半径
        min_samples: 核心点的最小邻居数（含自身）
        method: 'sequential' 使用串行实现，'sklearn' 使用scikit-learn

    Returns:
        标签数组
    """
    if method == 'sequential':
        return DBSCANSequential(eps=eps, min_samples=min_samples).fit(points).labels_
    elif method == 'sklearn':
        labels = DBSCAN(eps=eps, min_samples=min_samples).fit(points).labels_
        # scikit-learn用-1表示噪声，簇从0开始
        return np.where(labels < 0, 0, labels + 1)
    else:
        raise ValueError(f"未知的参考方法: {method}")


class PerformanceAnalyzer:
    """综合性能分析器"""

    def __init__(self, output_dir: Optional[str] = None, verbose: bool = False):
        """
        初始化性能分析器

        Args:
            output_dir: 结果输出目录，None表示不写文件
            verbose: 是否打印进度
        """
        self.output_dir = Path(output_dir) if output_dir else None
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)

        self.verbose = verbose
        self.results: List[BenchmarkResult] = []
        self.comparison_data: pd.DataFrame = pd.DataFrame()

    def benchmark(self, points: np.ndarray, eps: float, min_samples: int,
                  max_concurrency: int = 16,
                  reference: Optional[np.ndarray] = None,
                  name: Optional[str] = None) -> BenchmarkResult:
        """
        基准测试一次并发聚类

        Args:
            points: 点数据
            eps: 邻域半径
            min_samples: 核心点的最小邻居数
            max_concurrency: 工作线程数
            reference: 参考标签（用于一致性评估）
            name: 结果名称

        Returns:
            基准测试结果
        """
        name = name or f"concurrency_{max_concurrency}"
        model = DBSCANConcurrent(eps=eps, min_samples=min_samples,
                                 max_concurrency=max_concurrency)

        time_profiler = TimeProfiler()
        memory_profiler = MemoryProfiler(track_allocations=True)

        try:
            (_, time_analysis), memory_analysis = memory_profiler.profile_function(
                time_profiler.profile_function, model.fit, points
            )
        except Exception as e:
            if self.verbose:
                print(f"基准测试 {name} 失败: {e}")
            result = BenchmarkResult(
                name=name, max_concurrency=max_concurrency, execution_time=0.0,
                memory_increase_mb=0.0, allocated_peak_mb=0.0, n_clusters=0,
                n_noise=0, success=False, error=str(e)
            )
            self.results.append(result)
            return result

        stats = model.get_cluster_stats()
        result = BenchmarkResult(
            name=name,
            max_concurrency=max_concurrency,
            execution_time=time_analysis['execution_time'],
            memory_increase_mb=memory_analysis['memory_increase_mb'],
            allocated_peak_mb=memory_analysis['allocated_peak_mb'],
            n_clusters=stats['n_clusters'],
            n_noise=stats['n_noise']
        )

        if reference is not None:
            result.accuracy = float(adjusted_rand_score(reference, model.labels_))
            result.same_partition = same_partition(reference, model.labels_)

        if self.verbose:
            print(f"{name}: {result.execution_time:.4f} 秒, "
                  f"{result.n_clusters} 个簇, {result.n_noise} 个噪声点")

        self.results.append(result)
        return result

    def compare_concurrency_levels(self, points: np.ndarray, eps: float, min_samples: int,
                                   levels: Sequence[int] = (1, 2, 4, 8, 16),
                                   reference_method: Optional[str] = 'sequential',
                                   test_name: str = "concurrency") -> pd.DataFrame:
        """
        在多个并发度下运行并比较

        Args:
            points: 点数据
            eps: 邻域半径
            min_samples: 核心点的最小邻居数
            levels: 并发度列表
            reference_method: 参考实现，None表示不评估一致性
            test_name: 输出文件前缀

        Returns:
            比较结果DataFrame
        """
        reference = None
        if reference_method is not None:
            reference = reference_labels(points, eps, min_samples, reference_method)

        rows = []
        for level in levels:
            result = self.benchmark(points, eps, min_samples,
                                    max_concurrency=level, reference=reference)
            rows.append(asdict(result))

        df = pd.DataFrame(rows)
        successful = df[df['success']]
        if not successful.empty:
            baseline = successful['execution_time'].iloc[0]
            df['speedup'] = baseline / df['execution_time'].where(df['execution_time'] > 0)

        self.comparison_data = df
        self._save_comparison_results(test_name)
        return df

    def _save_comparison_results(self, test_name: str) -> None:
        """保存比较结果"""
        if self.output_dir is None or self.comparison_data.empty:
            return

        csv_path = self.output_dir / f"{test_name}_comparison.csv"
        self.comparison_data.to_csv(csv_path, index=False)

        json_path = self.output_dir / f"{test_name}_comparison.json"
        with open(json_path, 'w') as f:
            json.dump(self.comparison_data.to_dict('records'), f, indent=2, default=str)

        if self.verbose:
            print(f"比较结果已保存到: {csv_path}, {json_path}")

    def summary(self) -> Dict[str, Any]:
        """汇总所有成功的基准测试"""
        successful = [r for r in self.results if r.success]
        if not successful:
            return {}

        fastest = min(successful, key=lambda r: r.execution_time)
        return {
            'n_runs': len(self.results),
            'n_failed': len(self.results) - len(successful),
            'fastest': fastest.name,
            'fastest_time': fastest.execution_time,
            'all_partitions_equal': all(r.same_partition for r in successful
                                        if r.same_partition is not None)
        }


def compare_implementations(points: np.ndarray, eps: float, min_samples: int,
                            levels: Sequence[int] = (1, 2, 4, 8, 16),
                            output_dir: Optional[str] = None) -> pd.DataFrame:
    """
    快速比较多个并发度的便捷函数

    Args:
        points: 点数据
        eps: 邻域半径
        min_samples: 核心点的最小邻居数
        levels: 并发度列表
        output_dir: 输出目录

    Returns:
        比较结果DataFrame
    """
    analyzer = PerformanceAnalyzer(output_dir)
    return analyzer.compare_concurrency_levels(points, eps, min_samples, levels)
