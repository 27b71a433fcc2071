#!/usr/bin/env python3
"""
运行并发DBSCAN聚类算法
读取 "x y" 点文件，写出 "x y label" 结果文件
"""

import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
import json
from typing import Dict, Any, Optional

import numpy as np

from src.clustering.dbscan_concurrent import cluster, ClusteringResult
from src.clustering.errors import ClusteringError
from src.data_processing.loader import load_points, save_labeled_points
from src.profiling.memory_profiler import MemoryProfiler
from src.profiling.time_profiler import TimeProfiler
from src.visualization.plot_clusters import plot_clustering_result


def run_concurrent_dbscan(points: np.ndarray,
                          eps: float = 2.5,
                          min_pts: int = 2,
                          max_concurrency: int = 16,
                          max_neighbors: Optional[int] = None) -> Dict[str, Any]:
    """
    运行并发DBSCAN并在外部记录时间与内存

    Args:
        points: 点数据
        eps: 邻域半径
        min_pts: 核心点的最小邻居数（含自身）
        max_concurrency: 工作线程数
        max_neighbors: 单次邻域查询的邻居上限

    Returns:
        聚类结果和性能数据
    """
    print("\n" + "=" * 60)
    print("运行并发DBSCAN聚类")
    print("=" * 60)

    print(f"算法参数:")
    print(f"  eps (邻域半径): {eps}")
    print(f"  min_pts (最小邻居数): {min_pts}")
    print(f"  数据点数量: {len(points)}")
    print(f"  工作线程数: {max_concurrency}")

    time_profiler = TimeProfiler()
    memory_profiler = MemoryProfiler(track_allocations=True, verbose=True)

    (result, time_analysis), memory_analysis = memory_profiler.profile_function(
        time_profiler.profile_function, cluster, points, eps, min_pts,
        max_concurrency=max_concurrency, max_neighbors_per_query=max_neighbors
    )

    stats = result.get_cluster_stats()

    print(f"\n聚类结果:")
    print(f"  聚类数量: {stats['n_clusters']}")
    print(f"  核心点数量: {stats['n_core_points']}")
    print(f"  噪声点数量: {stats['n_noise']}")
    print(f"  合并的簇ID: {stats['n_merged_ids']}")

    print(f"\n性能统计:")
    print(f"  DBSCAN运行时间: {time_analysis['execution_time']:.4f} 秒")
    print(f"  内存分配峰值: {memory_analysis['allocated_peak_mb'] * 1024:.0f} KB")
    print(f"  驻留内存增量: {memory_analysis['retained_mb'] * 1024:.0f} KB")

    return {
        'algorithm': 'DBSCAN_Concurrent',
        'parameters': result.config.to_dict(),
        'results': {
            'n_clusters': stats['n_clusters'],
            'n_core_points': stats['n_core_points'],
            'n_noise': stats['n_noise'],
            'n_merged_ids': stats['n_merged_ids'],
            'cluster_sizes': stats['cluster_sizes']
        },
        'performance': {
            'execution_time': time_analysis['execution_time'],
            'memory': memory_analysis,
            'scheduler': result.scheduler_report.to_dict() if result.scheduler_report else {}
        },
        'result': result
    }


def save_results(run: Dict[str, Any], output_path: Path, output_dir: Path,
                 visualize: bool = True) -> None:
    """
    保存标注结果、JSON摘要和可视化

    Args:
        run: run_concurrent_dbscan 的返回值
        output_path: 标注点输出文件
        output_dir: 摘要与图表输出目录
        visualize: 是否生成聚类图
    """
    result: ClusteringResult = run['result']

    n_written = save_labeled_points(result, output_path)
    print(f"写出点数: {n_written} -> {output_path}")

    output_dir.mkdir(parents=True, exist_ok=True)
    summary = {key: value for key, value in run.items() if key != 'result'}
    summary_file = output_dir / 'summary.json'
    with open(summary_file, 'w') as f:
        json.dump(summary, f, indent=2, default=str)
    print(f"摘要已保存到: {summary_file}")

    if visualize and len(result):
        import matplotlib
        matplotlib.use('Agg')
        plot_path = output_dir / 'clusters.png'
        plot_clustering_result(result, save_path=str(plot_path))
        print(f"聚类图已保存到: {plot_path}")


def main():
    """主函数"""
    parser = argparse.ArgumentParser(description='运行并发DBSCAN聚类算法')
    parser.add_argument('--data', type=str, default='data_10000.txt',
                        help='输入点文件，每行 "x y"（默认: data_10000.txt）')
    parser.add_argument('--output', type=str, default='output.txt',
                        help='输出文件，每行 "x y label"（默认: output.txt）')
    parser.add_argument('--eps', type=float, default=2.5,
                        help='DBSCAN邻域半径（默认: 2.5）')
    parser.add_argument('--min-pts', type=int, default=2,
                        help='核心点最小邻居数，含自身（默认: 2）')
    parser.add_argument('--max-concurrency', type=int, default=16,
                        help='工作线程数（默认: 16）')
    parser.add_argument('--max-neighbors', type=int,
                        help='单次邻域查询的邻居上限（默认: 不限制）')
    parser.add_argument('--max-points', type=int, default=10000,
                        help='最多加载的点数（默认: 10000）')
    parser.add_argument('--output-dir', type=str, default='./results/concurrent',
                        help='摘要与图表输出目录（默认: ./results/concurrent）')
    parser.add_argument('--no-visualize', action='store_true',
                        help='不生成可视化图表')

    args = parser.parse_args()

    try:
        points = load_points(args.data, max_points=args.max_points)
        if len(points) == 0:
            print(f"错误: 没有从 {args.data} 加载到任何点")
            sys.exit(1)
        print(f"加载了 {len(points)} 个点")

        run = run_concurrent_dbscan(
            points,
            eps=args.eps,
            min_pts=args.min_pts,
            max_concurrency=args.max_concurrency,
            max_neighbors=args.max_neighbors
        )

        save_results(run, Path(args.output), Path(args.output_dir),
                     visualize=not args.no_visualize)

    except (ClusteringError, OSError) as e:
        print(f"错误: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
