#!/usr/bin/env python3
"""
性能分析脚本
比较不同工作线程数下并发DBSCAN的执行时间、内存与聚类一致性
"""

import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
from typing import Tuple

import numpy as np

from src.data_processing.loader import load_points
from src.profiling.performance_analyzer import PerformanceAnalyzer
from src.visualization.plot_performance import PerformanceVisualizer


def generate_test_data(n_points: int, n_centers: int = 20,
                       spread: float = 3.0,
                       data_range: Tuple[float, float] = (0.0, 500.0),
                       seed: int = 42) -> np.ndarray:
    """
    生成带若干高斯团簇和均匀背景噪声的测试数据

    Args:
        n_points: 点数
        n_centers: 团簇数
        spread: 团簇标准差
        data_range: 坐标范围
        seed: 随机种子

    Returns:
        测试数据数组
    """
    print(f"生成 {n_points} 个测试点...")

    rng = np.random.default_rng(seed)
    centers = rng.uniform(data_range[0], data_range[1], size=(n_centers, 2))

    n_noise = n_points // 10
    n_clustered = n_points - n_noise
    assignments = rng.integers(0, n_centers, size=n_clustered)
    clustered = centers[assignments] + rng.normal(0.0, spread, size=(n_clustered, 2))
    noise = rng.uniform(data_range[0], data_range[1], size=(n_noise, 2))

    return np.vstack([clustered, noise])


def main():
    """主函数"""
    parser = argparse.ArgumentParser(description='并发DBSCAN性能分析')
    parser.add_argument('--data', type=str,
                        help='输入点文件，如果未指定则使用生成的数据')
    parser.add_argument('--n-points', type=int, default=10000,
                        help='生成数据时的点数（默认: 10000）')
    parser.add_argument('--eps', type=float, default=2.5,
                        help='DBSCAN邻域半径（默认: 2.5）')
    parser.add_argument('--min-pts', type=int, default=4,
                        help='核心点最小邻居数，含自身（默认: 4）')
    parser.add_argument('--levels', type=int, nargs='+', default=[1, 2, 4, 8, 16],
                        help='要比较的工作线程数（默认: 1 2 4 8 16）')
    parser.add_argument('--reference', type=str, default='sequential',
                        choices=['sequential', 'sklearn', 'none'],
                        help='一致性评估的参考实现（默认: sequential）')
    parser.add_argument('--output-dir', type=str, default='./results/profiling',
                        help='输出目录（默认: ./results/profiling）')
    parser.add_argument('--no-visualize', action='store_true',
                        help='不生成可视化图表')

    args = parser.parse_args()

    print("并发DBSCAN性能分析")
    print("=" * 60)

    if args.data:
        points = load_points(args.data, max_points=args.n_points)
    else:
        points = generate_test_data(args.n_points)
    print(f"测试数据: {len(points)} 个点")

    analyzer = PerformanceAnalyzer(args.output_dir, verbose=True)
    comparison = analyzer.compare_concurrency_levels(
        points, args.eps, args.min_pts,
        levels=args.levels,
        reference_method=None if args.reference == 'none' else args.reference
    )

    print("\n" + "=" * 60)
    print(comparison[['name', 'execution_time', 'n_clusters', 'n_noise', 'accuracy']].to_string(index=False))

    summary = analyzer.summary()
    if summary:
        print(f"\n最快配置: {summary['fastest']} ({summary['fastest_time']:.4f} 秒)")
        print(f"各并发度划分一致: {summary['all_partitions_equal']}")

    if not args.no_visualize:
        import matplotlib
        matplotlib.use('Agg')
        PerformanceVisualizer().plot_concurrency_scaling(
            comparison, save_path=str(Path(args.output_dir) / 'concurrency_scaling.png')
        )


if __name__ == "__main__":
    main()
