"""
聚类结果可视化
二维点集聚类结果的散点图与簇大小分布
"""

import numpy as np
import matplotlib
import matplotlib.pyplot as plt
from typing import Tuple, Optional
from scipy.spatial import ConvexHull, QhullError

from ..clustering.dbscan_concurrent import ClusteringResult


class ClusterVisualizer:
    """聚类可视化器"""

    def __init__(self, figsize: Tuple[int, int] = (12, 10),
                 colormap: str = 'tab20'):
        """
        初始化可视化器

        Args:
            figsize: 图形大小
            colormap: 颜色映射
        """
        self.figsize = figsize
        self.colormap = colormap
        self.cmap = matplotlib.colormaps[colormap]

    def plot_clusters_2d(self, points: np.ndarray, labels: np.ndarray,
                         title: str = "DBSCAN聚类结果",
                         save_path: Optional[str] = None,
                         show_noise: bool = True,
                         draw_hulls: bool = True,
                         alpha: float = 0.6,
                         s: float = 10.0) -> plt.Figure:
        """
        绘制2D聚类结果

        Args:
            points: 点数据，形状为(n, 2)
            labels: 聚类标签，0为噪声
            title: 图表标题
            save_path: 保存路径
            show_noise: 是否显示噪声点
            draw_hulls: 是否绘制簇的凸包
            alpha: 透明度
            s: 点的大小

        Returns:
            matplotlib图形对象
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        cluster_labels = [label for label in np.unique(labels) if label != 0]
        colors = self.cmap(np.linspace(0, 1, max(len(cluster_labels), 1)))

        if show_noise and np.any(labels == 0):
            noise_points = points[labels == 0]
            ax.scatter(noise_points[:, 0], noise_points[:, 1], c='gray', marker='x',
                       s=s * 0.5, alpha=alpha * 0.5, label='噪声点')

        for color, label in zip(colors, cluster_labels):
            cluster_points = points[labels == label]
            ax.scatter(cluster_points[:, 0], cluster_points[:, 1], c=[color],
                       marker='o', s=s, alpha=alpha, label=f'聚类 {label}',
                       edgecolors='w', linewidths=0.5)

            if draw_hulls and len(cluster_points) > 3:
                try:
                    hull = ConvexHull(cluster_points)
                except QhullError:
                    # 共线或重合的点无法构成凸包
                    continue
                hull_points = cluster_points[hull.vertices]
                hull_points = np.vstack([hull_points, hull_points[0]])
                ax.plot(hull_points[:, 0], hull_points[:, 1],
                        color=color, alpha=0.3, linewidth=1, linestyle='--')

        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.set_xlabel('X坐标')
        ax.set_ylabel('Y坐标')
        ax.grid(True, alpha=0.3)

        # 图例只显示前15项
        handles, legend_labels = ax.get_legend_handles_labels()
        if handles:
            ax.legend(handles[:15], legend_labels[:15], loc='upper right', fontsize=8)

        stats_text = (f'聚类数: {len(cluster_labels)}\n'
                      f'噪声点: {int(np.sum(labels == 0))}\n'
                      f'总点数: {len(points)}')
        ax.text(0.02, 0.98, stats_text, transform=ax.transAxes,
                fontsize=10, verticalalignment='top',
                bbox=dict(boxstyle='round', facecolor='wheat', alpha=0.8))

        fig.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')

        return fig

    def plot_cluster_sizes(self, labels: np.ndarray,
                           title: str = "聚类大小分布",
                           save_path: Optional[str] = None,
                           top_n: int = 30) -> plt.Figure:
        """
        绘制簇大小柱状图（按大小降序）

        Args:
            labels: 聚类标签
            title: 图表标题
            save_path: 保存路径
            top_n: 最多显示的簇数

        Returns:
            matplotlib图形对象
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        cluster_ids, sizes = np.unique(labels[labels != 0], return_counts=True)
        order = np.argsort(sizes)[::-1][:top_n]

        if len(order):
            ax.bar(range(len(order)), sizes[order],
                   color=self.cmap(np.linspace(0, 1, len(order))))
            ax.set_xticks(range(len(order)))
            ax.set_xticklabels(cluster_ids[order], rotation=45)

        ax.set_title(title, fontsize=12)
        ax.set_xlabel('聚类ID')
        ax.set_ylabel('点数')
        fig.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')

        return fig


def plot_clustering_result(result: ClusteringResult,
                           save_path: Optional[str] = None,
                           title: str = "并发DBSCAN聚类结果") -> plt.Figure:
    """
    绘制聚类结果的便捷函数

    Args:
        result: 聚类结果
        save_path: 保存路径
        title: 图表标题

    Returns:
        matplotlib图形对象
    """
    visualizer = ClusterVisualizer()
    return visualizer.plot_clusters_2d(result.points, result.labels,
                                       title=title, save_path=save_path)
