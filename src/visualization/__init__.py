"""
可视化模块
聚类结果和性能分析的可视化
"""

import matplotlib

# 中文标题与标签：优先使用常见的中文字体，找不到时回退到原有字体
CJK_FONTS = ['Noto Sans CJK SC', 'SimHei', 'WenQuanYi Micro Hei', 'Microsoft YaHei', 'PingFang SC']
matplotlib.rcParams['font.sans-serif'] = CJK_FONTS + [
    name for name in matplotlib.rcParams['font.sans-serif'] if name not in CJK_FONTS
]
matplotlib.rcParams['axes.unicode_minus'] = False

from .plot_clusters import ClusterVisualizer, plot_clustering_result
from .plot_performance import PerformanceVisualizer

__all__ = [
    'ClusterVisualizer',
    'plot_clustering_result',
    'PerformanceVisualizer'
]
