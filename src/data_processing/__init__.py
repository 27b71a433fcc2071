"""
数据处理模块
点坐标的加载与聚类结果的写出
"""

from .loader import load_points, load_points_dataframe, save_labeled_points, get_dataset_info

__all__ = [
    'load_points',
    'load_points_dataframe',
    'save_labeled_points',
    'get_dataset_info'
]
