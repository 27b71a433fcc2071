"""
聚类引擎异常定义
"""

from typing import Optional


class ClusteringError(Exception):
    """聚类引擎异常基类"""


class ConfigError(ClusteringError, ValueError):
    """聚类参数非法，在调度开始前抛出"""


class CapacityExceeded(ClusteringError, RuntimeError):
    """单次邻域查询结果超过 max_neighbors_per_query"""

    def __init__(self, point_index: int, count: int, limit: int):
        self.point_index = point_index
        self.count = count
        self.limit = limit
        super().__init__(
            f"点 {point_index} 的邻居数 {count} 超过上限 {limit}"
        )


class ClusteringCancelled(ClusteringError):
    """聚类被协作式取消，已启动的扩展均已完成"""

    def __init__(self, n_processed: int, n_points: int, n_visited: int = 0,
                 message: Optional[str] = None):
        self.n_processed = n_processed
        self.n_points = n_points
        self.n_visited = n_visited  # 含扩展中访问到的点
        super().__init__(message or f"聚类已取消: 已处理 {n_processed}/{n_points} 个点")
