"""
聚类算法模块
包含DBSCAN算法的并发实现与串行参考实现
"""

from .config import ClusteringConfig
from .errors import ClusteringError, ConfigError, CapacityExceeded, ClusteringCancelled
from .point_store import PointStore, UNLABELED, NOISE
from .utils import NeighborFinder, region_query, same_partition
from .cluster_ids import ClusterIdAllocator
from .expander import ClusterExpander
from .dbscan_concurrent import DBSCANConcurrent, ClusteringResult, cluster
from .dbscan_sequential import DBSCANSequential

__all__ = [
    'ClusteringConfig',
    'ClusteringError',
    'ConfigError',
    'CapacityExceeded',
    'ClusteringCancelled',
    'PointStore',
    'UNLABELED',
    'NOISE',
    'NeighborFinder',
    'region_query',
    'same_partition',
    'ClusterIdAllocator',
    'ClusterExpander',
    'DBSCANConcurrent',
    'ClusteringResult',
    'cluster',
    'DBSCANSequential'
]
