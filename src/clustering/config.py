"""
聚类参数配置
"""

import math
import numbers
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

from .errors import ConfigError


def _is_int(value) -> bool:
    """整数参数，不接受bool"""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass
class ClusteringConfig:
    """并发DBSCAN参数"""
    epsilon: float
    min_pts: int
    max_concurrency: int = 16
    max_neighbors_per_query: Optional[int] = None  # None表示不限制（即点的总数）
    lock_stripes: int = 64

    @property
    def epsilon_squared(self) -> float:
        return self.epsilon * self.epsilon

    def validate(self) -> 'ClusteringConfig':
        """
        检查参数合法性

        Returns:
            self，便于链式调用

        Raises:
            ConfigError: 任一参数非法
        """
        if not isinstance(self.epsilon, numbers.Real) or isinstance(self.epsilon, bool) \
                or not math.isfinite(self.epsilon) \
                or self.epsilon <= 0:
            raise ConfigError(f"epsilon必须为正的有限实数: {self.epsilon}")
        if not _is_int(self.min_pts) or self.min_pts < 1:
            raise ConfigError(f"min_pts必须为不小于1的整数: {self.min_pts}")
        if not _is_int(self.max_concurrency) or self.max_concurrency < 1:
            raise ConfigError(f"max_concurrency必须为不小于1的整数: {self.max_concurrency}")
        if self.max_neighbors_per_query is not None and (
                not _is_int(self.max_neighbors_per_query) or self.max_neighbors_per_query < 1):
            raise ConfigError(f"max_neighbors_per_query必须为正整数: {self.max_neighbors_per_query}")
        if not _is_int(self.lock_stripes) or self.lock_stripes < 1:
            raise ConfigError(f"lock_stripes必须为正整数: {self.lock_stripes}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
