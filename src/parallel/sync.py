"""
线程同步原语
为共享点集提供逐字段的原子操作支持
"""

import threading
from typing import List


class AtomicCounter:
    """线程安全的单调递增计数器"""

    def __init__(self, start: int = 0):
        self._value = start
        self._lock = threading.Lock()

    def increment(self) -> int:
        """
        自增并返回新值（可线性化）

        Returns:
            自增后的值
        """
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class StripedLocks:
    """
    分段锁

    索引i由第 i % n_stripes 把锁保护。每次原子操作只持有一把锁，
    不存在覆盖整个点集的全局锁。
    """

    def __init__(self, n_stripes: int = 64):
        """
        初始化分段锁

        Args:
            n_stripes: 锁的数量
        """
        if n_stripes < 1:
            raise ValueError(f"分段锁数量必须为正数: {n_stripes}")
        self.n_stripes = n_stripes
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(n_stripes)]

    def lock_for(self, index: int) -> threading.Lock:
        """返回保护指定索引的锁"""
        return self._locks[index % self.n_stripes]

    def __len__(self) -> int:
        return self.n_stripes
