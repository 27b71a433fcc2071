"""
Pytest配置与共享fixture

提供：
- 确定性的二维点集（链、分离团簇、网格团簇加孤立噪声）
- 与簇编号无关的划分比较工具
"""

from typing import List

import matplotlib
import numpy as np
import pytest

matplotlib.use('Agg')


# ==============================================================================
# 点集生成
# ==============================================================================

def lattice_block(origin_x: float, origin_y: float, size: int, spacing: float = 1.0) -> np.ndarray:
    """size x size 的规则网格点"""
    xs, ys = np.meshgrid(np.arange(size) * spacing, np.arange(size) * spacing)
    return np.column_stack([xs.ravel() + origin_x, ys.ravel() + origin_y])


def gaussian_blobs(centers: List[List[float]], n_per_center: int,
                   spread: float, seed: int = 7) -> np.ndarray:
    rng = np.random.default_rng(seed)
    blobs = [np.asarray(center) + rng.normal(0.0, spread, size=(n_per_center, 2))
             for center in centers]
    return np.vstack(blobs)


@pytest.fixture
def chain_points() -> np.ndarray:
    """三个间距为1的共线点"""
    return np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]])


@pytest.fixture
def two_groups() -> np.ndarray:
    """两组各5个互相邻近的点，组间距离远大于epsilon"""
    group_a = np.array([[0.0, 0.0], [0.3, 0.0], [0.0, 0.3], [0.3, 0.3], [0.15, 0.15]])
    group_b = group_a + np.array([100.0, 100.0])
    return np.vstack([group_a, group_b])


@pytest.fixture
def lattice_with_noise() -> np.ndarray:
    """
    四个 8x8 网格团簇（间距1）加若干孤立点

    eps=1.5、min_pts=3 时网格点全部是核心点，不存在可归属多个簇的边界点，
    因此任何并发度下的划分都唯一。
    """
    blocks = [
        lattice_block(0.0, 0.0, 8),
        lattice_block(50.0, 0.0, 8),
        lattice_block(0.0, 50.0, 8),
        lattice_block(50.0, 50.0, 8),
    ]
    isolated = np.array([[25.0, 25.0], [-30.0, 5.0], [90.0, -20.0], [25.0, 90.0]])
    return np.vstack(blocks + [isolated])


@pytest.fixture
def long_line() -> np.ndarray:
    """1500个间距为1的共线点：并发扩展必然在同一个簇内相遇"""
    return np.column_stack([np.arange(1500, dtype=np.float64), np.zeros(1500)])


@pytest.fixture
def noisy_blobs() -> np.ndarray:
    """带背景噪声的高斯团簇"""
    blobs = gaussian_blobs([[0, 0], [20, 0], [0, 20], [20, 20], [40, 40]], 120, 1.5)
    rng = np.random.default_rng(11)
    background = rng.uniform(-10, 50, size=(60, 2))
    return np.vstack([blobs, background])


# ==============================================================================
# 划分比较
# ==============================================================================

def core_partition(labels: np.ndarray, core_mask: np.ndarray):
    """只看核心点的划分（边界点的归属允许因先到者不同而不同）"""
    groups = {}
    for idx in np.where(core_mask)[0]:
        groups.setdefault(int(labels[idx]), set()).add(int(idx))
    return frozenset(frozenset(members) for members in groups.values())
