"""
点数据加载与结果写出
读取空白分隔的 "x y" 文本文件，写出 "x y label" 结果文件
"""

import pandas as pd
import numpy as np
from typing import Optional, Union, Dict
from pathlib import Path
import warnings

from ..clustering.dbscan_concurrent import ClusteringResult


def load_points_dataframe(file_path: Union[str, Path],
                          max_points: Optional[int] = None) -> pd.DataFrame:
    """
    将点数据加载为DataFrame

    无法解析为有限浮点数的行会被丢弃并给出警告。

    Args:
        file_path: 数据文件路径
        max_points: 最多保留的有效点数

    Returns:
        包含x, y两列的DataFrame
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"数据文件不存在: {file_path}")

    try:
        raw = pd.read_csv(
            file_path,
            sep=r'\s+',
            header=None,
            dtype=str,
            comment='#',
            skip_blank_lines=True,
            on_bad_lines='warn',
            engine='python'
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame({'x': pd.Series(dtype=np.float64),
                             'y': pd.Series(dtype=np.float64)})

    if raw.shape[1] < 2:
        warnings.warn(f"{file_path.name}: 每行至少需要两列坐标")
        return pd.DataFrame({'x': pd.Series(dtype=np.float64),
                             'y': pd.Series(dtype=np.float64)})

    df = pd.DataFrame({
        'x': pd.to_numeric(raw[0], errors='coerce'),
        'y': pd.to_numeric(raw[1], errors='coerce')
    })

    valid = np.isfinite(df['x']) & np.isfinite(df['y'])
    n_invalid = int((~valid).sum())
    if n_invalid:
        warnings.warn(f"{file_path.name}: 跳过 {n_invalid} 行无效坐标")

    df = df[valid].reset_index(drop=True)

    if max_points is not None and len(df) > max_points:
        df = df.iloc[:max_points]

    return df.astype({'x': np.float64, 'y': np.float64})


def load_points(file_path: Union[str, Path],
                max_points: Optional[int] = None) -> np.ndarray:
    """
    加载点数据的便捷函数

    Args:
        file_path: 数据文件路径
        max_points: 最多保留的有效点数

    Returns:
        形状为(n_samples, 2)的数组
    """
    df = load_points_dataframe(file_path, max_points)
    return df[['x', 'y']].to_numpy(dtype=np.float64)


def save_labeled_points(result: ClusteringResult,
                        output_path: Union[str, Path]) -> int:
    """
    按输入顺序写出 "x y label"，label为0表示噪声

    Args:
        result: 聚类结果
        output_path: 输出文件路径

    Returns:
        写出的点数
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = result.to_dataframe()
    df.to_csv(output_path, sep=' ', header=False, index=False)

    return len(df)


def get_dataset_info(file_path: Union[str, Path]) -> Dict:
    """
    获取数据文件统计信息

    Args:
        file_path: 数据文件路径

    Returns:
        包含数据集信息的字典
    """
    file_path = Path(file_path)
    df = load_points_dataframe(file_path)

    info = {
        'file_name': file_path.name,
        'n_points': len(df),
        'size_mb': file_path.stat().st_size / (1024 * 1024),
        'bounds': {
            'min_x': float(df['x'].min()) if len(df) else 0.0,
            'max_x': float(df['x'].max()) if len(df) else 0.0,
            'min_y': float(df['y'].min()) if len(df) else 0.0,
            'max_y': float(df['y'].max()) if len(df) else 0.0
        }
    }

    return info
