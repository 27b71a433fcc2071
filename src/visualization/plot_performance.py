"""
性能分析可视化
不同并发度下的执行时间与加速比
"""

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd
from typing import Tuple, Optional


class PerformanceVisualizer:
    """性能可视化器"""

    def __init__(self, figsize: Tuple[int, int] = (14, 6)):
        """
        初始化可视化器

        Args:
            figsize: 图形大小
        """
        self.figsize = figsize

    def plot_concurrency_scaling(self, comparison: pd.DataFrame,
                                 title: str = "并发度可扩展性分析",
                                 save_path: Optional[str] = None) -> plt.Figure:
        """
        绘制执行时间与加速比随并发度的变化

        Args:
            comparison: PerformanceAnalyzer.compare_concurrency_levels 的结果
            title: 图表标题
            save_path: 保存路径

        Returns:
            matplotlib图形对象
        """
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=self.figsize)

        data = comparison[comparison['success']] if 'success' in comparison else comparison
        if data.empty:
            print("没有性能数据可绘制")
            return fig

        levels = data['max_concurrency'].to_numpy()
        times = data['execution_time'].to_numpy()

        # 1. 执行时间
        bars = ax1.bar([str(level) for level in levels], times,
                       color=plt.cm.Set3(np.linspace(0, 1, len(levels))))
        ax1.set_title('执行时间', fontsize=12, fontweight='bold')
        ax1.set_xlabel('工作线程数')
        ax1.set_ylabel('时间 (秒)')
        for bar in bars:
            height = bar.get_height()
            ax1.text(bar.get_x() + bar.get_width() / 2., height * 1.01,
                     f'{height:.3f}', ha='center', va='bottom', fontsize=9)

        # 2. 加速比
        if 'speedup' in data:
            speedups = data['speedup'].to_numpy()
            ideal = levels / levels[0]
            ax2.plot(levels, speedups, 'ro-', linewidth=2, markersize=8, label='实际加速比')
            ax2.plot(levels, ideal, 'b--', linewidth=2, label='理想加速比')
            ax2.set_xlabel('工作线程数')
            ax2.set_ylabel('加速比')
            ax2.set_title('加速比', fontsize=12, fontweight='bold')
            ax2.grid(True, alpha=0.3)
            ax2.legend()

        fig.suptitle(title, fontsize=14, fontweight='bold')
        fig.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            print(f"可扩展性分析图已保存到: {save_path}")

        return fig
