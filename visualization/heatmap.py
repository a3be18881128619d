"""
Efficiency Heatmap Visualization

This module generates 2D heatmaps showing Efficiency = f(W, p) for each
ARQ discipline.
"""

import os
import sys
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import PLOTS_DIR
from simulation.parameter_sweep import ParameterSweep


METRIC_LABELS = {
    'efficiency': 'Efficiency (useful / sent)',
    'rounds': 'Rounds to completion',
    'retransmissions': 'Retransmissions',
    'frames_discarded': 'Discarded deliveries'
}

DISCIPLINE_TITLES = {
    'go_back_n': 'Go-Back-N',
    'selective_repeat': 'Selective Repeat'
}


class EfficiencyHeatmap:
    """
    Generates 2D heatmaps of a sweep metric over (W, p).

    One panel per discipline, side by side.
    """

    def __init__(
        self,
        results: Optional[Union[List[Dict], pd.DataFrame]] = None,
        csv_file: Optional[str] = None
    ):
        """
        Initialize heatmap generator.

        Args:
            results: Result rows (list of dicts or DataFrame)
            csv_file: Path to CSV file with results
        """
        if results is not None:
            self.results = pd.DataFrame(results)
        elif csv_file:
            self.results = ParameterSweep.load_results(csv_file)
        else:
            self.results = pd.DataFrame()

        self.disciplines = (sorted(self.results['discipline'].unique())
                            if not self.results.empty else [])

    def create_matrix(self, discipline: str, metric: str = 'efficiency') -> pd.DataFrame:
        """
        Mean metric matrix for one discipline, largest W on top.
        """
        matrix = ParameterSweep.create_metric_matrix(self.results, discipline, metric)
        return matrix.sort_index(ascending=False)

    def find_optimal(self, discipline: str, metric: str = 'efficiency') -> Tuple[int, float, float]:
        """
        Locate the best cell (max efficiency, min for anything else).

        Returns:
            Tuple of (window_size, loss_probability, value)
        """
        matrix = self.create_matrix(discipline, metric)
        values = matrix.to_numpy()
        flat = np.nanargmax(values) if metric == 'efficiency' else np.nanargmin(values)
        i, j = np.unravel_index(flat, values.shape)
        return int(matrix.index[i]), float(matrix.columns[j]), float(values[i, j])

    def plot(
        self,
        output_file: Optional[str] = None,
        metric: str = 'efficiency',
        title: Optional[str] = None,
        figsize: Tuple[int, int] = (16, 6),
        cmap: str = "viridis",
        show_values: bool = True
    ) -> str:
        """
        Generate and save the heatmaps.

        Args:
            output_file: Output file path (auto-generated if None)
            metric: Result column to plot
            title: Figure title
            figsize: Figure size (width, height)
            cmap: Colormap name
            show_values: Show values in cells

        Returns:
            Path to saved figure
        """
        if self.results.empty:
            raise ValueError("No results to plot")

        label = METRIC_LABELS.get(metric, metric)
        fig, axes = plt.subplots(1, len(self.disciplines), figsize=figsize, squeeze=False)

        for ax, discipline in zip(axes[0], self.disciplines):
            matrix = self.create_matrix(discipline, metric)
            sns.heatmap(
                matrix,
                annot=show_values,
                fmt='.2f' if metric == 'efficiency' else '.0f',
                cmap=cmap,
                ax=ax,
                cbar_kws={'label': label}
            )
            ax.set_xlabel('Loss Probability', fontsize=12)
            ax.set_ylabel('Window Size', fontsize=12)
            ax.set_title(DISCIPLINE_TITLES.get(discipline, discipline), fontsize=13)

        fig.suptitle(title or f"{label} vs Window Size and Loss Probability",
                     fontsize=14, fontweight='bold')
        plt.tight_layout()

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, f'{metric}_heatmap.png')

        plt.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        print(f"Heatmap saved to: {output_file}")
        return output_file
