"""
Discipline Comparison Plots

Line plots contrasting Go-Back-N and Selective-Repeat as the loss
probability grows, one line per discipline for each window size.
"""

import os
import sys
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd
import matplotlib.pyplot as plt

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import PLOTS_DIR
from simulation.parameter_sweep import ParameterSweep
from visualization.heatmap import METRIC_LABELS, DISCIPLINE_TITLES


class DisciplineComparisonPlot:
    """
    Plots a metric against loss probability for both disciplines.
    """

    def __init__(
        self,
        results: Optional[Union[List[Dict], pd.DataFrame]] = None,
        csv_file: Optional[str] = None
    ):
        if results is not None:
            self.results = pd.DataFrame(results)
        elif csv_file:
            self.results = ParameterSweep.load_results(csv_file)
        else:
            self.results = pd.DataFrame()

    def summarize(self, metric: str = 'rounds') -> pd.DataFrame:
        """Mean and std of `metric` per (discipline, W, p)."""
        return (ParameterSweep.successful_runs(self.results)
                .groupby(['discipline', 'window_size', 'loss_probability'])[metric]
                .agg(['mean', 'std'])
                .reset_index())

    def plot(
        self,
        output_file: Optional[str] = None,
        metric: str = 'rounds',
        window_sizes: Optional[List[int]] = None,
        figsize: Tuple[int, int] = (12, 7),
        with_theory: bool = True
    ) -> str:
        """
        Generate and save the comparison plot.

        Args:
            output_file: Output file path (auto-generated if None)
            metric: Result column to plot
            window_sizes: Windows to draw (default: all in results)
            figsize: Figure size
            with_theory: Overlay analytic efficiency (efficiency metric only)

        Returns:
            Path to saved figure
        """
        if self.results.empty:
            raise ValueError("No results to plot")

        summary = self.summarize(metric)
        windows = window_sizes or sorted(summary['window_size'].unique())

        fig, ax = plt.subplots(figsize=figsize)
        cmap = plt.get_cmap('tab10')

        for idx, w in enumerate(windows):
            color = cmap(idx % 10)
            for discipline, style in (('go_back_n', '-'), ('selective_repeat', '--')):
                rows = summary[(summary['window_size'] == w) &
                               (summary['discipline'] == discipline)]
                if rows.empty:
                    continue
                ax.errorbar(
                    rows['loss_probability'], rows['mean'],
                    yerr=rows['std'].fillna(0),
                    linestyle=style, marker='o', color=color, capsize=3,
                    label=f"{DISCIPLINE_TITLES[discipline]}, W={w}"
                )

                if with_theory and metric == 'efficiency':
                    theory = [ParameterSweep.theoretical_efficiency(discipline, w, p)
                              for p in rows['loss_probability']]
                    ax.plot(rows['loss_probability'], theory, linestyle=':',
                            color=color, alpha=0.5)

        ax.set_xlabel('Loss Probability', fontsize=12)
        ax.set_ylabel(METRIC_LABELS.get(metric, metric), fontsize=12)
        ax.set_title(f"Go-Back-N vs Selective Repeat: {METRIC_LABELS.get(metric, metric)}",
                     fontsize=14, fontweight='bold')
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=8, ncol=2)

        plt.tight_layout()

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, f'{metric}_comparison.png')

        plt.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        print(f"Comparison plot saved to: {output_file}")
        return output_file
