"""
Parameter Sweep Configuration

This module defines the parameter space for the exhaustive search
and provides utilities for parameter sweep analysis.
"""

import os
import sys
from typing import List, Dict, Tuple, Optional
from dataclasses import dataclass

import numpy as np
import pandas as pd

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import (
    WINDOW_SIZES, LOSS_PROBABILITIES, DISCIPLINES,
    RUNS_PER_CONFIGURATION, minimum_rounds
)


@dataclass
class ParameterPoint:
    """A single point in the parameter space."""
    discipline: str
    window_size: int
    loss_probability: float

    @property
    def key(self) -> Tuple[str, int, float]:
        return (self.discipline, self.window_size, self.loss_probability)


class ParameterSweep:
    """
    Parameter sweep configuration and analysis.

    Defines the parameter space:
    - discipline ∈ {go_back_n, selective_repeat}
    - W ∈ {1, 2, 4, 8, 16, 32}
    - p ∈ {0, 0.05, 0.1, 0.2, 0.3, 0.5}
    - 10 runs per configuration
    """

    def __init__(
        self,
        disciplines: List[str] = None,
        window_sizes: List[int] = None,
        loss_probabilities: List[float] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION
    ):
        self.disciplines = disciplines or DISCIPLINES
        self.window_sizes = window_sizes or WINDOW_SIZES
        self.loss_probabilities = (loss_probabilities if loss_probabilities is not None
                                   else LOSS_PROBABILITIES)
        self.runs_per_config = runs_per_config

    @property
    def total_configurations(self) -> int:
        """Total number of (discipline, W, p) configurations."""
        return len(self.disciplines) * len(self.window_sizes) * len(self.loss_probabilities)

    @property
    def total_simulations(self) -> int:
        """Total number of simulation runs."""
        return self.total_configurations * self.runs_per_config

    def get_all_points(self) -> List[ParameterPoint]:
        """Get all parameter points."""
        return [ParameterPoint(d, w, p)
                for d in self.disciplines
                for w in self.window_sizes
                for p in self.loss_probabilities]

    @staticmethod
    def theoretical_efficiency(discipline: str, window_size: int, loss_probability: float) -> float:
        """
        Classic analytic efficiency (useful frames / transmissions).

        Selective-Repeat:  1 - p
        Go-Back-N:         (1 - p) / (1 + (W - 1) p)

        The Go-Back-N form assumes every loss wastes a full window, so it
        is a lower bound for the round model, where only the frames after
        the lost one are discarded.
        """
        p = loss_probability
        if p >= 1.0:
            return 0.0
        if discipline == "selective_repeat" or window_size == 1:
            return 1.0 - p
        return (1.0 - p) / (1.0 + (window_size - 1) * p)

    @staticmethod
    def lossless_rounds(total_frames: int, window_size: int) -> int:
        """Rounds to finish on a perfect channel: ceil(N / W)."""
        return minimum_rounds(total_frames, window_size)

    def theoretical_table(self) -> pd.DataFrame:
        """Analytic efficiency for every point of the sweep."""
        rows = [{
            'discipline': pt.discipline,
            'window_size': pt.window_size,
            'loss_probability': pt.loss_probability,
            'theoretical_efficiency': self.theoretical_efficiency(*pt.key)
        } for pt in self.get_all_points()]
        return pd.DataFrame(rows)

    @staticmethod
    def load_results(filepath: str) -> pd.DataFrame:
        """
        Load results from CSV file.

        Args:
            filepath: Path to CSV file

        Returns:
            DataFrame of results (failed runs dropped)
        """
        return ParameterSweep.successful_runs(pd.read_csv(filepath))

    @staticmethod
    def successful_runs(results) -> pd.DataFrame:
        """Rows without an error (failed runs carry placeholder metrics)."""
        df = pd.DataFrame(results)
        if 'error' in df.columns:
            df = df[df['error'].isna()]
        return df

    @staticmethod
    def create_metric_matrix(
        results: pd.DataFrame,
        discipline: str,
        metric: str = 'efficiency'
    ) -> pd.DataFrame:
        """
        Create a (window size × loss probability) matrix of mean values.

        Args:
            results: Results DataFrame (or list of dicts)
            discipline: Discipline to extract
            metric: Column to average

        Returns:
            Pivot table indexed by window size, columns = loss probability
        """
        df = ParameterSweep.successful_runs(results)
        df = df[df['discipline'] == discipline]
        return df.pivot_table(
            index='window_size',
            columns='loss_probability',
            values=metric,
            aggfunc='mean'
        )

    @staticmethod
    def compare_disciplines(results: pd.DataFrame, metric: str = 'rounds') -> pd.DataFrame:
        """
        Ratio of Go-Back-N to Selective-Repeat mean `metric` per (W, p).

        Values above 1 mean Go-Back-N needed more.
        """
        gbn = ParameterSweep.create_metric_matrix(results, 'go_back_n', metric)
        sr = ParameterSweep.create_metric_matrix(results, 'selective_repeat', metric)
        return gbn / sr.replace(0, np.nan)


if __name__ == "__main__":
    print("=" * 60)
    print("PARAMETER SWEEP CONFIGURATION")
    print("=" * 60)

    sweep = ParameterSweep()

    print(f"\nParameter Space:")
    print(f"  Disciplines: {sweep.disciplines}")
    print(f"  Window Sizes (W): {sweep.window_sizes}")
    print(f"  Loss Probabilities (p): {sweep.loss_probabilities}")
    print(f"  Runs per config: {sweep.runs_per_config}")
    print(f"  Total configurations: {sweep.total_configurations}")
    print(f"  Total simulations: {sweep.total_simulations}")

    print("\n" + "=" * 60)
    print("THEORETICAL EFFICIENCY")
    print("=" * 60)
    table = sweep.theoretical_table()
    for discipline in sweep.disciplines:
        print(f"\n{discipline}:")
        print(table[table['discipline'] == discipline]
              .pivot(index='window_size', columns='loss_probability',
                     values='theoretical_efficiency')
              .round(3)
              .to_string())
