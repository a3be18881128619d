"""
Visualization package - Plotting and visualization tools.

Contains:
- Efficiency heatmaps per discipline
- Go-Back-N vs Selective-Repeat comparison plots
"""

from .heatmap import EfficiencyHeatmap
from .comparison_plot import DisciplineComparisonPlot

__all__ = [
    'EfficiencyHeatmap',
    'DisciplineComparisonPlot'
]
