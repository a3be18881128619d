"""
Simulation package - Simulator facade and runners.

Contains:
- Simulator wiring loss model, engine and reporting sinks
- Batch runner for parameter sweeps
- Parameter sweep analysis
"""

from .simulator import Simulator, SimulatorConfig, compare_disciplines
from .runner import BatchRunner
from .parameter_sweep import ParameterSweep

__all__ = [
    'Simulator',
    'SimulatorConfig',
    'compare_disciplines',
    'BatchRunner',
    'ParameterSweep'
]
