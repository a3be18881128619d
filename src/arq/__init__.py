"""
ARQ package - Sliding-window ARQ simulation core.

Contains implementations for:
- Frame status tracking
- Sliding window management (Go-Back-N / Selective-Repeat rules)
- Simulation events
- The round-based ARQ engine
"""

from .frame import Frame, FrameStatus, FrameTable
from .window import Discipline, SlidingWindow, WindowController
from .events import EventRecorder
from .engine import ARQConfig, ARQEngine, EngineState, RoundResult, SimulationOutcome

__all__ = [
    'Frame',
    'FrameStatus',
    'FrameTable',
    'Discipline',
    'SlidingWindow',
    'WindowController',
    'EventRecorder',
    'ARQConfig',
    'ARQEngine',
    'EngineState',
    'RoundResult',
    'SimulationOutcome'
]
