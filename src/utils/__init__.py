"""
Utilities package - Helper functions and classes.

Contains implementations for:
- Metrics calculation (efficiency, retransmissions)
- Logging utilities and the console event sink
"""

from .metrics import MetricsCollector
from .logger import SimulationLogger, ConsoleEventSink

__all__ = [
    'MetricsCollector',
    'SimulationLogger',
    'ConsoleEventSink'
]
