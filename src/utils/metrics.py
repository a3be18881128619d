"""
Metrics Collection and Calculation

This module provides an event sink that tracks performance metrics of
an ARQ run: transmissions, retransmissions, losses, the Go-Back-N discard
penalty and overall efficiency.
"""

from dataclasses import dataclass
from typing import List, Optional, Set
import statistics

from src.arq.events import (
    SimulationEvent, RoundStarted, FrameTransmitted, FrameLost,
    FrameDelivered, FrameAcknowledged, Timeout, WindowAdvanced,
    SimulationComplete, SimulationAborted
)


@dataclass
class RoundSample:
    """Metrics for a single round."""
    round_num: int
    base: int
    transmitted: int = 0
    lost: int = 0
    acknowledged: int = 0
    timeouts: int = 0
    advance: int = 0


class MetricsCollector:
    """
    Collects and calculates performance metrics for the simulation.

    Primary metric: Efficiency = Acknowledged Frames / Total Transmissions

    Attributes:
        total_frames: Frames in the transfer (N)
    """

    def __init__(self, total_frames: Optional[int] = None):
        """
        Initialize metrics collector.

        Args:
            total_frames: Number of frames N (used for efficiency)
        """
        self.total_frames = total_frames
        self.reset()

    def reset(self):
        """Reset all counters."""
        self.transmissions = 0
        self.retransmissions = 0
        self.frames_lost = 0
        self.frames_delivered = 0
        self.frames_acknowledged = 0
        self.timeouts = 0
        self.window_advances = 0

        # Delivered but never acknowledged in that round (receiver discard)
        self.frames_discarded = 0

        self.rounds = 0
        self.completed = False
        self.aborted = False

        self.samples: List[RoundSample] = []
        self._delivered_this_round: Set[int] = set()
        self._acked_this_round: Set[int] = set()

    @property
    def current(self) -> Optional[RoundSample]:
        return self.samples[-1] if self.samples else None

    def __call__(self, event: SimulationEvent):
        self.record(event)

    def record(self, event: SimulationEvent):
        """
        Record an engine event.

        Args:
            event: Event emitted by the engine
        """
        if isinstance(event, RoundStarted):
            self._close_round()
            self.rounds = event.round_num
            self.samples.append(RoundSample(round_num=event.round_num, base=event.base))
            return

        sample = self.current

        if isinstance(event, FrameTransmitted):
            self.transmissions += 1
            if event.is_retransmission:
                self.retransmissions += 1
            if sample:
                sample.transmitted += 1
        elif isinstance(event, FrameLost):
            self.frames_lost += 1
            if sample:
                sample.lost += 1
        elif isinstance(event, FrameDelivered):
            self.frames_delivered += 1
            self._delivered_this_round.add(event.seq_num)
        elif isinstance(event, FrameAcknowledged):
            self.frames_acknowledged += 1
            self._acked_this_round.add(event.seq_num)
            if sample:
                sample.acknowledged += 1
        elif isinstance(event, Timeout):
            self.timeouts += 1
            if sample:
                sample.timeouts += 1
        elif isinstance(event, WindowAdvanced):
            self.window_advances += 1
            if sample:
                sample.advance = event.new_base - event.old_base
        elif isinstance(event, SimulationComplete):
            self.completed = True
            self.rounds = event.total_rounds
            self._close_round()
        elif isinstance(event, SimulationAborted):
            self.aborted = True
            self.rounds = event.total_rounds
            self._close_round()

    def _close_round(self):
        self.frames_discarded += len(self._delivered_this_round - self._acked_this_round)
        self._delivered_this_round.clear()
        self._acked_this_round.clear()

    def calculate_efficiency(self) -> float:
        """
        Calculate transmission efficiency.

        Efficiency = acknowledged frames / transmissions
        (N / transmissions for a completed run)

        Returns:
            Efficiency in [0, 1] (0 when nothing was sent)
        """
        if self.transmissions == 0:
            return 0.0
        return self.frames_acknowledged / self.transmissions

    def get_summary(self) -> dict:
        """
        Get complete metrics summary.

        Returns:
            Dictionary with all metrics
        """
        advances = [s.advance for s in self.samples]
        # Round still open when the driver stopped early
        open_discards = len(self._delivered_this_round - self._acked_this_round)
        return {
            'total_frames': self.total_frames,
            'rounds': self.rounds,
            'completed': self.completed,
            'aborted': self.aborted,
            'transmissions': self.transmissions,
            'retransmissions': self.retransmissions,
            'frames_lost': self.frames_lost,
            'frames_delivered': self.frames_delivered,
            'frames_acknowledged': self.frames_acknowledged,
            'frames_discarded': self.frames_discarded + open_discards,
            'timeouts': self.timeouts,
            'window_advances': self.window_advances,
            'efficiency': self.calculate_efficiency(),
            'loss_rate': (self.frames_lost / self.transmissions
                          if self.transmissions > 0 else 0),
            'retransmission_rate': (self.retransmissions / self.transmissions
                                    if self.transmissions > 0 else 0),
            'avg_window_advance': statistics.mean(advances) if advances else 0
        }
