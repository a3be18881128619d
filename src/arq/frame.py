"""
Frame State Tracking for Sliding-Window ARQ

This module defines the per-frame acknowledgment state used by the
engine. Frames carry no payload: the simulation tracks delivery and
acknowledgment status only.
"""

from enum import Enum
from typing import Dict, Iterator, List
from dataclasses import dataclass

from src.exceptions import ConfigurationError, FrameStateError


class FrameStatus(Enum):
    """Frame status enumeration."""
    PENDING = 0
    IN_FLIGHT = 1
    ACKNOWLEDGED = 2


@dataclass
class Frame:
    """
    A single frame of the transfer.

    Attributes:
        seq_num: Sequence number (0 <= seq_num < N)
        status: Current delivery status
        transmissions: Number of times the frame has been sent
    """

    seq_num: int
    status: FrameStatus = FrameStatus.PENDING
    transmissions: int = 0

    def __post_init__(self):
        """Validate frame after initialization."""
        if self.seq_num < 0:
            raise ValueError("Sequence number must be non-negative")

    @property
    def is_acknowledged(self) -> bool:
        return self.status == FrameStatus.ACKNOWLEDGED

    @property
    def retransmissions(self) -> int:
        """Transmissions beyond the first."""
        return max(0, self.transmissions - 1)

    def __str__(self) -> str:
        return f"Frame(seq={self.seq_num}, {self.status.name}, tx={self.transmissions})"


class FrameTable:
    """
    Status table covering the whole sequence space [0, N).

    Single writer: only the engine mutates it during a simulation.

    Attributes:
        total_frames: Number of frames N
    """

    def __init__(self, total_frames: int):
        """
        Initialize the table with every frame Pending.

        Args:
            total_frames: Number of frames N (must be positive)
        """
        if isinstance(total_frames, bool) or not isinstance(total_frames, int):
            raise ConfigurationError(f"total_frames must be an integer, got {total_frames!r}")
        if total_frames <= 0:
            raise ConfigurationError(f"total_frames must be positive, got {total_frames}")
        self.total_frames = total_frames
        self._frames: List[Frame] = [Frame(seq_num=i) for i in range(total_frames)]
        self._acknowledged = 0

    def _get(self, seq_num: int) -> Frame:
        if not 0 <= seq_num < self.total_frames:
            raise IndexError(f"Sequence number {seq_num} outside [0, {self.total_frames})")
        return self._frames[seq_num]

    def get(self, seq_num: int) -> Frame:
        """Get the frame record for a sequence number."""
        return self._get(seq_num)

    def status(self, seq_num: int) -> FrameStatus:
        return self._get(seq_num).status

    def mark_in_flight(self, seq_num: int):
        """
        Mark a frame as transmitted in the current round.

        Raises:
            FrameStateError: If the frame is already acknowledged
        """
        frame = self._get(seq_num)
        if frame.status == FrameStatus.ACKNOWLEDGED:
            raise FrameStateError(f"Frame {seq_num} is already acknowledged")
        frame.status = FrameStatus.IN_FLIGHT
        frame.transmissions += 1

    def mark_acknowledged(self, seq_num: int):
        """Mark a frame as acknowledged. Idempotent."""
        frame = self._get(seq_num)
        if frame.status != FrameStatus.ACKNOWLEDGED:
            frame.status = FrameStatus.ACKNOWLEDGED
            self._acknowledged += 1

    def mark_pending(self, seq_num: int):
        """
        Return a timed-out frame to Pending for retransmission.

        Raises:
            FrameStateError: If the frame is already acknowledged
        """
        frame = self._get(seq_num)
        if frame.status == FrameStatus.ACKNOWLEDGED:
            raise FrameStateError(f"Frame {seq_num} is acknowledged and cannot be requeued")
        frame.status = FrameStatus.PENDING

    def is_acknowledged(self, seq_num: int) -> bool:
        return self._get(seq_num).status == FrameStatus.ACKNOWLEDGED

    def all_acknowledged_in_range(self, lo: int, hi: int) -> bool:
        """
        Check whether every frame in [lo, hi) is acknowledged.

        An empty range is trivially acknowledged.
        """
        return all(self.is_acknowledged(seq) for seq in range(lo, hi))

    def acknowledged_beyond(self, base: int) -> List[int]:
        """Sequence numbers acknowledged at or after `base`."""
        return [f.seq_num for f in self._frames[base:] if f.is_acknowledged]

    @property
    def acknowledged_count(self) -> int:
        return self._acknowledged

    @property
    def total_transmissions(self) -> int:
        return sum(f.transmissions for f in self._frames)

    def transmission_counts(self) -> Dict[int, int]:
        """Transmissions per sequence number."""
        return {f.seq_num: f.transmissions for f in self._frames}

    def __len__(self) -> int:
        return self.total_frames

    def __contains__(self, seq_num: int) -> bool:
        return 0 <= seq_num < self.total_frames

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)
