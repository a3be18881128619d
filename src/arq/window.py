"""
Sliding Window Management

This module implements the send window and the discipline-specific
acknowledgment and advancement rules for Go-Back-N and Selective-Repeat.
"""

from enum import Enum
from typing import Iterable, List, Tuple
from dataclasses import dataclass

from src.exceptions import ConfigurationError
from .frame import FrameTable


class Discipline(Enum):
    """Retransmission discipline."""
    GO_BACK_N = "go_back_n"
    SELECTIVE_REPEAT = "selective_repeat"

    @classmethod
    def parse(cls, value) -> 'Discipline':
        """Accept a Discipline, its value, or a short alias (gbn / sr)."""
        if isinstance(value, cls):
            return value
        aliases = {'gbn': cls.GO_BACK_N, 'sr': cls.SELECTIVE_REPEAT}
        key = str(value).strip().lower().replace('-', '_')
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(f"Unknown discipline: {value!r}") from None

    @property
    def label(self) -> str:
        return "Go-Back-N" if self is Discipline.GO_BACK_N else "Selective Repeat"


@dataclass
class SlidingWindow:
    """
    Sliding window for the sender.

    Attributes:
        base: Oldest frame not yet acknowledged per the discipline's rule
        size: Window size (constant for the run)
        total_frames: Size of the sequence space N
    """
    base: int = 0
    size: int = 8
    total_frames: int = 1

    def __post_init__(self):
        if self.size <= 0:
            raise ConfigurationError(f"window size must be positive, got {self.size}")
        if self.total_frames <= 0:
            raise ConfigurationError(f"total_frames must be positive, got {self.total_frames}")

    @property
    def end(self) -> int:
        """Exclusive upper edge of the window, clipped to N."""
        return min(self.base + self.size, self.total_frames)

    @property
    def is_complete(self) -> bool:
        return self.base == self.total_frames

    def in_window(self, seq_num: int) -> bool:
        """Check if sequence number is within the window."""
        return self.base <= seq_num < self.end

    def advance_base(self, new_base: int):
        """Advance window base to new position."""
        if new_base > self.base:
            self.base = min(new_base, self.total_frames)


class WindowController:
    """
    Applies a discipline's rules to a sliding window.

    Go-Back-N: the receiver accepts frames strictly in order, so only a
    contiguous run of deliveries starting at `base` is acknowledged and
    everything after the first gap is discarded.

    Selective-Repeat: every delivered frame is acknowledged individually
    and buffered; only the missing ones are retransmitted.

    In both cases `base` creeps across the longest contiguous acknowledged
    prefix.
    """

    def __init__(self, window: SlidingWindow, discipline: Discipline):
        self.window = window
        self.discipline = discipline

    @property
    def base(self) -> int:
        return self.window.base

    @property
    def is_complete(self) -> bool:
        return self.window.is_complete

    def eligible_frames(self, table: FrameTable) -> List[int]:
        """Unacknowledged sequence numbers inside the window, ascending."""
        return [seq for seq in range(self.window.base, self.window.end)
                if not table.is_acknowledged(seq)]

    def acknowledge(self, delivered: Iterable[int], table: FrameTable) -> List[int]:
        """
        Acknowledge delivered frames according to the discipline.

        Args:
            delivered: Sequence numbers delivered this round
            table: Frame table to update

        Returns:
            Newly acknowledged sequence numbers, ascending
        """
        delivered = set(delivered)
        acked = []

        if self.discipline == Discipline.GO_BACK_N:
            for seq in sorted(delivered):
                if table.is_acknowledged(seq):
                    continue
                if not table.all_acknowledged_in_range(self.window.base, seq):
                    break
                table.mark_acknowledged(seq)
                acked.append(seq)
        else:
            for seq in sorted(delivered):
                if not table.is_acknowledged(seq):
                    table.mark_acknowledged(seq)
                    acked.append(seq)

        return acked

    def advance(self, table: FrameTable) -> Tuple[int, int]:
        """
        Slide the base past consecutive acknowledged frames.

        Returns:
            Tuple of (old_base, new_base)
        """
        old_base = self.window.base
        new_base = old_base
        while new_base < self.window.total_frames and table.is_acknowledged(new_base):
            new_base += 1
        self.window.advance_base(new_base)
        return old_base, self.window.base

    def get_window_state(self, table: FrameTable) -> dict:
        """Get current window state."""
        return {
            'base': self.window.base,
            'end': self.window.end,
            'size': self.window.size,
            'discipline': self.discipline.value,
            'eligible': self.eligible_frames(table),
            'acknowledged_ahead': table.acknowledged_beyond(self.window.base)
        }
