"""
Simulation Events

Typed events emitted by the ARQ engine. They are the only coupling
between the engine and any presentation or reporting layer.

Order within one round:
    RoundStarted
    (FrameTransmitted, FrameLost | FrameDelivered) per eligible frame
    FrameAcknowledged*
    Timeout*
    WindowAdvanced?
    SimulationComplete? | SimulationAborted?
"""

from dataclasses import dataclass
from typing import Callable, List, Type, TypeVar


@dataclass(frozen=True)
class SimulationEvent:
    """Base event."""
    round_num: int

    kind = "event"


@dataclass(frozen=True)
class RoundStarted(SimulationEvent):
    base: int
    window_end: int

    kind = "round_started"


@dataclass(frozen=True)
class FrameTransmitted(SimulationEvent):
    seq_num: int
    attempt: int = 1

    kind = "frame_transmitted"

    @property
    def is_retransmission(self) -> bool:
        return self.attempt > 1


@dataclass(frozen=True)
class FrameLost(SimulationEvent):
    seq_num: int

    kind = "frame_lost"


@dataclass(frozen=True)
class FrameDelivered(SimulationEvent):
    seq_num: int

    kind = "frame_delivered"


@dataclass(frozen=True)
class FrameAcknowledged(SimulationEvent):
    seq_num: int

    kind = "frame_acknowledged"


@dataclass(frozen=True)
class Timeout(SimulationEvent):
    seq_num: int

    kind = "timeout"


@dataclass(frozen=True)
class WindowAdvanced(SimulationEvent):
    old_base: int
    new_base: int

    kind = "window_advanced"


@dataclass(frozen=True)
class SimulationComplete(SimulationEvent):
    total_rounds: int

    kind = "simulation_complete"


@dataclass(frozen=True)
class SimulationAborted(SimulationEvent):
    """Round cap reached before every frame was acknowledged."""
    total_rounds: int
    base: int

    kind = "simulation_aborted"


# Any callable accepting an event can act as a sink
EventSink = Callable[[SimulationEvent], None]

E = TypeVar('E', bound=SimulationEvent)


class EventRecorder:
    """Sink that stores every event it receives."""

    def __init__(self):
        self.events: List[SimulationEvent] = []

    def __call__(self, event: SimulationEvent):
        self.events.append(event)

    def of_type(self, event_type: Type[E]) -> List[E]:
        """Events of one type, in emission order."""
        return [e for e in self.events if isinstance(e, event_type)]

    def in_round(self, round_num: int) -> List[SimulationEvent]:
        return [e for e in self.events if e.round_num == round_num]

    def kinds(self, round_num: int = None) -> List[str]:
        events = self.events if round_num is None else self.in_round(round_num)
        return [e.kind for e in events]

    def clear(self):
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)
