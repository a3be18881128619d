"""
Sliding-Window ARQ Engine

This module implements the round-based state machine that drives a
reliable transfer over a lossy channel. A single engine serves both
Go-Back-N and Selective-Repeat; the discipline only changes which
deliveries the WindowController acknowledges.

One round:
    1. Compute the eligible frames (unacknowledged, inside the window)
    2. Transmit each one and ask the loss model for its fate
    3. Acknowledge deliveries per the discipline
    4. Time out everything eligible that was not acknowledged
    5. Advance the window base
    6. Stop when base == N (or when the round cap is reached)
"""

from typing import Iterable, List, Optional
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real

from src.exceptions import ARQError, ConfigurationError
from src.channel.loss_model import LossModel, BernoulliLossModel, TransmissionOutcome
from src.utils.logger import SimulationLogger, LogLevel
from .frame import FrameTable
from .window import Discipline, SlidingWindow, WindowController
from .events import (
    SimulationEvent, EventSink, RoundStarted, FrameTransmitted, FrameLost,
    FrameDelivered, FrameAcknowledged, Timeout, WindowAdvanced,
    SimulationComplete, SimulationAborted
)


class EngineState(Enum):
    """Engine state enumeration."""
    RUNNING = 0
    COMPLETE = 1
    ABORTED = 2


@dataclass
class ARQConfig:
    """
    Configuration for one ARQ simulation.

    Attributes:
        total_frames: Number of frames to transfer (N > 0)
        window_size: Send window size (> 0, may exceed N)
        discipline: Go-Back-N or Selective-Repeat
        loss_probability: Per-attempt loss probability in [0, 1]
        max_rounds: Optional safety cap on rounds
        seed: Seed for the default Bernoulli loss model
    """
    total_frames: int
    window_size: int
    discipline: Discipline = Discipline.GO_BACK_N
    loss_probability: float = 0.0
    max_rounds: Optional[int] = None
    seed: Optional[int] = None

    def __post_init__(self):
        self.discipline = Discipline.parse(self.discipline)
        self.validate()

    def validate(self):
        """
        Check parameter types and ranges.

        Raises:
            ConfigurationError: On any mistyped or out-of-range parameter
        """
        for name in ("total_frames", "window_size", "max_rounds"):
            value = getattr(self, name)
            if value is None and name == "max_rounds":
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if isinstance(self.loss_probability, bool) or not isinstance(self.loss_probability, Real):
            raise ConfigurationError(
                f"loss_probability must be a number, got {self.loss_probability!r}")

        if self.total_frames <= 0:
            raise ConfigurationError(f"total_frames must be positive, got {self.total_frames}")
        if self.window_size <= 0:
            raise ConfigurationError(f"window_size must be positive, got {self.window_size}")
        if not 0.0 <= self.loss_probability <= 1.0:
            raise ConfigurationError(
                f"loss_probability must be in [0, 1], got {self.loss_probability}")
        if self.max_rounds is not None and self.max_rounds <= 0:
            raise ConfigurationError(f"max_rounds must be positive, got {self.max_rounds}")


@dataclass
class RoundResult:
    """Outcome of a single round."""
    round_num: int
    transmitted: List[int] = field(default_factory=list)
    lost: List[int] = field(default_factory=list)
    delivered: List[int] = field(default_factory=list)
    acknowledged: List[int] = field(default_factory=list)
    timed_out: List[int] = field(default_factory=list)
    old_base: int = 0
    new_base: int = 0
    state: EngineState = EngineState.RUNNING

    @property
    def advanced(self) -> bool:
        return self.new_base > self.old_base

    @property
    def discarded(self) -> List[int]:
        """Frames that arrived but were not acknowledged (Go-Back-N penalty)."""
        acked = set(self.acknowledged)
        return [seq for seq in self.delivered if seq not in acked]


@dataclass
class SimulationOutcome:
    """Final outcome of a run."""
    state: EngineState
    total_rounds: int
    base: int
    total_frames: int
    transmissions: int

    @property
    def converged(self) -> bool:
        """True when every frame was acknowledged."""
        return self.state == EngineState.COMPLETE


class ARQEngine:
    """
    Round-based ARQ state machine.

    The engine owns its FrameTable and window exclusively and performs no
    I/O; it is advanced one round at a time by `step()`.

    Attributes:
        config: Simulation configuration
        loss_model: Per-attempt loss oracle
        table: Frame status table
        controller: Window controller for the active discipline
        state: Current engine state
        round: Number of rounds executed
    """

    def __init__(
        self,
        config: ARQConfig,
        loss_model: Optional[LossModel] = None,
        sinks: Iterable[EventSink] = (),
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize engine.

        Args:
            config: Validated simulation configuration
            loss_model: Loss oracle (Bernoulli with config.loss_probability if None)
            sinks: Event sinks receiving every emitted event
            logger: Engine logger (quiet default if None)
        """
        self.config = config
        if loss_model is None:
            loss_model = BernoulliLossModel(config.loss_probability, seed=config.seed)
        self.loss_model = loss_model
        self.sinks: List[EventSink] = list(sinks)
        self.logger = logger or SimulationLogger(name="ARQ", level=LogLevel.WARNING)

        self.table = FrameTable(config.total_frames)
        self.window = SlidingWindow(
            base=0,
            size=config.window_size,
            total_frames=config.total_frames
        )
        self.controller = WindowController(self.window, config.discipline)

        self.state = EngineState.RUNNING
        self.round = 0

    @property
    def base(self) -> int:
        return self.window.base

    @property
    def discipline(self) -> Discipline:
        return self.config.discipline

    @property
    def frame_table(self) -> FrameTable:
        return self.table

    @property
    def is_running(self) -> bool:
        return self.state == EngineState.RUNNING

    def add_sink(self, sink: EventSink):
        """Register an event sink."""
        self.sinks.append(sink)

    def _emit(self, event: SimulationEvent):
        for sink in self.sinks:
            sink(event)

    def step(self) -> RoundResult:
        """
        Execute one round.

        Returns:
            RoundResult describing the round

        Raises:
            ARQError: If the engine has already finished
        """
        if self.state != EngineState.RUNNING:
            raise ARQError(f"Engine is {self.state.name}; no further rounds")

        self.round += 1
        rnd = self.round
        self.logger.set_round(rnd)

        result = RoundResult(round_num=rnd, old_base=self.base)
        eligible = self.controller.eligible_frames(self.table)

        self.logger.debug(
            f"Window [{self.base}, {self.window.end - 1}] eligible={eligible}", "WINDOW"
        )
        self._emit(RoundStarted(rnd, base=self.base, window_end=self.window.end - 1))

        # Transmit
        for seq in eligible:
            self.table.mark_in_flight(seq)
            attempt = self.table.get(seq).transmissions
            self._emit(FrameTransmitted(rnd, seq_num=seq, attempt=attempt))
            result.transmitted.append(seq)

            if self.loss_model.attempt() == TransmissionOutcome.LOST:
                result.lost.append(seq)
                self._emit(FrameLost(rnd, seq_num=seq))
            else:
                result.delivered.append(seq)
                self._emit(FrameDelivered(rnd, seq_num=seq))

        # Acknowledge
        result.acknowledged = self.controller.acknowledge(result.delivered, self.table)
        for seq in result.acknowledged:
            self._emit(FrameAcknowledged(rnd, seq_num=seq))

        # Time out the rest
        for seq in eligible:
            if not self.table.is_acknowledged(seq):
                self.table.mark_pending(seq)
                result.timed_out.append(seq)
                self._emit(Timeout(rnd, seq_num=seq))

        # Advance
        old_base, new_base = self.controller.advance(self.table)
        result.new_base = new_base
        if new_base > old_base:
            self._emit(WindowAdvanced(rnd, old_base=old_base, new_base=new_base))

        if self.controller.is_complete:
            self.state = EngineState.COMPLETE
            self.logger.info(f"Complete after {rnd} rounds", "SIM")
            self._emit(SimulationComplete(rnd, total_rounds=rnd))
        elif self.config.max_rounds is not None and rnd >= self.config.max_rounds:
            self.state = EngineState.ABORTED
            self.logger.warning(
                f"Round cap {self.config.max_rounds} reached at base {self.base}", "SIM"
            )
            self._emit(SimulationAborted(rnd, total_rounds=rnd, base=self.base))

        result.state = self.state
        return result

    def run_rounds(self, count: int) -> List[RoundResult]:
        """
        Run at most `count` rounds, stopping early if the engine finishes.

        Args:
            count: Maximum number of rounds to execute

        Returns:
            Results of the executed rounds
        """
        results = []
        for _ in range(count):
            if not self.is_running:
                break
            results.append(self.step())
        return results

    def run_to_completion(self) -> SimulationOutcome:
        """
        Step until the engine is no longer running.

        Without max_rounds a channel that never delivers keeps this loop
        going forever.

        Returns:
            SimulationOutcome (converged or gave up)
        """
        while self.is_running:
            self.step()
        return self.get_outcome()

    def get_outcome(self) -> SimulationOutcome:
        """Snapshot of the current outcome."""
        return SimulationOutcome(
            state=self.state,
            total_rounds=self.round,
            base=self.base,
            total_frames=self.config.total_frames,
            transmissions=self.table.total_transmissions
        )

    def get_window_state(self) -> dict:
        """Get current window state."""
        return self.controller.get_window_state(self.table)

    def get_statistics(self) -> dict:
        """Get engine statistics."""
        transmissions = self.table.total_transmissions
        return {
            'discipline': self.discipline.value,
            'state': self.state.name,
            'rounds': self.round,
            'base': self.base,
            'acknowledged': self.table.acknowledged_count,
            'transmissions': transmissions,
            'retransmissions': transmissions - sum(
                1 for f in self.table if f.transmissions > 0),
            **self.loss_model.get_statistics()
        }
