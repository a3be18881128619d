"""
Main Simulator - Round-Based ARQ Transfer Simulation

This module wires a loss model, the ARQ engine, the metrics collector
and (optionally) the console reporter into one runnable simulation.
"""

from typing import Optional, Dict
from dataclasses import dataclass
import time
import sys
import os

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import (
    DEFAULT_TOTAL_FRAMES, DEFAULT_WINDOW_SIZE, DEFAULT_LOSS_PROBABILITY,
    DEFAULT_DISCIPLINE, DEFAULT_MAX_ROUNDS, RNG_SEED_BASE
)
from src.channel.loss_model import (
    LossModel, BernoulliLossModel, GilbertElliottLossModel
)
from src.arq.engine import ARQConfig, ARQEngine
from src.arq.events import EventRecorder
from src.arq.window import Discipline
from src.utils.metrics import MetricsCollector
from src.utils.logger import SimulationLogger, ConsoleEventSink, LogLevel


@dataclass
class SimulatorConfig:
    """Configuration for the simulator."""
    # ARQ parameters
    total_frames: int = DEFAULT_TOTAL_FRAMES
    window_size: int = DEFAULT_WINDOW_SIZE
    discipline: str = DEFAULT_DISCIPLINE

    # Channel parameters
    loss_probability: float = DEFAULT_LOSS_PROBABILITY
    burst_loss: bool = False  # Gilbert-Elliott instead of Bernoulli

    # Simulation parameters
    max_rounds: Optional[int] = DEFAULT_MAX_ROUNDS
    seed: int = RNG_SEED_BASE
    log_level: int = LogLevel.WARNING
    trace: bool = False  # Print every engine event
    record_events: bool = False

    def to_arq_config(self) -> ARQConfig:
        """Build (and validate) the engine configuration."""
        return ARQConfig(
            total_frames=self.total_frames,
            window_size=self.window_size,
            discipline=Discipline.parse(self.discipline),
            loss_probability=self.loss_probability,
            max_rounds=self.max_rounds,
            seed=self.seed
        )

    def create_loss_model(self) -> LossModel:
        """Create the loss model described by this configuration."""
        if self.burst_loss:
            return GilbertElliottLossModel(seed=self.seed)
        return BernoulliLossModel(self.loss_probability, seed=self.seed)


class Simulator:
    """
    Main Simulator.

    Builds one engine per run; configuration errors surface from the
    constructor before any round executes.
    """

    def __init__(self, config: SimulatorConfig, loss_model: Optional[LossModel] = None):
        """
        Initialize simulator.

        Args:
            config: Simulator configuration
            loss_model: Override for the configured loss model
        """
        self.config = config
        self.arq_config = config.to_arq_config()

        self.logger = SimulationLogger(
            name=self.arq_config.discipline.label,
            level=config.log_level
        )

        self._owns_loss_model = loss_model is None
        self.loss_model = config.create_loss_model() if loss_model is None else loss_model
        self.metrics = MetricsCollector(total_frames=config.total_frames)
        self.recorder = EventRecorder() if config.record_events else None

        self.engine = self._build_engine()

    def _build_engine(self) -> ARQEngine:
        engine = ARQEngine(
            self.arq_config,
            loss_model=self.loss_model,
            logger=self.logger
        )
        engine.add_sink(self.metrics)
        if self.recorder is not None:
            engine.add_sink(self.recorder)
        if self.config.trace:
            trace_logger = SimulationLogger(
                name=self.arq_config.discipline.label,
                level=LogLevel.DEBUG if self.config.log_level <= LogLevel.DEBUG else LogLevel.INFO
            )
            engine.add_sink(ConsoleEventSink(trace_logger))
        return engine

    def run(self) -> Dict:
        """Run the simulation to completion (or to the round cap)."""
        self.logger.simulation_start({
            'frames': self.config.total_frames,
            'window': self.config.window_size,
            'discipline': self.arq_config.discipline.value,
            'loss': self.config.loss_probability,
            'seed': self.config.seed
        })

        sim_start_real = time.time()
        outcome = self.engine.run_to_completion()
        sim_end_real = time.time()

        return {
            'config': {
                'total_frames': self.config.total_frames,
                'window_size': self.config.window_size,
                'discipline': self.arq_config.discipline.value,
                'loss_probability': self.config.loss_probability,
                'burst_loss': self.config.burst_loss,
                'max_rounds': self.config.max_rounds,
                'seed': self.config.seed
            },
            'metrics': self.metrics.get_summary(),
            'channel': self.loss_model.get_statistics(),
            'rounds': outcome.total_rounds,
            'complete': outcome.converged,
            'state': outcome.state.name,
            'final_base': outcome.base,
            'real_time': sim_end_real - sim_start_real
        }

    def reset(self, seed: Optional[int] = None):
        """Reset simulator with a fresh engine and loss model."""
        if seed is not None:
            self.config.seed = seed
            self.arq_config = self.config.to_arq_config()
        if self._owns_loss_model:
            self.loss_model = self.config.create_loss_model()
        else:
            self.loss_model.reset_statistics()
        self.metrics.reset()
        if self.recorder is not None:
            self.recorder.clear()
        self.engine = self._build_engine()


def compare_disciplines(base_config: SimulatorConfig) -> Dict[str, Dict]:
    """
    Run Go-Back-N and Selective-Repeat on the same parameters and seed.

    Each run owns its own engine and loss model.

    Returns:
        Results keyed by discipline value
    """
    results = {}
    for discipline in Discipline:
        config = SimulatorConfig(**{**base_config.__dict__, 'discipline': discipline.value})
        results[discipline.value] = Simulator(config).run()
    return results
