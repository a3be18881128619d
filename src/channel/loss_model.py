"""
Frame Loss Models

This module implements the per-attempt loss oracles consulted by the ARQ
engine. Every model answers a single question for one transmission of one
frame: was it delivered or lost?

Available models:
- Bernoulli: independent loss with a fixed probability
- Scripted: a predetermined outcome sequence (deterministic scenarios)
- Gilbert-Elliott: two-state Markov chain producing burst losses
"""

import numpy as np
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from config import (
    GOOD_STATE_LOSS, BAD_STATE_LOSS,
    P_GOOD_TO_BAD, P_BAD_TO_GOOD
)
from src.exceptions import ConfigurationError


class TransmissionOutcome(Enum):
    """Result of one transmission attempt."""
    DELIVERED = 0
    LOST = 1


class ChannelState(Enum):
    """Channel state enumeration."""
    GOOD = 0
    BAD = 1


def _check_probability(name: str, value: float):
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be in [0, 1], got {value}")


class LossModel:
    """
    Base loss model.

    Subclasses implement `_draw_loss()`; this class keeps the attempt
    counters shared by all models.
    """

    def __init__(self):
        self.attempts = 0
        self.losses = 0

    def _draw_loss(self) -> bool:
        raise NotImplementedError

    def attempt(self) -> TransmissionOutcome:
        """
        Simulate one transmission attempt.

        Returns:
            TransmissionOutcome.LOST or TransmissionOutcome.DELIVERED
        """
        lost = self._draw_loss()
        self.attempts += 1
        if lost:
            self.losses += 1
            return TransmissionOutcome.LOST
        return TransmissionOutcome.DELIVERED

    def get_statistics(self) -> dict:
        """Get attempt statistics."""
        return {
            'attempts': self.attempts,
            'losses': self.losses,
            'observed_loss_rate': (self.losses / self.attempts
                                   if self.attempts > 0 else 0)
        }

    def reset_statistics(self):
        """Reset attempt counters."""
        self.attempts = 0
        self.losses = 0


class BernoulliLossModel(LossModel):
    """
    Independent (memoryless) frame loss.

    Attributes:
        loss_probability: Probability that any single attempt is lost
        rng: Random number generator
    """

    def __init__(self, loss_probability: float, seed: Optional[int] = None):
        """
        Initialize the Bernoulli loss model.

        Args:
            loss_probability: Loss probability p in [0, 1]
            seed: Random seed for reproducibility
        """
        super().__init__()
        _check_probability("loss_probability", loss_probability)
        self.loss_probability = loss_probability
        self.rng = np.random.default_rng(seed)

    def _draw_loss(self) -> bool:
        # Endpoints are exact, never sampled
        if self.loss_probability <= 0.0:
            return False
        if self.loss_probability >= 1.0:
            return True
        return bool(self.rng.random() < self.loss_probability)

    def reset(self, seed: Optional[int] = None):
        """
        Reset the model.

        Args:
            seed: New random seed (optional)
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.reset_statistics()

    def __repr__(self) -> str:
        return f"BernoulliLossModel(p={self.loss_probability})"


class ScriptedLossModel(LossModel):
    """
    Replays a fixed list of outcomes in call order, then a default.

    The engine transmits eligible frames in ascending sequence order, so a
    script such as [LOST, DELIVERED, DELIVERED] loses the lowest frame of
    the first round.
    """

    def __init__(
        self,
        outcomes: Iterable[TransmissionOutcome] = (),
        default: TransmissionOutcome = TransmissionOutcome.DELIVERED
    ):
        super().__init__()
        self.script: List[TransmissionOutcome] = list(outcomes)
        self.default = default
        self._position = 0

    @classmethod
    def from_flags(cls, lost_flags: Iterable[bool], default_lost: bool = False) -> 'ScriptedLossModel':
        """Build a script from booleans (True = lost)."""
        outcomes = [TransmissionOutcome.LOST if f else TransmissionOutcome.DELIVERED
                    for f in lost_flags]
        default = TransmissionOutcome.LOST if default_lost else TransmissionOutcome.DELIVERED
        return cls(outcomes, default)

    @property
    def remaining(self) -> int:
        return len(self.script) - self._position

    def _draw_loss(self) -> bool:
        if self._position < len(self.script):
            outcome = self.script[self._position]
            self._position += 1
        else:
            outcome = self.default
        return outcome == TransmissionOutcome.LOST


class GilbertElliottLossModel(LossModel):
    """
    Gilbert-Elliott two-state Markov loss model at frame granularity.

    The channel alternates between a Good state (low loss) and a Bad state
    (high loss). After each attempt the state may transition.

    Attributes:
        good_loss: Loss probability in Good state
        bad_loss: Loss probability in Bad state
        p_gb: Transition probability from Good to Bad
        p_bg: Transition probability from Bad to Good
        state: Current channel state
        rng: Random number generator
    """

    def __init__(
        self,
        good_loss: float = GOOD_STATE_LOSS,
        bad_loss: float = BAD_STATE_LOSS,
        p_gb: float = P_GOOD_TO_BAD,
        p_bg: float = P_BAD_TO_GOOD,
        seed: Optional[int] = None
    ):
        """
        Initialize the Gilbert-Elliott loss model.

        Args:
            good_loss: Frame loss probability in Good state
            bad_loss: Frame loss probability in Bad state
            p_gb: Probability of transitioning from Good to Bad
            p_bg: Probability of transitioning from Bad to Good
            seed: Random seed for reproducibility
        """
        super().__init__()
        for name, value in (("good_loss", good_loss), ("bad_loss", bad_loss),
                            ("p_gb", p_gb), ("p_bg", p_bg)):
            _check_probability(name, value)
        if p_gb + p_bg == 0:
            raise ConfigurationError("p_gb and p_bg cannot both be zero")

        self.good_loss = good_loss
        self.bad_loss = bad_loss
        self.p_gb = p_gb
        self.p_bg = p_bg

        self.rng = np.random.default_rng(seed)
        self._initialize_state()

        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def _initialize_state(self):
        """Initialize channel state based on steady-state probabilities."""
        pi_good, _ = self.get_steady_state_probabilities()
        if self.rng.random() < pi_good:
            self.state = ChannelState.GOOD
        else:
            self.state = ChannelState.BAD

    def get_steady_state_probabilities(self) -> Tuple[float, float]:
        """
        Calculate steady-state probabilities for Good and Bad states.

        Returns:
            Tuple of (π_Good, π_Bad)
        """
        sum_transitions = self.p_gb + self.p_bg
        return self.p_bg / sum_transitions, self.p_gb / sum_transitions

    def get_average_loss(self) -> float:
        """Average frame loss rate under the steady-state distribution."""
        pi_good, pi_bad = self.get_steady_state_probabilities()
        return pi_good * self.good_loss + pi_bad * self.bad_loss

    def get_current_loss(self) -> float:
        """Get the loss probability for the current channel state."""
        return self.good_loss if self.state == ChannelState.GOOD else self.bad_loss

    def transition_state(self):
        """Perform one Markov transition."""
        if self.state == ChannelState.GOOD:
            self.time_in_good += 1
            if self.rng.random() < self.p_gb:
                self.state = ChannelState.BAD
                self.state_transitions += 1
        else:
            self.time_in_bad += 1
            if self.rng.random() < self.p_bg:
                self.state = ChannelState.GOOD
                self.state_transitions += 1

    def _draw_loss(self) -> bool:
        lost = bool(self.rng.random() < self.get_current_loss())
        self.transition_state()
        return lost

    def get_statistics(self) -> dict:
        """Get attempt and state statistics."""
        stats = super().get_statistics()
        total_time = self.time_in_good + self.time_in_bad
        stats.update({
            'state_transitions': self.state_transitions,
            'time_in_good': self.time_in_good,
            'time_in_bad': self.time_in_bad,
            'fraction_in_good': (self.time_in_good / total_time
                                 if total_time > 0 else 0),
            'theoretical_avg_loss': self.get_average_loss()
        })
        return stats

    def reset_statistics(self):
        super().reset_statistics()
        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def reset(self, seed: Optional[int] = None):
        """
        Reset the channel to initial state.

        Args:
            seed: New random seed (optional)
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self._initialize_state()
        self.reset_statistics()


def analyze_loss_bursts(loss_pattern: List[bool]) -> dict:
    """
    Analyze burst lengths in a loss pattern.

    Args:
        loss_pattern: List of per-attempt loss indicators

    Returns:
        Dictionary with burst statistics
    """
    bursts = []
    current_burst = 0

    for lost in loss_pattern:
        if lost:
            current_burst += 1
        elif current_burst > 0:
            bursts.append(current_burst)
            current_burst = 0

    if current_burst > 0:
        bursts.append(current_burst)

    if bursts:
        return {
            'avg_burst_length': float(np.mean(bursts)),
            'max_burst_length': max(bursts),
            'num_bursts': len(bursts),
            'burst_lengths': bursts
        }
    return {'avg_burst_length': 0, 'max_burst_length': 0, 'num_bursts': 0}


if __name__ == "__main__":
    print("=" * 60)
    print("LOSS MODEL TEST")
    print("=" * 60)

    model = BernoulliLossModel(0.3, seed=42)
    pattern = [model.attempt() == TransmissionOutcome.LOST for _ in range(10000)]
    print(f"\nBernoulli p=0.3: {model.get_statistics()}")
    print(f"  Bursts: {analyze_loss_bursts(pattern)['avg_burst_length']:.2f} avg length")

    ge = GilbertElliottLossModel(seed=42)
    pattern = [ge.attempt() == TransmissionOutcome.LOST for _ in range(10000)]
    stats = ge.get_statistics()
    print(f"\nGilbert-Elliott:")
    print(f"  Observed loss: {stats['observed_loss_rate']:.4f}")
    print(f"  Theoretical loss: {stats['theoretical_avg_loss']:.4f}")
    print(f"  Bursts: {analyze_loss_bursts(pattern)['avg_burst_length']:.2f} avg length")
