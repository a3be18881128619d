"""
Unit tests for the frame loss models.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.channel.loss_model import (
    TransmissionOutcome, ChannelState,
    BernoulliLossModel, ScriptedLossModel, GilbertElliottLossModel,
    analyze_loss_bursts
)
from src.exceptions import ConfigurationError

LOST = TransmissionOutcome.LOST
DELIVERED = TransmissionOutcome.DELIVERED


class TestBernoulliLossModel:
    """Tests for the independent loss model."""

    def test_zero_probability_never_loses(self):
        """p = 0 must never report loss."""
        model = BernoulliLossModel(0.0, seed=1)

        assert all(model.attempt() == DELIVERED for _ in range(2000))
        assert model.losses == 0

    def test_full_probability_always_loses(self):
        """p = 1 must always report loss."""
        model = BernoulliLossModel(1.0, seed=1)

        assert all(model.attempt() == LOST for _ in range(2000))
        assert model.losses == 2000

    def test_observed_rate_close_to_probability(self):
        """Observed loss rate tracks p over many attempts."""
        model = BernoulliLossModel(0.3, seed=42)

        for _ in range(20000):
            model.attempt()

        stats = model.get_statistics()
        assert stats['attempts'] == 20000
        assert 0.27 < stats['observed_loss_rate'] < 0.33

    @pytest.mark.parametrize("p", [-0.1, 1.5])
    def test_invalid_probability(self, p):
        """Probabilities outside [0, 1] are configuration errors."""
        with pytest.raises(ConfigurationError):
            BernoulliLossModel(p)

    def test_reproducibility(self):
        """Same seed produces same outcomes."""
        model1 = BernoulliLossModel(0.5, seed=7)
        model2 = BernoulliLossModel(0.5, seed=7)

        assert ([model1.attempt() for _ in range(50)] ==
                [model2.attempt() for _ in range(50)])

    def test_reset(self):
        """Reset clears counters and reseeds."""
        model = BernoulliLossModel(0.5, seed=7)
        first = [model.attempt() for _ in range(20)]

        model.reset(seed=7)

        assert model.attempts == 0
        assert [model.attempt() for _ in range(20)] == first


class TestScriptedLossModel:
    """Tests for the scripted loss model."""

    def test_replays_script_then_default(self):
        """Outcomes follow the script, then the default."""
        model = ScriptedLossModel([LOST, DELIVERED, LOST])

        assert [model.attempt() for _ in range(5)] == [
            LOST, DELIVERED, LOST, DELIVERED, DELIVERED
        ]
        assert model.remaining == 0

    def test_from_flags(self):
        """Boolean flags map to outcomes."""
        model = ScriptedLossModel.from_flags([True, False], default_lost=True)

        assert [model.attempt() for _ in range(4)] == [LOST, DELIVERED, LOST, LOST]
        assert model.losses == 3


class TestGilbertElliottLossModel:
    """Tests for the Gilbert-Elliott burst loss model."""

    def test_initialization(self):
        """Default parameters come from config."""
        model = GilbertElliottLossModel(seed=42)

        assert model.good_loss == 0.01
        assert model.bad_loss == 0.6
        assert model.state in [ChannelState.GOOD, ChannelState.BAD]

    def test_steady_state_probabilities(self):
        """Steady-state probabilities sum to one."""
        model = GilbertElliottLossModel()

        pi_good, pi_bad = model.get_steady_state_probabilities()

        assert abs(pi_good + pi_bad - 1.0) < 1e-10
        # 0.3 / 0.35 ≈ 0.857
        assert 0.85 < pi_good < 0.86

    def test_average_loss(self):
        """Average loss is about 0.094 for the defaults."""
        model = GilbertElliottLossModel()

        assert 0.09 < model.get_average_loss() < 0.1

    def test_both_states_visited(self):
        """State transitions occur over many attempts."""
        model = GilbertElliottLossModel(seed=42)

        states_seen = set()
        for _ in range(2000):
            model.attempt()
            states_seen.add(model.state)

        assert len(states_seen) == 2
        assert model.get_statistics()['state_transitions'] > 0

    def test_invalid_parameters(self):
        """Zero transition probabilities in both directions are rejected."""
        with pytest.raises(ConfigurationError):
            GilbertElliottLossModel(p_gb=0.0, p_bg=0.0)
        with pytest.raises(ConfigurationError):
            GilbertElliottLossModel(bad_loss=2.0)

    def test_reproducibility(self):
        """Same seed produces same results."""
        model1 = GilbertElliottLossModel(seed=42)
        model2 = GilbertElliottLossModel(seed=42)

        assert ([model1.attempt() for _ in range(100)] ==
                [model2.attempt() for _ in range(100)])

    def test_reset(self):
        """Reset clears statistics."""
        model = GilbertElliottLossModel(seed=42)
        for _ in range(100):
            model.attempt()

        model.reset(seed=123)

        stats = model.get_statistics()
        assert stats['attempts'] == 0
        assert stats['time_in_good'] + stats['time_in_bad'] == 0


class TestBurstAnalysis:
    """Tests for burst length analysis."""

    def test_burst_analysis(self):
        """Known bursts are counted."""
        pattern = [False, False, True, True, True, False, True, False]

        stats = analyze_loss_bursts(pattern)

        assert stats['num_bursts'] == 2
        assert stats['max_burst_length'] == 3

    def test_no_losses(self):
        """A clean pattern has no bursts."""
        assert analyze_loss_bursts([False] * 5)['num_bursts'] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
