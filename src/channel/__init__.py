"""
Channel package - Frame loss models.

Contains implementations for:
- Bernoulli (independent) loss
- Scripted loss for deterministic scenarios
- Gilbert-Elliott burst loss
"""

from .loss_model import (
    LossModel, TransmissionOutcome, ChannelState,
    BernoulliLossModel, ScriptedLossModel, GilbertElliottLossModel
)

__all__ = [
    'LossModel',
    'TransmissionOutcome',
    'ChannelState',
    'BernoulliLossModel',
    'ScriptedLossModel',
    'GilbertElliottLossModel'
]
