"""
Exceptions raised by the ARQ simulation core.
"""


class ARQError(Exception):
    """Base class for ARQ simulation errors."""


class ConfigurationError(ARQError, ValueError):
    """Invalid simulation parameters, rejected before any round runs."""


class FrameStateError(ARQError):
    """Illegal frame status transition (e.g. retransmitting an ACKed frame)."""
