"""
Simulation Logger

This module provides logging utilities for the simulation,
with configurable verbosity levels and structured output.
"""

from typing import Optional, TextIO
from datetime import datetime
from enum import IntEnum
import os

from config import DEFAULT_LOG_LEVEL
from src.arq.events import (
    SimulationEvent, RoundStarted, FrameTransmitted, FrameLost,
    FrameDelivered, FrameAcknowledged, Timeout, WindowAdvanced,
    SimulationComplete, SimulationAborted
)


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


class SimulationLogger:
    """
    Logger for simulation events.

    Provides structured logging with round stamps and categories.

    Attributes:
        name: Logger name
        level: Minimum log level
        file: Optional file for logging
    """

    # Color codes for terminal output
    COLORS = {
        LogLevel.DEBUG: '\033[36m',     # Cyan
        LogLevel.INFO: '\033[32m',      # Green
        LogLevel.WARNING: '\033[33m',   # Yellow
        LogLevel.ERROR: '\033[31m',     # Red
        LogLevel.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(
        self,
        name: str = "Simulator",
        level: int = DEFAULT_LOG_LEVEL,
        log_file: Optional[str] = None,
        use_colors: bool = True,
        include_timestamp: bool = True
    ):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Minimum log level
            log_file: Optional file path for logging
            use_colors: Use ANSI colors in output
            include_timestamp: Prefix messages with the round (or wall clock)
        """
        self.name = name
        self.level = level
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp

        self.file: Optional[TextIO] = None
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            self.file = open(log_file, 'w')

        # Simulation round tracking
        self.round_num: Optional[int] = None

        # Message counts
        self.message_counts = {level: 0 for level in LogLevel}

    def set_round(self, round_num: Optional[int]):
        """Set current simulation round for log messages."""
        self.round_num = round_num

    def set_level(self, level: int):
        """Set minimum log level."""
        self.level = level

    def _format_message(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ) -> str:
        """Format a log message."""
        parts = []

        if self.include_timestamp:
            if self.round_num is not None:
                parts.append(f"[round {self.round_num:4d}]")
            else:
                parts.append(f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}]")

        level_str = level.name.ljust(8)
        if self.use_colors:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"
        parts.append(level_str)

        parts.append(f"[{self.name}]")

        if category:
            parts.append(f"[{category}]")

        parts.append(message)

        return " ".join(parts)

    def _log(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ):
        """Log a message."""
        if level < self.level:
            return

        self.message_counts[level] += 1
        formatted = self._format_message(level, message, category)

        print(formatted)

        if self.file:
            # Strip color codes for file
            clean = formatted
            for color in self.COLORS.values():
                clean = clean.replace(color, '')
            clean = clean.replace(self.RESET, '')
            self.file.write(clean + '\n')
            self.file.flush()

    def debug(self, message: str, category: Optional[str] = None):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, category)

    def info(self, message: str, category: Optional[str] = None):
        """Log info message."""
        self._log(LogLevel.INFO, message, category)

    def warning(self, message: str, category: Optional[str] = None):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, category)

    def error(self, message: str, category: Optional[str] = None):
        """Log error message."""
        self._log(LogLevel.ERROR, message, category)

    def critical(self, message: str, category: Optional[str] = None):
        """Log critical message."""
        self._log(LogLevel.CRITICAL, message, category)

    # Convenience methods for simulation events
    def round_started(self, base: int, last_seq: int):
        """Log the window at the start of a round."""
        self.info(f"Current window: [{base}, {last_seq}]", "WINDOW")

    def frame_sent(self, seq_num: int, attempt: int):
        """Log frame sent event."""
        suffix = f" (retx #{attempt - 1})" if attempt > 1 else ""
        self.info(f"Sending frame {seq_num}{suffix}", "TX")

    def frame_lost(self, seq_num: int):
        """Log frame lost on the channel."""
        self.info(f"Frame {seq_num} lost", "TX")

    def frame_delivered(self, seq_num: int):
        """Log frame delivered to the receiver."""
        self.info(f"Frame {seq_num} received", "RX")

    def ack_received(self, seq_num: int):
        """Log ACK received event."""
        self.info(f"Acknowledging frame {seq_num}", "ACK")

    def timeout(self, seq_num: int):
        """Log timeout event."""
        self.warning(f"Timeout: resend frame {seq_num}", "TIMEOUT")

    def window_update(self, old_base: int, new_base: int):
        """Log window update."""
        self.info(f"New base: {new_base} (was {old_base})", "WINDOW")

    def simulation_start(self, params: dict):
        """Log simulation start."""
        param_str = ", ".join(f"{k}={v}" for k, v in params.items())
        self.info(f"Simulation started: {param_str}", "SIM")

    def simulation_end(self, total_rounds: int):
        """Log simulation end."""
        self.info(f"All frames transmitted successfully in {total_rounds} rounds", "SIM")

    def simulation_aborted(self, total_rounds: int, base: int):
        """Log a run that hit its round cap."""
        self.error(f"Gave up after {total_rounds} rounds with base stuck at {base}", "SIM")

    def get_summary(self) -> dict:
        """Get logging summary."""
        return {
            'message_counts': dict(self.message_counts),
            'total_messages': sum(self.message_counts.values())
        }

    def close(self):
        """Close log file if open."""
        if self.file:
            self.file.close()
            self.file = None

    def __del__(self):
        """Cleanup on deletion."""
        self.close()


class ConsoleEventSink:
    """
    Event sink that reports engine events through a SimulationLogger.
    """

    def __init__(self, logger: Optional[SimulationLogger] = None):
        self.logger = logger or get_logger()

    def __call__(self, event: SimulationEvent):
        log = self.logger
        log.set_round(event.round_num)

        if isinstance(event, RoundStarted):
            log.round_started(event.base, event.window_end)
        elif isinstance(event, FrameTransmitted):
            log.frame_sent(event.seq_num, event.attempt)
        elif isinstance(event, FrameLost):
            log.frame_lost(event.seq_num)
        elif isinstance(event, FrameDelivered):
            log.frame_delivered(event.seq_num)
        elif isinstance(event, FrameAcknowledged):
            log.ack_received(event.seq_num)
        elif isinstance(event, Timeout):
            log.timeout(event.seq_num)
        elif isinstance(event, WindowAdvanced):
            log.window_update(event.old_base, event.new_base)
        elif isinstance(event, SimulationComplete):
            log.simulation_end(event.total_rounds)
        elif isinstance(event, SimulationAborted):
            log.simulation_aborted(event.total_rounds, event.base)


# Global logger instance
_global_logger: Optional[SimulationLogger] = None


def get_logger() -> SimulationLogger:
    """Get global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = SimulationLogger()
    return _global_logger


def set_logger(logger: SimulationLogger):
    """Set global logger instance."""
    global _global_logger
    _global_logger = logger
