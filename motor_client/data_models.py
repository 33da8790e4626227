"""
Data models for the motor controller client.
Holds telemetry samples, the bounded sample history and session events.
"""

import collections
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from motor_client.config import MAX_SAMPLES


@dataclass(frozen=True)
class Sample:
    """One position/setpoint observation."""
    timestamp_ms: int           # Milliseconds since session start
    position: int               # Encoder position in ticks
    setpoint: int               # Commanded position in ticks


@dataclass(frozen=True)
class PidGains:
    """Last known PID coefficients, always replaced as a whole."""
    kp: float
    ki: float
    kd: float


@dataclass
class WaveformState:
    running: bool = False
    base_setpoint: int = 0
    phase: float = 0.0


class SampleHistory:
    """Bounded, time-ordered sample store that drops the oldest entries first."""

    def __init__(self, capacity: int = MAX_SAMPLES):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._samples: Deque[Sample] = collections.deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    def append(self, sample: Sample) -> None:
        """
        Add a sample at the tail.

        Once the history is full the oldest sample is evicted, so the
        history always holds the most recent ``capacity`` samples.
        """
        self._samples.append(sample)

    def snapshot(self) -> Tuple[Sample, ...]:
        """Get an immutable copy of the history for rendering."""
        return tuple(self._samples)

    def latest(self) -> Optional[Sample]:
        return self._samples[-1] if self._samples else None

    def clear(self):
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)


# Session events published to subscribers

@dataclass(frozen=True)
class LineReceived:
    line: str


@dataclass(frozen=True)
class SampleReceived:
    sample: Sample


@dataclass(frozen=True)
class GainsUpdated:
    gains: PidGains


@dataclass(frozen=True)
class ModeUpdated:
    mode: str


@dataclass(frozen=True)
class CommandSent:
    command: str


@dataclass(frozen=True)
class ConnectionChanged:
    connected: bool
    port: str = ""
