"""
Sinusoidal setpoint test signal.
"""

import logging
import math
import threading
from typing import Callable, Optional, Union

from motor_client.commands import parse_float_text
from motor_client.config import SINE_DEFAULT_AMPLITUDE, SINE_DEFAULT_FREQUENCY, SINE_TICK_MS
from motor_client.data_models import WaveformState
from motor_client.errors import MotorClientError

logger = logging.getLogger(__name__)

TICK_SECONDS = SINE_TICK_MS / 1000.0

NumberSource = Callable[[], Union[str, float]]


class SineWaveGenerator:
    """Produces setpoint = base + amplitude * sin(phase), one value per tick."""

    def __init__(self, tick_seconds: float = TICK_SECONDS):
        self.tick_seconds = tick_seconds
        self.state = WaveformState()

    @property
    def running(self) -> bool:
        return self.state.running

    def start(self, base_setpoint: int):
        """Begin a new run centred on base_setpoint with the phase reset to zero."""
        self.state.running = True
        self.state.base_setpoint = int(base_setpoint)
        self.state.phase = 0.0

    def stop(self):
        # Phase and base are kept; the next start() resets them
        self.state.running = False

    def tick(self, amplitude: float, frequency_hz: float) -> int:
        """
        Advance one tick and return the next setpoint.

        Args:
            amplitude: Peak deviation from the base setpoint in ticks
            frequency_hz: Signal frequency

        Returns:
            The new integer setpoint
        """
        if not self.state.running:
            raise RuntimeError("Waveform generator is not running")
        self.state.phase += 2 * math.pi * frequency_hz * self.tick_seconds
        return self.state.base_setpoint + round(amplitude * math.sin(self.state.phase))


def _read_number(source: NumberSource, default: float) -> float:
    value = source()
    if isinstance(value, str):
        return parse_float_text(value, default)
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


class SineWaveRunner(threading.Thread):
    """Background thread that sends a sine setpoint every tick."""

    def __init__(self, session, generator: SineWaveGenerator, base_setpoint: int,
                 amplitude: NumberSource, frequency: NumberSource,
                 on_setpoint: Optional[Callable[[int], None]] = None):
        """
        Initialize the runner.

        Args:
            session: DeviceSession used to send the setpoints
            generator: Generator holding the waveform state
            base_setpoint: Centre of the sine wave
            amplitude: Returns the current amplitude, read every tick
            frequency: Returns the current frequency in Hz, read every tick
            on_setpoint: Called with each setpoint after it is sent
        """
        super().__init__(daemon=True)
        self.session = session
        self.generator = generator
        self.base_setpoint = base_setpoint
        self.amplitude = amplitude
        self.frequency = frequency
        self.on_setpoint = on_setpoint
        self.stop_event = threading.Event()
        self.lock = threading.Lock()

    def start(self):
        """Start the generator on the caller's thread, then begin ticking."""
        self.generator.start(self.base_setpoint)
        logger.info("[SINE] started at base %d", self.base_setpoint)
        super().start()

    def run(self):
        while not self.stop_event.wait(self.generator.tick_seconds):
            self.step()

    def step(self) -> Optional[int]:
        """Compute and send one setpoint; returns None once stopped."""
        amp = _read_number(self.amplitude, SINE_DEFAULT_AMPLITUDE)
        freq = _read_number(self.frequency, SINE_DEFAULT_FREQUENCY)
        with self.lock:
            if self.stop_event.is_set() or not self.generator.running:
                return None
            setpoint = self.generator.tick(amp, freq)
            try:
                self.session.send_setpoint(setpoint, hold=False)
            except MotorClientError as e:
                logger.warning("Sine setpoint %d not sent: %s", setpoint, e)
        if self.on_setpoint is not None:
            self.on_setpoint(setpoint)
        return setpoint

    def stop(self):
        """Stop the generator now; no setpoint is sent after this returns."""
        with self.lock:
            if self.stop_event.is_set():
                return
            self.stop_event.set()
            self.generator.stop()
        logger.info("[SINE] stopped")
