"""
serial_test_simulator.py

Simulated motor controller that answers the command set and emits telemetry
lines like the firmware does. SimulatedTransport has the same interface as
SerialTransport, so the session and GUI can run without hardware.

Run: python -m motor_client.serial_test_simulator
"""

import logging
import math
import re
import threading
import time
from typing import Callable, List, Optional

from motor_client.commands import format_gain
from motor_client.data_parser import split_lines

logger = logging.getLogger(__name__)

SP_RE = re.compile(r'^SP:(?:SET|HOLD) (?P<sp>-?\d+)$')
PID_RE = re.compile(r'^PID:SET (?P<kp>[-+.\d]+),(?P<ki>[-+.\d]+),(?P<kd>[-+.\d]+)$')


class SimulatedMotor:
    """First-order position response to a commanded setpoint."""

    def __init__(self, time_constant: float = 0.2, mode: str = "PID"):
        self.position = 0.0
        self.setpoint = 0
        self.enabled = False
        self.mode = mode
        self.kp, self.ki, self.kd = 2.0, 5.5, 0.02
        self.time_constant = time_constant

    def handle(self, command: str) -> List[str]:
        """Apply one command line and return the reply lines."""
        command = command.strip()
        m = SP_RE.match(command)
        if m:
            self.setpoint = int(m.group('sp'))
            return [f"OK SP {self.setpoint}"]
        m = PID_RE.match(command)
        if m:
            self.kp, self.ki, self.kd = (float(m.group(k)) for k in ('kp', 'ki', 'kd'))
            return [self.pid_line()]
        if command == "*IDN?":
            return ["SIM-MOTOR,1.0"]
        if command == "PID:GET":
            return [self.pid_line()]
        if command.startswith("MODE "):
            self.mode = command[5:].strip()
            return [f"OK MODE {self.mode}"]
        if command == "CTRL:ENABLE":
            self.enabled = True
            return ["OK CTRL ENABLE"]
        if command == "CTRL:DISABLE":
            self.enabled = False
            return ["OK CTRL DISABLE"]
        if command == "RST:ENC":
            self.position = 0.0
            return ["OK RST ENC"]
        logger.debug("Simulator got unknown command %r", command)
        return [f"ERR unknown command: {command}"]

    def pid_line(self) -> str:
        kp, ki, kd = (format_gain(g) for g in (self.kp, self.ki, self.kd))
        return f"PID Kp={kp} Ki={ki} Kd={kd}"

    def step(self, dt: float):
        if self.enabled:
            alpha = 1.0 - math.exp(-dt / self.time_constant)
            self.position += (self.setpoint - self.position) * alpha

    def telemetry_line(self) -> str:
        return f"POS:{round(self.position)} SP:{self.setpoint} MODE:{self.mode}"


class SimulatedTransport:
    """Drop-in replacement for SerialTransport backed by a SimulatedMotor."""

    def __init__(self, port: str = "SIM", baud: int = 115200,
                 data_callback: Optional[Callable[[str], None]] = None,
                 on_lost: Optional[Callable[[Exception], None]] = None,
                 motor: Optional[SimulatedMotor] = None,
                 telemetry_hz: float = 10.0, autostart: bool = True):
        self.port = port
        self.baud = baud
        self.data_callback = data_callback
        self.on_lost = on_lost
        self.motor = motor or SimulatedMotor()
        self.telemetry_hz = telemetry_hz
        self.autostart = autostart
        self.written: List[str] = []
        self.is_open = False
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self.lock = threading.Lock()
        # Replies and telemetry come from different threads; deliver one at a time
        self.emit_lock = threading.RLock()

    def open(self):
        self.is_open = True
        self.stop_event.clear()
        if self.autostart and self.telemetry_hz > 0:
            self.thread = threading.Thread(target=self._telemetry_loop, daemon=True)
            self.thread.start()

    def close(self):
        self.stop_event.set()
        self.is_open = False
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        self.thread = None

    def unplug(self):
        """Simulate the cable being pulled: close and report the loss."""
        self.close()
        if self.on_lost is not None:
            self.on_lost(OSError("device disconnected"))

    def write(self, command: str) -> bool:
        if not self.is_open:
            return False
        self.written.append(command)
        with self.lock:
            replies = [r for line in split_lines(command) for r in self.motor.handle(line)]
        self._emit("".join(f"{r}\r\n" for r in replies))
        return True

    def emit_telemetry(self, dt: float = 0.1):
        """Advance the motor by dt seconds and send one telemetry line."""
        with self.lock:
            self.motor.step(dt)
            line = self.motor.telemetry_line()
        self._emit(line + "\r\n")

    def _emit(self, text: str):
        if text and self.data_callback is not None:
            with self.emit_lock:
                self.data_callback(text)

    def _telemetry_loop(self):
        dt = 1.0 / self.telemetry_hz
        while not self.stop_event.wait(dt):
            self.emit_telemetry(dt)


def main():
    """Run a short sine test against the simulated motor and print what it sees."""
    from motor_client.session import DeviceSession
    from motor_client.waveform import SineWaveGenerator, SineWaveRunner

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    session = DeviceSession(transport_factory=SimulatedTransport)
    session.subscribe(lambda e: print(f"EVENT: {e}"))
    session.connect("SIM")
    session.enable()
    session.send_setpoint(1000)
    runner = SineWaveRunner(session, SineWaveGenerator(), 1000, lambda: 100, lambda: 0.5)
    runner.start()
    time.sleep(3.0)
    runner.stop()
    runner.join()
    session.disconnect()
    print('\nSimulation done. History length:', len(session.snapshot()))


if __name__ == '__main__':
    main()
