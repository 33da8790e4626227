"""
Device session: connection lifecycle, telemetry state and command sending.

The session owns everything the front end needs to know about the controller
(sample history, last known gains, mode and setpoint) and publishes typed
events as telemetry arrives.
"""

import logging
import threading
import time
from typing import Callable, List, Optional, Tuple, Type

from motor_client import commands
from motor_client.config import DEFAULT_BAUD_RATE, MAX_SAMPLES, STEP_DEFAULT
from motor_client.data_models import (CommandSent, ConnectionChanged, GainsUpdated,
                                      LineReceived, ModeUpdated, PidGains, Sample,
                                      SampleHistory, SampleReceived)
from motor_client.data_parser import ErrorHook, LineFramer, TelemetryParser
from motor_client.errors import NotConnectedError
from motor_client.serial_handler import SerialTransport

logger = logging.getLogger(__name__)

Handler = Callable[[object], None]


class DeviceSession:
    """Connection to one motor controller and its last known state."""

    def __init__(self, capacity: int = MAX_SAMPLES,
                 transport_factory: Callable = SerialTransport,
                 clock: Callable[[], float] = time.perf_counter,
                 on_parse_error: Optional[ErrorHook] = None):
        """
        Initialize the session.

        Args:
            capacity: Number of samples kept in the history
            transport_factory: Called as factory(port, baud, data_callback, on_lost)
                to build the transport; SerialTransport by default
            clock: Monotonic clock in seconds used to timestamp samples
            on_parse_error: Optional hook for numeric conversion failures
        """
        self.history = SampleHistory(capacity)
        self.parser = TelemetryParser(on_error=on_parse_error)
        self.framer = LineFramer()
        self.mutex = threading.Lock()
        self.transport_factory = transport_factory
        self.transport = None
        self.port = ""

        self._clock = clock
        self._start_time = clock()
        self._subscribers: List[Tuple[Optional[Type], Handler]] = []

        self._gains: Optional[PidGains] = None
        self._mode: Optional[str] = None
        self._sp_sent: Optional[int] = None
        self._sp_parsed = 0

    # Events

    def subscribe(self, handler: Handler, event_type: Optional[Type] = None) -> Callable[[], None]:
        """
        Register a handler for session events.

        Args:
            handler: Called with each matching event, on the thread that produced it
            event_type: Only deliver events of this class; all events if None

        Returns:
            A function that removes the subscription
        """
        entry = (event_type, handler)
        self._subscribers.append(entry)

        def unsubscribe():
            if entry in self._subscribers:
                self._subscribers.remove(entry)
        return unsubscribe

    def _publish(self, event):
        for event_type, handler in list(self._subscribers):
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %r", event)

    # State

    @property
    def is_connected(self) -> bool:
        return self.transport is not None and self.transport.is_open

    @property
    def gains(self) -> Optional[PidGains]:
        with self.mutex:
            return self._gains

    @property
    def mode(self) -> Optional[str]:
        with self.mutex:
            return self._mode

    @property
    def last_setpoint(self) -> int:
        """Setpoint used when telemetry carries no SP field."""
        with self.mutex:
            return self._fallback_setpoint()

    def _fallback_setpoint(self) -> int:
        return self._sp_sent if self._sp_sent is not None else self._sp_parsed

    def elapsed_ms(self) -> int:
        return int((self._clock() - self._start_time) * 1000)

    def snapshot(self) -> Tuple[Sample, ...]:
        with self.mutex:
            return self.history.snapshot()

    def clear_history(self):
        with self.mutex:
            self.history.clear()

    # Connection

    def connect(self, port: str, baud: int = DEFAULT_BAUD_RATE):
        """
        Open the port and ask the controller for its identity and PID gains.

        Raises:
            TransportError: If the port cannot be opened
        """
        if self.is_connected:
            return
        transport = self.transport_factory(port, baud, self.feed, self._transport_lost)
        transport.open()
        self.transport = transport
        self.port = port
        self.framer.reset()
        logger.info("Connected to %s @ %d", port, baud)
        self._publish(ConnectionChanged(True, port))
        self.identify()
        self.request_pid()

    def disconnect(self):
        """Close the port. A running sine test keeps running and must be stopped separately."""
        if self.transport is None:
            return
        transport, self.transport = self.transport, None
        transport.close()
        self.framer.reset()
        logger.info("Disconnected from %s", self.port)
        self._publish(ConnectionChanged(False, self.port))

    def _transport_lost(self, exc: Exception):
        """Called by the transport, on its reader thread, when the port goes away."""
        transport = self.transport
        # A newer, working transport may already have replaced the lost one
        if transport is None or transport.is_open:
            return
        logger.warning("Lost connection to %s: %s", self.port, exc)
        self.disconnect()

    # Receiving

    def feed(self, chunk: str):
        """Process a chunk of received text; called by the transport."""
        for line in self.framer.feed(chunk):
            try:
                self.handle_line(line)
            except Exception:
                logger.exception("Failed to process line %r", line)

    def handle_line(self, line: str):
        """Apply one telemetry line to the session state and publish what changed."""
        logger.debug("> %s", line)
        events = [LineReceived(line)]

        with self.mutex:
            fallback = self._fallback_setpoint()
        # Parse outside the lock; the error hook is caller code
        mode = self.parser.parse_mode(line)
        sample = self.parser.parse_telemetry(line, fallback, self.elapsed_ms())
        gains = self.parser.parse_pid(line)

        with self.mutex:
            if mode is not None:
                self._mode = mode
                events.append(ModeUpdated(mode))
            if sample is not None:
                self._sp_parsed = sample.setpoint
                self.history.append(sample)
                events.append(SampleReceived(sample))
            if gains is not None:
                self._gains = gains
                events.append(GainsUpdated(gains))

        for event in events:
            self._publish(event)

    # Sending

    def ensure_connected(self):
        if not self.is_connected:
            raise NotConnectedError()

    def send(self, command: str) -> bool:
        """
        Write an encoded command.

        Returns:
            True if the transport accepted it; write failures are logged, not raised

        Raises:
            NotConnectedError: If no port is open
        """
        self.ensure_connected()
        ok = self.transport.write(command)
        text = command.rstrip("\n")
        if ok:
            logger.debug("< %s", text)
            self._publish(CommandSent(text))
        else:
            logger.warning("Command %r was not sent", text)
        return ok

    def send_setpoint(self, value: int, hold: bool = False) -> bool:
        ok =self.send(commands.encode_setpoint(value, hold))
        if ok:
            with self.mutex:
                self._sp_sent = int(value)
        return ok

    def step_setpoint(self, current: int, step: int = STEP_DEFAULT, hold: bool = False) -> int:
        """Send current + step as the new setpoint and return it."""
        setpoint = int(current) + int(step)
        self.send_setpoint(setpoint, hold)
        return setpoint

    def send_pid(self, kp: float, ki: float, kd: float) -> bool:
        return self.send(commands.encode_pid(kp, ki, kd))

    def send_mode(self, label: str) -> bool:
        return self.send(commands.encode_mode(label))

    def enable(self) -> bool:
        return self.send(commands.encode_enable())

    def disable(self) -> bool:
        return self.send(commands.encode_disable())

    def reset_encoder(self) -> bool:
        return self.send(commands.encode_reset_encoder())

    def identify(self) -> bool:
        return self.send(commands.encode_identify())

    def request_pid(self) -> bool:
        return self.send(commands.encode_pid_request())
