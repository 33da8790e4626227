"""
Serial communication handler for the motor controller.
Opens the port, reads incoming text on a background thread and writes commands.
"""

import codecs
import logging
import threading
from typing import Callable, Optional

import serial
import serial.tools.list_ports

from motor_client.config import DEFAULT_BAUD_RATE, READ_CHUNK_SIZE, SERIAL_TIMEOUT
from motor_client.errors import TransportError

logger = logging.getLogger(__name__)


class SerialReader(threading.Thread):
    """Reads raw text from an open port and hands each chunk to a callback."""

    def __init__(self, ser: serial.Serial, data_callback: Callable[[str], None],
                 stop_event: threading.Event,
                 on_error: Optional[Callable[[Exception], None]] = None):
        """
        Initialize the serial reader.

        Args:
            ser: Open serial port
            data_callback: Function to call with each decoded chunk
            stop_event: Event to signal thread shutdown
            on_error: Called with the exception when a read fails unexpectedly
        """
        super().__init__(daemon=True)
        self.ser = ser
        self.data_callback = data_callback
        self.stop_event = stop_event
        self.on_error = on_error
        self.decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")

    def run(self):
        """Main thread loop for reading serial data."""
        while not self.stop_event.is_set():
            try:
                waiting = self.ser.in_waiting
                raw = self.ser.read(min(max(waiting, 1), READ_CHUNK_SIZE))
            except (serial.SerialException, OSError, TypeError) as e:
                # TypeError/OSError come from pyserial when the port is closed under us
                if not self.stop_event.is_set():
                    logger.error("Serial read failed on %s: %s", self.ser.port, e)
                    if self.on_error is not None:
                        self.on_error(e)
                break
            if not raw:
                continue
            chunk = self.decoder.decode(raw)
            if not chunk:
                continue
            try:
                self.data_callback(chunk)
            except Exception:
                logger.exception("Error while handling serial data")


class SerialTransport:
    """Duplex line-oriented connection to the controller."""

    def __init__(self, port: str, baud: int = DEFAULT_BAUD_RATE,
                 data_callback: Optional[Callable[[str], None]] = None,
                 on_lost: Optional[Callable[[Exception], None]] = None,
                 timeout: float = SERIAL_TIMEOUT):
        self.port = port
        self.baud = baud
        self.data_callback = data_callback
        self.on_lost = on_lost
        self.timeout = timeout
        self.ser: Optional[serial.Serial] = None
        self.reader: Optional[SerialReader] = None
        self.stop_event = threading.Event()

    @property
    def is_open(self) -> bool:
        return self.ser is not None and self.ser.is_open

    def open(self):
        """
        Open the port with DTR/RTS asserted and start the reader thread.

        Raises:
            TransportError: If the port cannot be opened
        """
        if self.is_open:
            return
        ser = serial.Serial()
        ser.port = self.port
        ser.baudrate = self.baud
        ser.timeout = self.timeout
        ser.write_timeout = self.timeout
        ser.dtr = True
        ser.rts = True
        try:
            ser.open()
        except (serial.SerialException, ValueError) as e:
            raise TransportError(f"Cannot open {self.port}: {e}") from e
        self.ser = ser
        logger.info("Opened %s @ %d", self.port, self.baud)

        if self.data_callback is not None:
            self.stop_event.clear()
            self.reader = SerialReader(ser, self.data_callback, self.stop_event,
                                       on_error=self._reader_failed)
            self.reader.start()

    def _reader_failed(self, exc: Exception):
        # Runs on the reader thread; the port is gone (unplugged, reset)
        self.close()
        if self.on_lost is not None:
            self.on_lost(exc)

    def write(self, command: str) -> bool:
        """
        Send an already terminated command.

        Args:
            command: Command string including its trailing newline

        Returns:
            True if the command was written, False otherwise
        """
        if not self.is_open:
            return False
        try:
            self.ser.write(command.encode("ascii", errors="replace"))
            self.ser.flush()
            return True
        except (serial.SerialException, OSError) as e:
            logger.warning("Write to %s failed: %s", self.port, e)
            return False

    def close(self):
        """Stop the reader thread and release the port. Safe to call twice."""
        if self.ser is None and self.reader is None:
            return
        self.stop_event.set()
        if self.ser is not None:
            try:
                if hasattr(self.ser, "cancel_read"):
                    self.ser.cancel_read()
                self.ser.close()
            except (serial.SerialException, OSError) as e:
                logger.warning("Error closing %s: %s", self.port, e)
        if self.reader is not None and self.reader is not threading.current_thread():
            self.reader.join(timeout=self.timeout + 0.5)
        self.reader = None
        self.ser = None
        logger.info("Closed %s", self.port)


def get_available_ports() -> list[str]:
    """Get list of available COM ports."""
    return sorted(port.device for port in serial.tools.list_ports.comports())
