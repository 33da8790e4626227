"""
Data parsing utilities for motor controller output.
Splits the serial stream into lines and extracts position, setpoint,
PID gains and control mode from them.
"""

import logging
from typing import Callable, Iterator, List, Optional

from motor_client.config import MAX_LINE_LENGTH
from motor_client.data_models import PidGains, Sample

logger = logging.getLogger(__name__)

INT_CHARS = frozenset("-0123456789")
FLOAT_CHARS = frozenset("-+.0123456789")

# Called with (line, marker, exception) when a numeric field fails to convert
ErrorHook = Callable[[str, str, Exception], None]


def split_lines(chunk: str) -> Iterator[str]:
    """
    Split a chunk of serial text into lines.

    Carriage returns are dropped and blank lines are skipped. A line cut off
    at the end of the chunk is yielded as-is; use LineFramer to join lines
    that span several reads.
    """
    for line in chunk.replace("\r", "").split("\n"):
        if line.strip():
            yield line


class LineFramer:
    """Reassembles newline-terminated lines from arbitrary text chunks."""

    def __init__(self, max_line_length: int = MAX_LINE_LENGTH):
        self.max_line_length = max_line_length
        self._pending = ""
        self._discarding = False

    def feed(self, chunk: str) -> List[str]:
        """
        Add newly received text and return every line it completes.

        A line that grows past max_line_length without a terminator is
        dropped, up to and including its eventual newline.

        Args:
            chunk: Text as read from the port, possibly ending mid-line

        Returns:
            Complete non-blank lines in arrival order
        """
        chunk = chunk.replace("\r", "")
        head, sep, tail = chunk.rpartition("\n")
        if not sep:
            self._hold(chunk)
            return []
        if self._discarding:
            # The first terminator ends the line being dropped
            data = head.partition("\n")[2]
            self._discarding = False
        else:
            data = self._pending + head
        self._pending = ""
        self._hold(tail)
        return list(split_lines(data))

    def _hold(self, text: str):
        if self._discarding:
            return
        self._pending += text
        if len(self._pending) > self.max_line_length:
            logger.debug("Dropping %d characters with no line terminator", len(self._pending))
            self._pending = ""
            self._discarding = True

    def flush(self) -> Optional[str]:
        """Return the unterminated remainder, if any, and clear it."""
        rest, self._pending = self._pending, ""
        self._discarding = False
        return rest if rest.strip() else None

    def reset(self):
        self._pending = ""
        self._discarding = False

    @property
    def pending(self) -> str:
        return self._pending


class TelemetryParser:
    """Parses telemetry, PID and mode lines sent by the controller."""

    def __init__(self, on_error: Optional[ErrorHook] = None):
        self.on_error = on_error

    def parse_telemetry(self, line: str, fallback_setpoint: int,
                        timestamp_ms: int) -> Optional[Sample]:
        """
        Parse a "POS:<int> [SP:<int>]" record.

        Args:
            line: One line of controller output
            fallback_setpoint: Setpoint to use when the line has no SP field
            timestamp_ms: Time to stamp on the sample

        Returns:
            The parsed Sample, or None if the line is not a telemetry record
        """
        position = self._scan_int(line, "POS:")
        if position is None:
            return None
        if "SP:" in line:
            setpoint = self._scan_int(line, "SP:")
            if setpoint is None:
                return None
        else:
            setpoint = fallback_setpoint
        return Sample(timestamp_ms, position, setpoint)

    def parse_pid(self, line: str) -> Optional[PidGains]:
        """Parse a "PID Kp=<f> Ki=<f> Kd=<f>" record; all three gains are required."""
        if not line.upper().startswith("PID"):
            return None
        kp = self._scan_float(line, "Kp=")
        ki = self._scan_float(line, "Ki=")
        kd = self._scan_float(line, "Kd=")
        if kp is None or ki is None or kd is None:
            return None
        return PidGains(kp, ki, kd)

    def parse_mode(self, line: str) -> Optional[str]:
        """Parse an "OK MODE <label>" reply or a "MODE:<label>" field."""
        if line.upper().startswith("OK MODE"):
            return line[len("OK MODE"):].strip()
        i = line.upper().find("MODE:")
        if i >= 0:
            return line[i + len("MODE:"):].strip()
        return None

    def _scan(self, line: str, marker: str, accepted: frozenset) -> Optional[str]:
        i = line.find(marker)
        if i < 0:
            return None
        start = end = i + len(marker)
        while end < len(line) and line[end] in accepted:
            end += 1
        if end == start:
            return None
        return line[start:end]

    def _scan_int(self, line: str, marker: str) -> Optional[int]:
        text = self._scan(line, marker, INT_CHARS)
        if text is None:
            return None
        try:
            return int(text)
        except ValueError as e:
            self._report(line, marker, e)
            return None

    def _scan_float(self, line: str, marker: str) -> Optional[float]:
        text = self._scan(line, marker, FLOAT_CHARS)
        if text is None:
            return None
        try:
            return float(text)
        except ValueError as e:
            self._report(line, marker, e)
            return None

    def _report(self, line: str, marker: str, exc: Exception):
        logger.debug("Bad %s value in %r: %s", marker, line, exc)
        if self.on_error is not None:
            self.on_error(line, marker, exc)
