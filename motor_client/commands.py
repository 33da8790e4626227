"""
Command formatting for the motor controller.

Every encoder validates its input first and raises CommandError without
producing any output when the input is invalid. All commands end with a
single newline.
"""

import math
import numbers
from typing import Optional, Tuple

import numpy as np

from motor_client.errors import CommandError

NEWLINE = "\n"

IDENTIFY = "*IDN?"
PID_GET = "PID:GET"
CTRL_ENABLE = "CTRL:ENABLE"
CTRL_DISABLE = "CTRL:DISABLE"
RESET_ENCODER = "RST:ENC"


def _line(text: str) -> str:
    return text + NEWLINE


def format_gain(value: float) -> str:
    """Shortest round-trip decimal form of a gain, never in exponent notation."""
    return np.format_float_positional(float(value), trim="0")


def encode_setpoint(value: int, hold: bool = False) -> str:
    """
    Build a setpoint command.

    Args:
        value: Target position in encoder ticks
        hold: Send SP:HOLD instead of SP:SET

    Returns:
        The newline-terminated command string
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise CommandError(f"Setpoint must be an integer, got {value!r}")
    verb = "HOLD" if hold else "SET"
    return _line(f"SP:{verb} {int(value)}")


def encode_pid(kp: float, ki: float, kd: float) -> str:
    """Build a PID:SET command from three finite gains."""
    gains = []
    for name, value in (("Kp", kp), ("Ki", ki), ("Kd", kd)):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise CommandError(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise CommandError(f"{name} must be finite, got {value!r}")
        gains.append(format_gain(value))
    return _line("PID:SET " + ",".join(gains))


def encode_mode(label: str) -> str:
    if not isinstance(label, str) or not label.strip():
        raise CommandError("Mode must be a non-empty label")
    if "\n" in label or "\r" in label:
        raise CommandError("Mode label must be a single line")
    return _line(f"MODE {label.strip()}")


def encode_enable() -> str:
    return _line(CTRL_ENABLE)


def encode_disable() -> str:
    return _line(CTRL_DISABLE)


def encode_reset_encoder() -> str:
    return _line(RESET_ENCODER)


def encode_identify() -> str:
    return _line(IDENTIFY)


def encode_pid_request() -> str:
    return _line(PID_GET)


# Helpers for turning text field contents into command arguments

def parse_setpoint_text(text: str) -> int:
    """Parse a setpoint entry field; raises CommandError if not an integer."""
    try:
        if "_" in text:
            raise ValueError(text)
        return int(text.strip())
    except (ValueError, TypeError):
        raise CommandError("Setpoint must be an integer") from None


def parse_float_text(text: str, default: Optional[float] = None) -> float:
    """
    Parse a decimal number using '.' as the decimal point.

    Args:
        text: Field contents
        default: Value returned for unparseable input instead of raising

    Returns:
        The parsed value
    """
    try:
        # float() accepts "1_000"; the device protocol does not
        if "_" in text:
            raise ValueError(text)
        value = float(text.strip())
    except (ValueError, TypeError):
        value = None
    if value is None or not math.isfinite(value):
        if default is not None:
            return default
        raise CommandError(f"Not a valid number: {text!r}")
    return value


def parse_gains_text(kp: str, ki: str, kd: str) -> Tuple[float, float, float]:
    try:
        return parse_float_text(kp), parse_float_text(ki), parse_float_text(kd)
    except CommandError:
        raise CommandError("Kp/Ki/Kd must be numbers") from None
