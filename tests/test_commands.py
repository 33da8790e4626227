import math

import pytest

from motor_client import commands
from motor_client.errors import CommandError


def test_setpoint_set_and_hold():
    assert commands.encode_setpoint(1200) == "SP:SET 1200\n"
    assert commands.encode_setpoint(-5, hold=True) == "SP:HOLD -5\n"


@pytest.mark.parametrize("value", [1.5, "100", None, True])
def test_setpoint_requires_integer(value):
    with pytest.raises(CommandError):
        commands.encode_setpoint(value)


def test_pid_invariant_formatting():
    assert commands.encode_pid(2.0, 5.5, 0.02) == "PID:SET 2.0,5.5,0.02\n"
    assert commands.encode_pid(2, 0, 1e-4) == "PID:SET 2.0,0.0,0.0001\n"


def test_pid_gains_never_use_exponent_notation():
    assert commands.encode_pid(2.0, 5.5, 1e-05) == "PID:SET 2.0,5.5,0.00001\n"
    assert commands.encode_pid(1e16, 0, 0) == "PID:SET 10000000000000000.0,0.0,0.0\n"
    assert commands.encode_pid(0.1 + 0.2, -3.25, 1e-7) == "PID:SET 0.30000000000000004,-3.25,0.0000001\n"


@pytest.mark.parametrize("value", [1e-05, 2.5e-9, 1e16, 123456.789, -0.125])
def test_formatted_gain_reads_back_exactly(value):
    text = commands.format_gain(value)
    assert "e" not in text.lower()
    assert float(text) == value


@pytest.mark.parametrize("gains", [
    (math.nan, 1.0, 1.0),
    (1.0, math.inf, 1.0),
    (1.0, 1.0, "0.1"),
])
def test_pid_rejects_invalid_gains(gains):
    with pytest.raises(CommandError):
        commands.encode_pid(*gains)


def test_mode():
    assert commands.encode_mode("FZPID") == "MODE FZPID\n"
    assert commands.encode_mode(" PID ") == "MODE PID\n"


@pytest.mark.parametrize("label", ["", "   ", "PID\nCTRL:ENABLE"])
def test_mode_rejects_bad_labels(label):
    with pytest.raises(CommandError):
        commands.encode_mode(label)


def test_fixed_commands():
    assert commands.encode_enable() == "CTRL:ENABLE\n"
    assert commands.encode_disable() == "CTRL:DISABLE\n"
    assert commands.encode_reset_encoder() == "RST:ENC\n"
    assert commands.encode_identify() == "*IDN?\n"
    assert commands.encode_pid_request() == "PID:GET\n"


def test_parse_setpoint_text():
    assert commands.parse_setpoint_text(" 42 ") == 42
    assert commands.parse_setpoint_text("-7") == -7
    for bad in ("abc", "", "1.5", "1_000"):
        with pytest.raises(CommandError):
            commands.parse_setpoint_text(bad)


def test_parse_float_text():
    assert commands.parse_float_text("0.5") == 0.5
    assert commands.parse_float_text("x", 100.0) == 100.0
    assert commands.parse_float_text("nan", 0.5) == 0.5
    with pytest.raises(CommandError):
        commands.parse_float_text("1,5")
    with pytest.raises(CommandError):
        commands.parse_float_text("1_0")


def test_parse_gains_text():
    assert commands.parse_gains_text("2", "5.5", "0.02") == (2.0, 5.5, 0.02)
    with pytest.raises(CommandError, match="Kp/Ki/Kd"):
        commands.parse_gains_text("2", "five", "0.02")


def test_command_error_is_value_error():
    assert issubclass(CommandError, ValueError)
