"""
Exceptions raised by the motor controller client.
"""


class MotorClientError(Exception):
    """Base class for all client errors."""


class TransportError(MotorClientError):
    """The serial port could not be opened or used."""


class NotConnectedError(MotorClientError):
    """A command was issued while no device is connected."""

    def __init__(self, message: str = "Serial port is not connected"):
        super().__init__(message)


class CommandError(MotorClientError, ValueError):
    """User input could not be turned into a valid command."""
