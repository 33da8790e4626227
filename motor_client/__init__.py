"""
Serial client for a PID motor controller: command encoding, telemetry
parsing, bounded sample history and chart projection.
"""

from motor_client.commands import encode_mode, encode_pid, encode_setpoint
from motor_client.data_models import PidGains, Sample, SampleHistory
from motor_client.data_parser import LineFramer, TelemetryParser, split_lines
from motor_client.errors import CommandError, MotorClientError, NotConnectedError, TransportError
from motor_client.session import DeviceSession
from motor_client.visualization import ChartGeometry, project_chart
from motor_client.waveform import SineWaveGenerator

__version__ = "0.1.0"
