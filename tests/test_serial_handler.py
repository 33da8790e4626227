import queue
import threading

import pytest
import serial

from motor_client.data_models import ConnectionChanged
from motor_client.errors import NotConnectedError, TransportError
from motor_client.serial_handler import SerialTransport
from motor_client.session import DeviceSession


class FakeSerial:
    """Stands in for serial.Serial; incoming bytes are queued by the test."""
    instances = []

    def __init__(self):
        self.port = None
        self.baudrate = None
        self.timeout = None
        self.write_timeout = None
        self.dtr = False
        self.rts = False
        self.is_open = False
        self.incoming = queue.Queue()
        self.written = bytearray()
        FakeSerial.instances.append(self)

    def open(self):
        self.is_open = True

    @property
    def in_waiting(self):
        return self.incoming.qsize()

    def read(self, size=1):
        try:
            item = self.incoming.get(timeout=0.02)
        except queue.Empty:
            return b""
        if isinstance(item, Exception):
            raise item
        return item

    def unplug(self):
        self.incoming.put(serial.SerialException("device reports readiness to read but returned no data"))

    def write(self, data):
        self.written += data
        return len(data)

    def flush(self):
        pass

    def cancel_read(self):
        pass

    def close(self):
        self.is_open = False


@pytest.fixture
def fake_serial(monkeypatch):
    FakeSerial.instances.clear()
    monkeypatch.setattr(serial, "Serial", FakeSerial)
    return FakeSerial


def test_open_configures_port(fake_serial):
    transport = SerialTransport("COM3", 57600)
    transport.open()
    ser = fake_serial.instances[0]
    assert (ser.port, ser.baudrate) == ("COM3", 57600)
    assert ser.timeout == ser.write_timeout == 2.0
    assert ser.dtr and ser.rts
    assert transport.is_open
    transport.close()
    assert not transport.is_open


def test_reader_delivers_chunks(fake_serial):
    chunks = []
    got = threading.Event()

    def on_data(text):
        chunks.append(text)
        if "".join(chunks).endswith("\n"):
            got.set()

    transport = SerialTransport("COM3", data_callback=on_data)
    transport.open()
    ser = fake_serial.instances[0]
    ser.incoming.put(b"POS:12")
    ser.incoming.put("34 °\n".encode("utf-8")[:-2])
    ser.incoming.put("34 °\n".encode("utf-8")[-2:])
    assert got.wait(2.0)
    transport.close()
    assert "".join(chunks) == "POS:1234 °\n"


def test_write(fake_serial):
    transport = SerialTransport("COM3")
    assert transport.write("SP:SET 1\n") is False
    transport.open()
    assert transport.write("SP:SET 1\n") is True
    assert bytes(fake_serial.instances[0].written) == b"SP:SET 1\n"
    transport.close()


def test_write_failure_is_reported(fake_serial):
    transport = SerialTransport("COM3")
    transport.open()

    def broken_write(data):
        raise serial.SerialTimeoutException("Write timeout")
    fake_serial.instances[0].write = broken_write
    assert transport.write("CTRL:ENABLE\n") is False
    transport.close()


def test_open_failure_raises_transport_error(monkeypatch):
    class Unopenable(FakeSerial):
        def open(self):
            raise serial.SerialException("could not open port COM99")
    monkeypatch.setattr(serial, "Serial", Unopenable)
    transport = SerialTransport("COM99")
    with pytest.raises(TransportError, match="COM99"):
        transport.open()
    assert not transport.is_open


def test_close_twice_is_harmless(fake_serial):
    transport = SerialTransport("COM3", data_callback=lambda text: None)
    transport.open()
    transport.close()
    transport.close()
    assert not transport.is_open


def test_read_failure_closes_port_and_reports_loss(fake_serial):
    lost = []
    reported = threading.Event()

    def on_lost(exc):
        lost.append(exc)
        reported.set()

    transport = SerialTransport("COM3", data_callback=lambda text: None, on_lost=on_lost)
    transport.open()
    fake_serial.instances[0].unplug()
    assert reported.wait(2.0)
    assert isinstance(lost[0], serial.SerialException)
    assert not transport.is_open
    assert transport.reader is None


def test_close_does_not_report_loss(fake_serial):
    lost = []
    transport = SerialTransport("COM3", data_callback=lambda text: None, on_lost=lost.append)
    transport.open()
    transport.close()
    assert lost == []


def test_session_notices_unplugged_port(fake_serial):
    session = DeviceSession()
    changed = queue.Queue()
    session.subscribe(changed.put, ConnectionChanged)
    session.connect("COM3")
    assert changed.get(timeout=1.0) == ConnectionChanged(True, "COM3")
    fake_serial.instances[0].unplug()
    assert changed.get(timeout=2.0) == ConnectionChanged(False, "COM3")
    assert not session.is_connected
    with pytest.raises(NotConnectedError):
        session.send_setpoint(100)
