import pytest

from motor_client.serial_test_simulator import SimulatedTransport
from motor_client.session import DeviceSession


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(clock):
    def factory(port, baud, callback, on_lost):
        return SimulatedTransport(port, baud, callback, on_lost, autostart=False)
    return DeviceSession(transport_factory=factory, clock=clock)


@pytest.fixture
def connected(session):
    session.connect("SIM")
    return session
