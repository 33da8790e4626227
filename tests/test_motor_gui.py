import pytest

pytest.importorskip("tkinter")

from motor_client import motor_gui  # noqa: E402
from motor_client.motor_gui import MotorGUI  # noqa: E402


class Var:
    """Minimal stand-in for a tkinter variable."""

    def __init__(self, value):
        self.value = value

    def get(self):
        return self.value

    def set(self, value):
        self.value = value


class FakeWindow:
    def __init__(self, sp="1000", step="250", hold=False):
        self.sp_var = Var(sp)
        self.step_var = Var(step)
        self.hold_var = Var(hold)


@pytest.fixture
def warnings(monkeypatch):
    shown = []
    monkeypatch.setattr(motor_gui.DialogHelper, "show_warning",
                        staticmethod(lambda title, message: shown.append((title, message))))
    return shown


def make_gui(session, window):
    # Skip __init__; only the session and the entry fields are needed
    gui = MotorGUI.__new__(MotorGUI)
    gui.session = session
    gui.window = window
    return gui


def test_step_goes_through_session(connected, warnings):
    window = FakeWindow()
    make_gui(connected, window).do_step()
    assert window.sp_var.get() == "1250"
    assert connected.transport.written[-1] == "SP:SET 1250\n"
    assert connected.last_setpoint == 1250
    assert warnings == []


def test_step_with_hold_and_defaults(connected, warnings):
    window = FakeWindow(sp="abc", step="", hold=True)
    make_gui(connected, window).do_step()
    assert window.sp_var.get() == "100"
    assert connected.transport.written[-1] == "SP:HOLD 100\n"


def test_step_while_disconnected_leaves_field_alone(session, warnings):
    window = FakeWindow()
    make_gui(session, window).do_step()
    assert window.sp_var.get() == "1000"
    assert warnings == [("Serial", "Serial port is not connected")]
