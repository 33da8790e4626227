import math
import threading

import pytest

from motor_client.errors import NotConnectedError
from motor_client.waveform import SineWaveGenerator, SineWaveRunner


class RecordingSession:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail
        self.sent_event = threading.Event()

    def send_setpoint(self, value, hold=False):
        if self.fail:
            raise NotConnectedError()
        self.sent.append((value, hold))
        if len(self.sent) >= 3:
            self.sent_event.set()
        return True


def test_first_tick():
    gen = SineWaveGenerator()
    gen.start(1000)
    assert gen.tick(100, 0.5) == 1000 + round(100 * math.sin(2 * math.pi * 0.5 * 0.05))


def test_phase_accumulates():
    gen = SineWaveGenerator()
    gen.start(0)
    values = [gen.tick(1000, 1.0) for _ in range(5)]
    expected = [round(1000 * math.sin(2 * math.pi * 0.05 * n)) for n in range(1, 6)]
    assert values == expected


def test_tick_requires_running():
    gen = SineWaveGenerator()
    with pytest.raises(RuntimeError):
        gen.tick(100, 0.5)


def test_stop_keeps_state_and_restart_resets_it():
    gen = SineWaveGenerator()
    gen.start(500)
    gen.tick(100, 1.0)
    gen.stop()
    assert not gen.running
    assert gen.state.phase > 0
    assert gen.state.base_setpoint == 500
    gen.start(800)
    assert gen.state.phase == 0.0
    assert gen.state.base_setpoint == 800


def test_runner_reads_parameters_every_tick():
    session = RecordingSession()
    amp = {"value": "100"}
    gen = SineWaveGenerator()
    runner = SineWaveRunner(session, gen, 1000, lambda: amp["value"], lambda: 0.5)
    gen.start(1000)
    first = runner.step()
    amp["value"] = "0"
    second = runner.step()
    assert first == 1000 + round(100 * math.sin(2 * math.pi * 0.5 * 0.05))
    assert second == 1000
    assert session.sent == [(first, False), (1000, False)]


def test_runner_falls_back_on_bad_input():
    session = RecordingSession()
    gen = SineWaveGenerator()
    runner = SineWaveRunner(session, gen, 0, lambda: "abc", lambda: "")
    gen.start(0)
    assert runner.step() == round(100 * math.sin(2 * math.pi * 0.5 * 0.05))


def test_runner_survives_send_failure():
    seen = []
    gen = SineWaveGenerator()
    runner = SineWaveRunner(RecordingSession(fail=True), gen, 10, lambda: 0, lambda: 1,
                            on_setpoint=seen.append)
    gen.start(10)
    assert runner.step() == 10
    assert seen == [10]


def test_runner_thread_sends_until_stopped():
    session = RecordingSession()
    gen = SineWaveGenerator(tick_seconds=0.01)
    runner = SineWaveRunner(session, gen, 0, lambda: 100, lambda: 1)
    runner.start()
    assert session.sent_event.wait(2.0)
    runner.stop()
    runner.join(2.0)
    assert not runner.is_alive()
    assert not gen.running
    assert all(hold is False for _, hold in session.sent)


def test_generator_is_running_as_soon_as_start_returns():
    gen = SineWaveGenerator(tick_seconds=0.01)
    runner = SineWaveRunner(RecordingSession(), gen, 0, lambda: 100, lambda: 1)
    runner.start()
    try:
        assert gen.running
        assert gen.state.base_setpoint == 0
    finally:
        runner.stop()
        runner.join(2.0)


def test_stopped_runner_does_not_stop_its_successor():
    gen = SineWaveGenerator(tick_seconds=0.01)
    first = SineWaveRunner(RecordingSession(), gen, 0, lambda: 100, lambda: 1)
    first.start()
    first.stop()
    assert not gen.running
    second_session = RecordingSession()
    second = SineWaveRunner(second_session, gen, 500, lambda: 100, lambda: 1)
    second.start()
    try:
        first.join(2.0)
        assert not first.is_alive()
        assert gen.running
        assert second_session.sent_event.wait(2.0)
    finally:
        second.stop()
        second.join(2.0)
    assert not gen.running


def test_step_after_stop_sends_nothing():
    session = RecordingSession()
    gen = SineWaveGenerator()
    runner = SineWaveRunner(session, gen, 0, lambda: 100, lambda: 1)
    gen.start(0)
    runner.stop()
    assert runner.step() is None
    assert session.sent == []
