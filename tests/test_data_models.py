import dataclasses

import pytest

from motor_client.config import MAX_SAMPLES
from motor_client.data_models import Sample, SampleHistory


def test_default_capacity():
    assert SampleHistory().capacity == MAX_SAMPLES == 500


def test_overflow_keeps_most_recent():
    history = SampleHistory(500)
    for i in range(501):
        history.append(Sample(i, i, 0))
    snap = history.snapshot()
    assert len(history) == 500
    assert snap[0].timestamp_ms == 1
    assert snap[-1].timestamp_ms == 500
    assert [s.timestamp_ms for s in snap] == list(range(1, 501))


def test_snapshot_is_a_copy():
    history = SampleHistory(3)
    history.append(Sample(0, 1, 1))
    snap = history.snapshot()
    history.append(Sample(1, 2, 2))
    assert isinstance(snap, tuple)
    assert len(snap) == 1
    assert len(history.snapshot()) == 2


def test_latest_and_clear():
    history = SampleHistory(3)
    assert history.latest() is None
    history.append(Sample(0, 1, 1))
    history.append(Sample(5, 2, 2))
    assert history.latest() == Sample(5, 2, 2)
    history.clear()
    assert len(history) == 0
    assert history.snapshot() == ()


def test_sample_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        Sample(0, 1, 2).position = 5


def test_invalid_capacity():
    with pytest.raises(ValueError):
        SampleHistory(0)
