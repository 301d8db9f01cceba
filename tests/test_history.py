import pytest

from signalcraft.engine.history import HistoryBuffer


def test_capacity_and_fifo_order() -> None:
    buffer = HistoryBuffer(capacity=5)
    for value in range(1, 13):
        buffer.push(float(value))
        assert len(buffer) <= 5
    assert buffer.snapshot() == [8.0, 9.0, 10.0, 11.0, 12.0]
    assert buffer.last() == 12.0


def test_seeded_values_keep_most_recent_oldest_first() -> None:
    buffer = HistoryBuffer(capacity=3, values=[1, 2, 3, 4, 5])
    assert buffer.snapshot() == [3.0, 4.0, 5.0]
    assert buffer.last() == 5.0
    assert HistoryBuffer(capacity=3).last() is None


def test_snapshot_is_a_copy() -> None:
    buffer = HistoryBuffer(capacity=3, values=[1, 2])
    snap = buffer.snapshot()
    snap.append(99.0)
    assert buffer.snapshot() == [1.0, 2.0]


def test_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        HistoryBuffer(capacity=0)
