import pytest

from signalcraft.utils.rng import RNGManager, ScriptedSource, seeded_source


def test_named_streams_are_independent_and_repeatable() -> None:
    a = RNGManager(5).source("market")
    b = RNGManager(5).source("market")
    c = RNGManager(5).source("other")
    draws_a = [a.next_float() for _ in range(20)]
    assert draws_a == [b.next_float() for _ in range(20)]
    assert draws_a != [c.next_float() for _ in range(20)]
    assert all(0.0 <= d < 1.0 for d in draws_a)


def test_seeded_source_shorthand() -> None:
    assert seeded_source(8).next_float() == RNGManager(8).source("market").next_float()


def test_scripted_source_cycles() -> None:
    source = ScriptedSource([0.1, 0.2])
    assert [source.next_float() for _ in range(5)] == [0.1, 0.2, 0.1, 0.2, 0.1]
    assert source.draws == 5


def test_scripted_source_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        ScriptedSource([1.0])
    with pytest.raises(ValueError):
        ScriptedSource([])
