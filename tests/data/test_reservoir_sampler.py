import pytest

from streamlearn.data.reservoir import ReservoirSampler


def test_empty_sampler_returns_none():
    assert ReservoirSampler(3).sample() is None


def test_keeps_everything_below_capacity():
    s = ReservoirSampler(5)
    for i in range(3):
        s.process_row((i,))

    assert s.sample() == [(0,), (1,), (2,)]


def test_bounded_and_seeded():
    a, b = ReservoirSampler(10, seed=7), ReservoirSampler(10, seed=7)
    for i in range(1000):
        a.process_row((i,))
        b.process_row((i,))

    assert len(a) == 10
    assert a.seen == 1000
    assert a.sample() == b.sample()


def test_reset_clears_sample():
    s = ReservoirSampler(2)
    s.process_row((1,))
    s.reset()

    assert s.sample() is None
    assert len(s) == 0


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ReservoirSampler(0)
