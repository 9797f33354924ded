from __future__ import annotations

import logging
from datetime import datetime

from universe25.sim.core.rng import DeterministicRng, time_based_seed


def _draws(rng: DeterministicRng, count: int) -> list[float]:
    return [rng.next_float() for _ in range(count)]


def test_same_seed_replays_same_stream():
    assert _draws(DeterministicRng(1234), 200) == _draws(DeterministicRng(1234), 200)


def test_neighbouring_seeds_diverge():
    assert _draws(DeterministicRng(1), 5) != _draws(DeterministicRng(2), 5)


def test_draws_stay_in_unit_interval():
    rng = DeterministicRng(99)
    for value in _draws(rng, 10_000):
        assert 0.0 <= value < 1.0


def test_low_bits_are_balanced():
    rng = DeterministicRng(1)
    bits = [int(value * 4294967296) & 1 for value in _draws(rng, 2000)]
    assert 800 < sum(bits) < 1200


def test_reset_rewinds_to_seed():
    rng = DeterministicRng(77)
    first = _draws(rng, 10)
    rng.reset()
    assert _draws(rng, 10) == first


def test_next_range_respects_bounds():
    rng = DeterministicRng(5)
    for _ in range(1000):
        value = rng.next_range(-20.0, 20.0)
        assert -20.0 <= value <= 20.0


def test_random_position_respects_padding_and_bounds():
    rng = DeterministicRng(7, width=300, height=200)
    for _ in range(500):
        point = rng.random_position(50)
        assert 50 <= point.x <= 250
        assert 50 <= point.y <= 150

    rng.set_bounds(120, 120)
    for _ in range(500):
        point = rng.random_position(10)
        assert 10 <= point.x <= 110
        assert 10 <= point.y <= 110


def test_environmental_factor_folds_into_seed():
    plain = DeterministicRng(42)
    folded = DeterministicRng(42)
    assert folded.set_environmental_factor(21.5)
    assert folded.seed == (42 * 2150) & 0xFFFFFFFF
    assert _draws(plain, 5) != _draws(folded, 5)


def test_negative_factor_uses_magnitude():
    rng = DeterministicRng(42)
    rng.set_environmental_factor(-3.0)
    assert rng.seed == 42 * 300


def test_zero_factor_leaves_seed_unchanged():
    rng = DeterministicRng(42)
    assert rng.set_environmental_factor(0.0)
    assert rng.seed == 42


def test_environmental_factor_restarts_stream():
    rng = DeterministicRng(42)
    rng.next_float()
    rng.set_environmental_factor(1.5)
    assert _draws(rng, 3) == _draws(DeterministicRng((42 * 150) & 0xFFFFFFFF), 3)


def test_non_finite_factor_is_ignored(caplog):
    rng = DeterministicRng(42)
    with caplog.at_level(logging.WARNING):
        assert not rng.set_environmental_factor(float("nan"))
        assert not rng.set_environmental_factor(float("inf"))
    assert rng.seed == 42
    assert "not finite" in caplog.text


def test_time_based_seed_uses_clock_and_date():
    now = datetime(2024, 3, 5, 10, 20, 30)
    expected = ((10 * 3600 + 20 * 60 + 30) * 20240305) & 0xFFFFFFFF
    assert time_based_seed(now) == expected


def test_time_based_seed_at_midnight_is_zero():
    assert time_based_seed(datetime(2024, 1, 1)) == 0


def test_environmental_factor_is_folded_only_once(caplog):
    rng = DeterministicRng(42)
    assert rng.set_environmental_factor(21.5)
    with caplog.at_level(logging.WARNING):
        assert not rng.set_environmental_factor(21.5)
    assert rng.seed == (42 * 2150) & 0xFFFFFFFF
    assert "already applied" in caplog.text


def test_unusable_factor_does_not_block_a_later_one():
    rng = DeterministicRng(42)
    assert not rng.set_environmental_factor(float("nan"))
    assert rng.set_environmental_factor(3.0)
    assert rng.seed == 42 * 300
