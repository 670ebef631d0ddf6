from __future__ import annotations

import pytest

from ascendance.simulation import EngineEvent, Simulation
from ascendance.types import GeneratorId


def _sim(clicks: int = 1, discipline: float = 10.0) -> Simulation:
    sim = Simulation()
    sim.store.generators[GeneratorId.MANUAL_CLICK] = clicks
    sim.store.discipline_points = discipline
    return sim


def test_step_accrues_energy_and_drains_discipline() -> None:
    sim = _sim()

    sim.step(1.0)

    assert sim.store.energy == pytest.approx(0.1)
    assert sim.store.discipline_points == pytest.approx(9.9)


def test_no_energy_once_discipline_exhausted() -> None:
    sim = _sim(discipline=0.05)

    sim.step(1.0)

    assert sim.store.discipline_points == 0.0
    assert sim.store.energy == 0.0


def test_discipline_clamped_at_zero() -> None:
    sim = _sim(clicks=100, discipline=1.0)

    sim.step(5.0)

    assert sim.store.discipline_points == 0.0


def test_discipline_untouched_without_generators() -> None:
    sim = _sim(clicks=0, discipline=3.0)

    sim.step(10.0)

    assert sim.store.discipline_points == 3.0
    assert sim.store.energy == 0.0


def test_active_buff_multiplies_passive_gain_and_decays() -> None:
    sim = _sim()
    sim.store.push_buff(1.25, 30000)

    sim.step(1.0)

    assert sim.store.energy == pytest.approx(0.125)
    assert sim.store.active_energy_multipliers[0].duration_ms == pytest.approx(29000)


def test_buffs_stack_with_streak_multiplier() -> None:
    sim = _sim()
    sim.store.push_buff(1.25, 30000)
    sim.store.push_buff(1.1, 15000)
    sim.store.streak_energy_multiplier = 1.1

    sim.step(2.0)

    assert sim.store.energy == pytest.approx(0.1 * 2.0 * 1.25 * 1.1 * 1.1)


def test_expired_buff_dropped_before_gain() -> None:
    sim = _sim()
    sim.store.push_buff(1.25, 500)

    sim.step(1.0)

    assert sim.store.active_energy_multipliers == []
    assert sim.store.energy == pytest.approx(0.1)


def test_buff_with_exactly_zero_remaining_is_expired() -> None:
    sim = _sim()
    sim.store.push_buff(1.1, 1000)

    sim.step(1.0)

    assert sim.store.active_energy_multipliers == []


def test_step_emits_tick_and_ignores_non_positive_dt() -> None:
    sim = _sim()
    events = []
    sim.subscribe(events.append)

    sim.step(0.0)
    sim.step(-1.0)
    assert events == []

    sim.step(0.5)
    assert events == [EngineEvent.TICK]
    assert not EngineEvent.TICK.is_mutation


def test_paused_simulation_does_not_advance() -> None:
    sim = _sim()
    sim.paused = True

    sim.step(1.0)

    assert sim.store.energy == 0.0
    assert sim.store.discipline_points == 10.0


def test_total_energy_earned_tracks_passive_gain() -> None:
    sim = _sim(clicks=10)

    for _ in range(10):
        sim.step(0.1)

    assert sim.store.total_energy_earned == pytest.approx(sim.store.energy)
    assert sim.store.energy == pytest.approx(1.0)
