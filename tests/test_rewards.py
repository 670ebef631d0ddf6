from __future__ import annotations

from datetime import datetime

import pytest

from ascendance import rewards
from ascendance.config import Tuning
from ascendance.simulation import Simulation
from ascendance.store import EnergyBuff, ResourceStore
from ascendance.tasks import Task
from ascendance.types import Difficulty, FocusUpgradeId


def _ms(year: int, month: int, day: int, hour: int = 12) -> int:
    return int(datetime(year, month, day, hour).timestamp() * 1000)


NOW = _ms(2024, 6, 12)


def _sim(now: int = NOW) -> Simulation:
    return Simulation(clock=lambda: now)


def test_hard_task_reward_and_buff() -> None:
    sim = _sim()
    task_id = sim.add_task("Write quarterly report", difficulty="hard").created_ids[0]

    result = sim.complete_task(task_id)

    assert result.ok
    assert result.reward.final_reward == 20
    assert result.reward.streak == 1
    assert sim.store.energy == 20
    assert sim.store.discipline_points == 20
    assert sim.store.active_energy_multipliers == [EnergyBuff(1.25, 30000)]
    assert sim.store.total_tasks_completed == 1
    assert sim.board.get(task_id) is None


def test_medium_task_due_today_gets_bonus() -> None:
    sim = _sim()
    task_id = sim.add_task("Email", due_date="2024-06-12", difficulty="medium").created_ids[0]

    reward = sim.complete_task(task_id).reward

    assert reward.base_reward == 10
    assert reward.due_date_bonus == 5
    assert reward.final_reward == 23  # ceil(15 * 1.5)
    assert sim.store.active_energy_multipliers == [EnergyBuff(1.1, 15000)]


def test_easy_task_due_in_future() -> None:
    sim = _sim()
    task_id = sim.add_task("Water plants", due_date="2024-06-20", difficulty="easy").created_ids[0]

    reward = sim.complete_task(task_id).reward

    assert reward.final_reward == 15
    assert sim.store.active_energy_multipliers == []


def test_overdue_task_gets_no_bonus() -> None:
    sim = _sim()
    task_id = sim.add_task("Pay bill", due_date="2024-06-11", difficulty="easy").created_ids[0]

    assert sim.complete_task(task_id).reward.final_reward == 10


def test_unparseable_due_date_gets_no_bonus() -> None:
    task = Task(id=1, text="Someday", due_date="someday", difficulty=Difficulty.EASY)

    reward = rewards.compute_reward(task, 0, NOW, Tuning())

    assert reward.due_date_bonus == 0
    assert reward.final_reward == 10


def test_due_time_earlier_today_still_counts() -> None:
    task = Task(
        id=2, text="Standup notes", due_date="2024-06-12T08:00",
        difficulty=Difficulty.MEDIUM, is_subtask=True, parent_task_id=1,
    )

    reward = rewards.compute_reward(task, 0, NOW, Tuning())

    assert reward.base_reward == 4
    assert reward.due_date_bonus == 2
    assert reward.final_reward == 9


def test_efficient_tasking_raises_base_reward() -> None:
    sim = _sim()
    sim.store.focus_upgrades_purchased[FocusUpgradeId.TASK_ENERGY_BOOST] = 2
    parent = sim.add_task("Project", difficulty="hard").created_ids[0]
    easy = sim.add_task("Quick one", difficulty="easy").created_ids[0]
    sim.breakdown(parent, sim.default_subtask_specs(parent))
    sub = sim.board.get(parent).sub_task_ids[0]

    assert sim.complete_task(easy).reward.final_reward == 20
    sub_reward = sim.complete_task(sub).reward
    assert sub_reward.base_reward == 8
    assert sub_reward.final_reward == 12


def test_complete_parent_with_subtasks_rejected() -> None:
    sim = _sim()
    parent = sim.add_task("Big thing", difficulty="hard").created_ids[0]
    sim.breakdown(parent, sim.default_subtask_specs(parent))

    result = sim.complete_task(parent)

    assert not result.ok
    assert result.message == "Complete all sub-tasks first."
    assert sim.store.energy == 0
    assert sim.store.current_streak == 0


def test_complete_unknown_task_rejected() -> None:
    sim = _sim()

    result = sim.complete_task(42)

    assert not result.ok
    assert sim.store.total_tasks_completed == 0


def test_streak_consecutive_days() -> None:
    store = ResourceStore()
    tuning = Tuning()

    rewards.register_completion(store, _ms(2024, 6, 10), tuning)
    assert store.current_streak == 1
    rewards.register_completion(store, _ms(2024, 6, 11), tuning)
    assert store.current_streak == 2
    assert store.streak_energy_multiplier == pytest.approx(1.02)


def test_streak_same_day_unchanged() -> None:
    store = ResourceStore()
    tuning = Tuning()

    rewards.register_completion(store, _ms(2024, 6, 10, 9), tuning)
    rewards.register_completion(store, _ms(2024, 6, 10, 18), tuning)

    assert store.current_streak == 1
    assert store.last_completion_timestamp == _ms(2024, 6, 10, 18)


def test_streak_resets_after_missed_day() -> None:
    store = ResourceStore()
    tuning = Tuning()

    rewards.register_completion(store, _ms(2024, 6, 10), tuning)
    rewards.register_completion(store, _ms(2024, 6, 11), tuning)
    rewards.register_completion(store, _ms(2024, 6, 13), tuning)

    assert store.current_streak == 1
    assert store.best_streak == 2
    assert store.streak_energy_multiplier == pytest.approx(1.01)


def test_streak_multiplier_capped() -> None:
    tuning = Tuning()

    assert rewards.streak_multiplier(0, tuning) == 1.0
    assert rewards.streak_multiplier(10, tuning) == pytest.approx(1.1)
    assert rewards.streak_multiplier(50, tuning) == pytest.approx(1.5)
    assert rewards.streak_multiplier(400, tuning) == pytest.approx(1.5)


def test_check_daily_streak_keeps_yesterday() -> None:
    store = ResourceStore(current_streak=4, last_completion_timestamp=_ms(2024, 6, 11, 23))

    rewards.check_daily_streak(store, NOW, Tuning())

    assert store.current_streak == 4
    assert store.streak_energy_multiplier == pytest.approx(1.04)


def test_check_daily_streak_drops_lapsed_streak() -> None:
    store = ResourceStore(
        current_streak=4,
        last_completion_timestamp=_ms(2024, 6, 9),
        streak_energy_multiplier=1.04,
    )

    rewards.check_daily_streak(store, NOW, Tuning())

    assert store.current_streak == 0
    assert store.streak_energy_multiplier == 1.0


def test_check_daily_streak_without_history() -> None:
    store = ResourceStore(current_streak=3)

    rewards.check_daily_streak(store, NOW, Tuning())

    assert store.current_streak == 0
