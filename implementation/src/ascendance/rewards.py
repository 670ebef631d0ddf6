"""Task completion rewards and daily streak bookkeeping."""
from __future__ import annotations

import logging
import math
from typing import Tuple

from ascendance.config import Tuning
from ascendance.store import ResourceStore
from ascendance.tasks import Task
from ascendance.types import Difficulty, TaskReward
from ascendance.utils import due_calendar_date, is_same_day, is_yesterday, local_date

logger = logging.getLogger(__name__)


def streak_multiplier(streak: int, tuning: Tuning) -> float:
    return 1.0 + min(streak * tuning.streak_bonus_per_day, tuning.streak_max_bonus)


def recalculate_streak_multiplier(store: ResourceStore, tuning: Tuning) -> None:
    store.streak_energy_multiplier = streak_multiplier(store.current_streak, tuning)


def register_completion(store: ResourceStore, now: int, tuning: Tuning) -> None:
    """Advance the streak for a completion at now (epoch ms)."""
    last = store.last_completion_timestamp
    if last and is_same_day(now, last):
        logger.debug("Completed another task today. Streak remains %d", store.current_streak)
    elif is_yesterday(now, last):
        store.current_streak += 1
        logger.info("Streak continued! Current streak: %d", store.current_streak)
    else:
        logger.info("New streak started. Previous streak was %d", store.current_streak)
        store.current_streak = 1
    store.best_streak = max(store.best_streak, store.current_streak)
    recalculate_streak_multiplier(store, tuning)
    store.last_completion_timestamp = now


def check_daily_streak(store: ResourceStore, now: int, tuning: Tuning) -> None:
    """Drop a streak that lapsed while the game was closed."""
    last = store.last_completion_timestamp
    if not last:
        store.current_streak = 0
    elif not is_same_day(now, last) and not is_yesterday(now, last):
        logger.info("Streak broken. Last completion was on %s", local_date(last))
        store.current_streak = 0
    recalculate_streak_multiplier(store, tuning)


def difficulty_terms(difficulty: Difficulty, tuning: Tuning) -> Tuple[float, float, float]:
    """(reward multiplier, buff multiplier, buff duration ms) for a difficulty."""
    if difficulty is Difficulty.HARD:
        return tuning.hard_reward_multiplier, tuning.hard_buff_multiplier, tuning.hard_buff_duration_ms
    if difficulty is Difficulty.MEDIUM:
        return tuning.medium_reward_multiplier, tuning.medium_buff_multiplier, tuning.medium_buff_duration_ms
    return tuning.easy_reward_multiplier, 1.0, 0.0


def due_date_bonus(task: Task, base_reward: int, now: int, tuning: Tuning) -> int:
    # Calendar-day comparison only; the time of day of a due date is ignored.
    due_day = due_calendar_date(task.due_date)
    if due_day is None:
        return 0
    if local_date(now) <= due_day:
        return math.ceil(base_reward * tuning.due_date_bonus_ratio)
    return 0


def compute_reward(task: Task, task_bonus: int, now: int, tuning: Tuning) -> TaskReward:
    """Reward for completing task at now; task_bonus is the flat upgrade bonus."""
    base = tuning.subtask_base_reward if task.is_subtask else tuning.task_base_reward
    base += task_bonus
    due_bonus = due_date_bonus(task, base, now, tuning)
    reward_mult, buff_mult, buff_ms = difficulty_terms(task.difficulty, tuning)
    final = math.ceil((base + due_bonus) * reward_mult)
    return TaskReward(
        base_reward=base,
        due_date_bonus=due_bonus,
        difficulty_multiplier=reward_mult,
        final_reward=final,
        buff_multiplier=buff_mult,
        buff_duration_ms=buff_ms,
    )


def apply_reward(store: ResourceStore, reward: TaskReward) -> None:
    store.add_energy(reward.final_reward)
    store.add_discipline(reward.final_reward)
    if reward.buff_multiplier > 1.0 and reward.buff_duration_ms > 0:
        store.push_buff(reward.buff_multiplier, reward.buff_duration_ms)
        logger.info(
            "Added energy multiplier: %sx for %ss",
            reward.buff_multiplier, reward.buff_duration_ms / 1000,
        )
    store.total_tasks_completed += 1
