from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence

from ascendance import rewards
from ascendance.catalog import GENERATORS, generator_id
from ascendance.config import Tuning
from ascendance.store import ResourceStore
from ascendance.tasks import SubtaskSpec, Task, TaskBoard
from ascendance.types import ActionResult, Difficulty, GeneratorId
from ascendance.upgrades import UpgradeManager
from ascendance.utils import format_number, now_ms

logger = logging.getLogger(__name__)


class EngineEvent(str, Enum):
    TICK = "tick"
    TASKS = "tasks"
    GENERATORS = "generators"
    UPGRADES = "upgrades"
    PRESTIGE = "prestige"
    LOADED = "loaded"
    IMPORTED = "imported"

    @property
    def is_mutation(self) -> bool:
        return self not in (EngineEvent.TICK, EngineEvent.LOADED)


Listener = Callable[[EngineEvent], None]


@dataclass
class Simulation:
    """Game engine: owns the resource ledger and the task store.

    Tick pipeline (step):
    1. Decay temporary Energy buffs, multiply the survivors
    2. Combine with the streak multiplier
    3. Passive Energy from generators
    4. Discipline drain from generators (clamped at 0)
    5. Energy accrues only while Discipline is above 0
    6. Notify listeners

    User operations run between ticks and emit an EngineEvent on success so
    that the presentation layer can redraw and the auto-saver can persist.
    """
    tuning: Tuning = field(default_factory=Tuning)
    store: ResourceStore = field(default_factory=ResourceStore)
    board: TaskBoard = field(default_factory=TaskBoard)
    clock: Callable[[], int] = now_ms
    paused: bool = False
    total_ticks: int = 0
    _listeners: List[Listener] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self.upgrade_manager = UpgradeManager(self.store)
        self.board.min_subtasks = self.tuning.min_subtasks

    # ── Notifications ────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: EngineEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ── Tick loop ────────────────────────────────────────────────

    def step(self, dt: float) -> None:
        """Advance simulated time by dt seconds."""
        if self.paused or dt <= 0.0:
            return
        self.total_ticks += 1

        buffs_before = len(self.store.active_energy_multipliers)
        temp_multiplier = self.store.decay_buffs(dt * 1000.0)
        expired = buffs_before - len(self.store.active_energy_multipliers)
        if expired:
            logger.debug("%d energy multiplier(s) expired", expired)

        combined = temp_multiplier * self.store.streak_energy_multiplier
        passive_gain = self.passive_energy_per_second()

        self.store.drain_discipline(self.discipline_drain_per_second() * dt)

        # Generators produce nothing while Discipline is exhausted.
        if self.store.discipline_points > 0.0:
            self.store.add_energy(passive_gain * combined * dt)

        self.emit(EngineEvent.TICK)

    # ── Production engine ────────────────────────────────────────

    def generator_cost(self, gid: GeneratorId) -> int:
        gen = GENERATORS[gid]
        count = self.store.generators.get(gid, 0)
        discount = self.upgrade_manager.cost_multiplier(gid)
        return math.ceil(gen.base_cost * gen.cost_scale ** count * discount)

    def generator_production(self, gid: GeneratorId) -> float:
        """Energy/sec currently produced by all owned units of one generator."""
        count = self.store.generators.get(gid, 0)
        if count <= 0:
            return 0.0
        return count * GENERATORS[gid].base_production * self.upgrade_manager.production_multiplier(gid)

    def passive_energy_per_second(self) -> float:
        return sum(self.generator_production(gid) for gid in GENERATORS)

    def discipline_drain_per_second(self) -> float:
        return self.store.total_generators() * self.tuning.discipline_drain_per_generator

    def buy_generator(self, raw_id: object) -> ActionResult:
        gid = generator_id(raw_id)
        if gid is None:
            logger.warning("Unknown generator %r", raw_id)
            return ActionResult(False, "Unknown generator.")
        gen = GENERATORS[gid]
        cost = self.generator_cost(gid)
        if not self.store.spend_energy(cost):
            logger.debug(
                "Not enough energy to buy %s. Need %s, have %s",
                gen.name, format_number(cost), format_number(self.store.energy),
            )
            return ActionResult(False, "Not enough Energy.")
        self.store.generators[gid] = self.store.generators.get(gid, 0) + 1
        logger.info("Bought %s, new count: %d", gen.name, self.store.generators[gid])
        self.emit(EngineEvent.GENERATORS)
        return ActionResult(True)

    # ── Prestige engine ──────────────────────────────────────────

    def can_prestige(self) -> bool:
        return self.store.energy >= self.tuning.prestige_requirement

    def focus_points_gain(self) -> int:
        if not self.can_prestige():
            return 0
        return int(math.floor(self.store.energy / self.tuning.prestige_requirement))

    def attempt_prestige(self) -> ActionResult:
        """Refocus: convert Energy into Focus Points and reset the run.

        Upgrade levels, buffs, the streak, lifetime stats and tasks carry over.
        """
        if not self.can_prestige():
            logger.info(
                "Cannot prestige yet. Need %s energy, have %s",
                format_number(self.tuning.prestige_requirement), format_number(self.store.energy),
            )
            return ActionResult(
                False,
                f"Refocus requires {format_number(self.tuning.prestige_requirement)} Energy.",
            )
        gain = self.focus_points_gain()
        self.store.focus_points += gain
        self.store.energy = 0.0
        self.store.discipline_points = 0.0
        for gid in self.store.generators:
            self.store.generators[gid] = 0
        self.store.refocus_count += 1
        logger.info("Prestige successful: gained %d Focus Points", gain)
        self.emit(EngineEvent.PRESTIGE)
        return ActionResult(True, f"Gained {gain} Focus Points.")

    def buy_focus_upgrade(self, raw_id: object) -> ActionResult:
        result = self.upgrade_manager.purchase(raw_id)
        if result.ok:
            self.emit(EngineEvent.UPGRADES)
        return result

    # ── Task operations ──────────────────────────────────────────

    def add_task(self, text: str, due_date: object = None,
                 difficulty: object = Difficulty.MEDIUM) -> ActionResult:
        result = self.board.add(text, due_date, difficulty)
        if result.ok:
            self.emit(EngineEvent.TASKS)
        return result

    def delete_task(self, task_id: int) -> ActionResult:
        result = self.board.delete(task_id)
        if result.ok:
            self.emit(EngineEvent.TASKS)
        return result

    def toggle_collapse(self, task_id: int) -> ActionResult:
        result = self.board.toggle_collapse(task_id)
        if result.ok:
            self.emit(EngineEvent.TASKS)
        return result

    def breakdown(self, parent_id: int, specs: Sequence[SubtaskSpec]) -> ActionResult:
        result = self.board.breakdown(parent_id, specs)
        if result.ok:
            self.emit(EngineEvent.TASKS)
        return result

    def default_subtask_specs(self, parent_id: int, count: int = 2) -> List[SubtaskSpec]:
        return self.board.default_subtask_specs(parent_id, count)

    def complete_task(self, task_id: int) -> ActionResult:
        task = self.board.get(task_id)
        if task is None:
            logger.warning("Cannot complete unknown task %r", task_id)
            return ActionResult(False, "Task not found.")
        if task.has_subtasks:
            logger.info("Attempted to complete parent task %d with active sub-tasks", task.id)
            return ActionResult(False, "Complete all sub-tasks first.")

        now = self.clock()
        rewards.register_completion(self.store, now, self.tuning)

        bonus = self.upgrade_manager.task_reward_bonus(task.is_subtask)
        reward = rewards.compute_reward(task, bonus, now, self.tuning)
        reward = dataclasses.replace(reward, streak=self.store.current_streak)
        rewards.apply_reward(self.store, reward)

        removed = self.board.remove_completed(task)
        logger.info(
            "Task completed: %d (subtask: %s, difficulty: %s). Awarded %d Discipline & Energy",
            task.id, task.is_subtask, task.difficulty.value, reward.final_reward,
        )
        self.emit(EngineEvent.TASKS)
        return ActionResult(True, _removed_message(removed), reward=reward)

    # ── Lifecycle ────────────────────────────────────────────────

    def check_daily_streak(self) -> None:
        rewards.check_daily_streak(self.store, self.clock(), self.tuning)

    def install(self, store: ResourceStore, tasks: Iterable[Task]) -> None:
        """Swap in a complete ledger and task list (used by load/import)."""
        store.ensure_generators()
        board = TaskBoard(min_subtasks=self.tuning.min_subtasks)
        board.set_tasks(tasks)
        self.store = store
        self.upgrade_manager = UpgradeManager(store)
        self.board = board

    def reset_state(self) -> None:
        """Replace the ledger and task store with a fresh game."""
        self.install(ResourceStore(), [])
        self.total_ticks = 0


def _removed_message(removed: List[int]) -> str:
    if len(removed) > 1:
        return "All sub-tasks done, parent task completed."
    return ""


def demo_simulation(tuning: Optional[Tuning] = None) -> Simulation:
    return Simulation(tuning=tuning or Tuning())
