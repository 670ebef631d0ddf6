"""Read-only snapshots of engine state for the presentation layer.

Views are rebuilt from scratch on every call; nothing here mutates the
simulation, so a UI can poll them every frame.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional

from ascendance.catalog import FOCUS_UPGRADES, GENERATORS
from ascendance.simulation import Simulation
from ascendance.tasks import Task
from ascendance.types import Difficulty, DueStatus, FocusUpgradeId, GeneratorId
from ascendance.utils import time_remaining


@dataclass(frozen=True)
class BuffView:
    multiplier: float
    remaining_seconds: int


@dataclass(frozen=True)
class ResourceView:
    energy: float
    discipline_points: float
    focus_points: float
    current_streak: int
    streak_energy_multiplier: float
    passive_energy_per_second: float
    discipline_drain_per_second: float
    buffs: List[BuffView]
    can_prestige: bool
    prestige_requirement: float
    focus_points_gain: int


@dataclass(frozen=True)
class GeneratorView:
    id: GeneratorId
    name: str
    count: int
    current_cost: int
    current_production: float
    can_afford: bool


@dataclass(frozen=True)
class FocusUpgradeView:
    id: FocusUpgradeId
    name: str
    description: str
    current_level: int
    max_level: int
    cost: float
    can_afford: bool
    is_max_level: bool


@dataclass(frozen=True)
class TaskView:
    id: int
    text: str
    difficulty: Difficulty
    due_date: Optional[str]
    due_status: Optional[DueStatus]
    time_remaining_text: str
    is_subtask: bool
    is_collapsed: bool
    can_complete: bool
    can_break_down: bool
    subtask_count: int
    subtasks: List["TaskView"] = field(default_factory=list)


@dataclass(frozen=True)
class TaskListView:
    tasks: List[TaskView]
    orphans: List[TaskView]

    @property
    def is_empty(self) -> bool:
        return not self.tasks and not self.orphans


def resource_view(sim: Simulation) -> ResourceView:
    store = sim.store
    return ResourceView(
        energy=store.energy,
        discipline_points=store.discipline_points,
        focus_points=store.focus_points,
        current_streak=store.current_streak,
        streak_energy_multiplier=store.streak_energy_multiplier,
        passive_energy_per_second=sim.passive_energy_per_second(),
        discipline_drain_per_second=sim.discipline_drain_per_second(),
        buffs=[
            BuffView(b.multiplier, math.ceil(b.duration_ms / 1000))
            for b in store.active_energy_multipliers
        ],
        can_prestige=sim.can_prestige(),
        prestige_requirement=sim.tuning.prestige_requirement,
        focus_points_gain=sim.focus_points_gain(),
    )


def generator_views(sim: Simulation) -> List[GeneratorView]:
    out = []
    for gid, gen in GENERATORS.items():
        cost = sim.generator_cost(gid)
        out.append(GeneratorView(
            id=gid,
            name=gen.name,
            count=sim.store.generators.get(gid, 0),
            current_cost=cost,
            current_production=sim.generator_production(gid),
            can_afford=sim.store.energy >= cost,
        ))
    return out


def focus_upgrade_views(sim: Simulation) -> List[FocusUpgradeView]:
    mgr = sim.upgrade_manager
    out = []
    for uid, upgrade in FOCUS_UPGRADES.items():
        cost = mgr.get_cost(uid)
        out.append(FocusUpgradeView(
            id=uid,
            name=upgrade.name,
            description=upgrade.description,
            current_level=mgr.level(uid),
            max_level=max(1, upgrade.max_level),
            cost=cost,
            can_afford=sim.store.focus_points >= cost,
            is_max_level=mgr.is_max_level(uid),
        ))
    return out


def _task_view(sim: Simulation, task: Task, now: int, with_children: bool) -> TaskView:
    remaining = time_remaining(task.due_date, now)
    subtasks: List[TaskView] = []
    if with_children and task.has_subtasks and not task.is_collapsed:
        subtasks = [_task_view(sim, sub, now, False) for sub in sim.board.children(task)]
    return TaskView(
        id=task.id,
        text=task.text,
        difficulty=task.difficulty,
        due_date=task.due_date,
        due_status=remaining.status,
        time_remaining_text=remaining.text,
        is_subtask=task.is_subtask,
        is_collapsed=task.is_collapsed,
        can_complete=not task.has_subtasks,
        can_break_down=sim.board.can_break_down(task),
        subtask_count=len(task.sub_task_ids),
        subtasks=subtasks,
    )


def task_list_view(sim: Simulation) -> TaskListView:
    now = sim.clock()
    return TaskListView(
        tasks=[_task_view(sim, t, now, True) for t in sim.board.top_level()],
        orphans=[_task_view(sim, t, now, False) for t in sim.board.orphans()],
    )
