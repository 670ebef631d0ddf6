from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from ascendance.catalog import GENERATORS
from ascendance.types import FocusUpgradeId, GeneratorId


@dataclass
class EnergyBuff:
    multiplier: float
    duration_ms: float


@dataclass
class ResourceStore:
    energy: float = 0.0
    discipline_points: float = 0.0
    focus_points: float = 0.0

    active_energy_multipliers: List[EnergyBuff] = field(default_factory=list)

    current_streak: int = 0
    last_completion_timestamp: int = 0  # epoch ms, 0 = never
    streak_energy_multiplier: float = 1.0

    generators: Dict[GeneratorId, int] = field(default_factory=dict)
    focus_upgrades_purchased: Dict[FocusUpgradeId, int] = field(default_factory=dict)

    # Lifetime statistics, kept across Refocus.
    total_energy_earned: float = 0.0
    total_tasks_completed: int = 0
    best_streak: int = 0
    refocus_count: int = 0

    def __post_init__(self) -> None:
        self.ensure_generators()

    def ensure_generators(self) -> None:
        for gid in GENERATORS:
            self.generators.setdefault(gid, 0)

    def add_energy(self, amount: float) -> None:
        if amount <= 0.0:
            return
        self.energy += amount
        self.total_energy_earned += amount

    def spend_energy(self, amount: float) -> bool:
        if amount > self.energy:
            return False
        self.energy -= amount
        return True

    def add_discipline(self, amount: float) -> None:
        if amount <= 0.0:
            return
        self.discipline_points += amount

    def drain_discipline(self, amount: float) -> float:
        """Remove up to amount Discipline, never going below zero."""
        if amount <= 0.0:
            return 0.0
        prev = self.discipline_points
        self.discipline_points = max(0.0, self.discipline_points - amount)
        return prev - self.discipline_points

    def spend_focus(self, amount: float) -> bool:
        if amount > self.focus_points:
            return False
        self.focus_points -= amount
        return True

    def push_buff(self, multiplier: float, duration_ms: float) -> None:
        if multiplier <= 1.0 or duration_ms <= 0.0:
            return
        self.active_energy_multipliers.append(EnergyBuff(multiplier, duration_ms))

    def decay_buffs(self, elapsed_ms: float) -> float:
        """Age every buff, drop the expired ones and return their product."""
        combined = 1.0
        survivors: List[EnergyBuff] = []
        for buff in self.active_energy_multipliers:
            buff.duration_ms -= elapsed_ms
            if buff.duration_ms > 0.0:
                combined *= buff.multiplier
                survivors.append(buff)
        self.active_energy_multipliers = survivors
        return combined

    def total_generators(self) -> int:
        return sum(self.generators.values())

    def upgrade_level(self, upgrade: FocusUpgradeId) -> int:
        return self.focus_upgrades_purchased.get(upgrade, 0)
