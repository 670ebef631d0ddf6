from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class GeneratorId(str, Enum):
    MANUAL_CLICK = "gen1"
    STUDENT_INTERN = "gen2"
    COFFEE_MACHINE = "gen3"
    WORKSTATION = "gen4"


class FocusUpgradeId(str, Enum):
    TASK_ENERGY_BOOST = "taskEnergyBoost"
    GEN1_BOOST = "gen1Boost"
    INTERN_DISCOUNT = "internDiscount"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class DueStatus(str, Enum):
    OK = "ok"
    DUE_SOON = "due-soon"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class GeneratorType:
    id: GeneratorId
    name: str
    base_cost: float
    cost_scale: float
    base_production: float  # energy/sec per unit


@dataclass(frozen=True)
class Bonus:
    """A single stat modifier granted per upgrade level.

    target is the generator id the bonus applies to, or None for bonuses that
    are not tied to a generator (task rewards).
    """
    target: Optional[GeneratorId]
    stat_category: int
    additive: float = 0.0
    multiplicative: float = 1.0


@dataclass(frozen=True)
class FocusUpgradeType:
    id: FocusUpgradeId
    name: str
    description: str
    cost: float
    max_level: int = 1
    bonuses: Tuple[Bonus, ...] = ()


@dataclass
class ActionResult:
    """Outcome of a user-triggered engine operation.

    Expected rejections (unaffordable, unknown id, failed precondition) come
    back with ok=False and a message the presentation layer may show.
    """
    ok: bool
    message: str = ""
    reward: Optional["TaskReward"] = None
    created_ids: List[int] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class TaskReward:
    base_reward: int
    due_date_bonus: int
    difficulty_multiplier: float
    final_reward: int
    buff_multiplier: float = 1.0
    buff_duration_ms: float = 0.0
    streak: int = 0
