"""Static generator and Focus upgrade tables.

Both tables are keyed by a fixed enum so lookups are O(1) and every id the
engine handles is known up front. Save files carry the raw string ids; use
generator_id()/upgrade_id() to turn them back into enum members.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Dict, Optional

from ascendance.types import (
    Bonus,
    FocusUpgradeId,
    FocusUpgradeType,
    GeneratorId,
    GeneratorType,
)


class StatCategory(IntEnum):
    NONE = 0
    GENERATOR_PRODUCTION = 1
    GENERATOR_COST = 2
    TASK_REWARD = 3
    SUBTASK_REWARD = 4


GENERATORS: Dict[GeneratorId, GeneratorType] = {
    GeneratorId.MANUAL_CLICK: GeneratorType(
        id=GeneratorId.MANUAL_CLICK,
        name="Manual Click",
        base_cost=10,
        cost_scale=1.15,
        base_production=0.1,
    ),
    GeneratorId.STUDENT_INTERN: GeneratorType(
        id=GeneratorId.STUDENT_INTERN,
        name="Student Intern",
        base_cost=100,
        cost_scale=1.20,
        base_production=1,
    ),
    GeneratorId.COFFEE_MACHINE: GeneratorType(
        id=GeneratorId.COFFEE_MACHINE,
        name="Automated Coffee Machine",
        base_cost=1100,
        cost_scale=1.25,
        base_production=10,
    ),
    GeneratorId.WORKSTATION: GeneratorType(
        id=GeneratorId.WORKSTATION,
        name="Focused Workstation",
        base_cost=13000,
        cost_scale=1.30,
        base_production=85,
    ),
}


FOCUS_UPGRADES: Dict[FocusUpgradeId, FocusUpgradeType] = {
    FocusUpgradeId.TASK_ENERGY_BOOST: FocusUpgradeType(
        id=FocusUpgradeId.TASK_ENERGY_BOOST,
        name="Efficient Tasking",
        description="Gain +5 base Energy per completed task.",
        cost=1,
        max_level=5,
        bonuses=(
            Bonus(target=None, stat_category=StatCategory.TASK_REWARD, additive=5.0),
            Bonus(target=None, stat_category=StatCategory.SUBTASK_REWARD, additive=2.0),
        ),
    ),
    FocusUpgradeId.GEN1_BOOST: FocusUpgradeType(
        id=FocusUpgradeId.GEN1_BOOST,
        name="Click Training",
        description="Manual Click generators produce 2x more Energy.",
        cost=2,
        max_level=1,
        bonuses=(
            Bonus(
                target=GeneratorId.MANUAL_CLICK,
                stat_category=StatCategory.GENERATOR_PRODUCTION,
                multiplicative=2.0,
            ),
        ),
    ),
    FocusUpgradeId.INTERN_DISCOUNT: FocusUpgradeType(
        id=FocusUpgradeId.INTERN_DISCOUNT,
        name="Intern Referral",
        description="Student Interns are 10% cheaper.",
        cost=5,
        max_level=1,
        bonuses=(
            Bonus(
                target=GeneratorId.STUDENT_INTERN,
                stat_category=StatCategory.GENERATOR_COST,
                multiplicative=0.9,
            ),
        ),
    ),
}


def generator_id(raw: object) -> Optional[GeneratorId]:
    """Return the GeneratorId for a raw id string, or None if unknown."""
    try:
        return GeneratorId(raw)
    except ValueError:
        return None


def upgrade_id(raw: object) -> Optional[FocusUpgradeId]:
    try:
        return FocusUpgradeId(raw)
    except ValueError:
        return None
