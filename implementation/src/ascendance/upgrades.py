"""Focus upgrade tree: purchase rules and stat bonus computation.

Each owned upgrade contributes its bonuses once per level. For a given
(target, stat_category) pair:
  additive_sum = 0.0
  multiplicative_product = 1.0
  for each upgrade with level > 0:
      for each bonus matching (target, stat_category):
          additive_sum += bonus.additive * level
          multiplicative_product *= bonus.multiplicative ** level
  return multiplicative_product * (additive_sum + 1.0)
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from ascendance.catalog import FOCUS_UPGRADES, StatCategory, upgrade_id
from ascendance.store import ResourceStore
from ascendance.types import ActionResult, FocusUpgradeId, FocusUpgradeType, GeneratorId

logger = logging.getLogger(__name__)


class UpgradeManager:
    """Reads and mutates upgrade levels held in a ResourceStore."""

    def __init__(self, store: ResourceStore,
                 upgrades: Optional[Dict[FocusUpgradeId, FocusUpgradeType]] = None) -> None:
        self.store = store
        self.upgrades = upgrades if upgrades is not None else FOCUS_UPGRADES

    def level(self, uid: FocusUpgradeId) -> int:
        return self.store.upgrade_level(uid)

    def get_upgrade_stat_bonus(self, target: Optional[GeneratorId], stat_category: int) -> float:
        """Cumulative bonus for a stat; 1.0 when nothing relevant is owned."""
        additive_sum = 0.0
        multiplicative_product = 1.0
        for uid, upgrade in self.upgrades.items():
            lvl = self.level(uid)
            if lvl <= 0:
                continue
            for bonus in upgrade.bonuses:
                if bonus.target == target and bonus.stat_category == stat_category:
                    additive_sum += bonus.additive * lvl
                    multiplicative_product *= bonus.multiplicative ** lvl
        return multiplicative_product * (additive_sum + 1.0)

    def production_multiplier(self, gid: GeneratorId) -> float:
        return self.get_upgrade_stat_bonus(gid, StatCategory.GENERATOR_PRODUCTION)

    def cost_multiplier(self, gid: GeneratorId) -> float:
        return self.get_upgrade_stat_bonus(gid, StatCategory.GENERATOR_COST)

    def task_reward_bonus(self, is_subtask: bool) -> int:
        """Flat base-reward bonus from Efficient Tasking."""
        stat = StatCategory.SUBTASK_REWARD if is_subtask else StatCategory.TASK_REWARD
        return int(round(self.get_upgrade_stat_bonus(None, stat) - 1.0))

    def get_cost(self, uid: FocusUpgradeId) -> float:
        # Flat cost per level.
        return self.upgrades[uid].cost

    def is_max_level(self, uid: FocusUpgradeId) -> bool:
        return self.level(uid) >= max(1, self.upgrades[uid].max_level)

    def can_purchase(self, uid: FocusUpgradeId) -> bool:
        if uid not in self.upgrades or self.is_max_level(uid):
            return False
        return self.store.focus_points >= self.get_cost(uid)

    def purchase(self, raw_id: object) -> ActionResult:
        """Buy the next level of an upgrade, debiting Focus Points."""
        uid = upgrade_id(raw_id)
        if uid is None or uid not in self.upgrades:
            logger.warning("Unknown focus upgrade %r", raw_id)
            return ActionResult(False, "Unknown upgrade.")
        upgrade = self.upgrades[uid]
        if self.is_max_level(uid):
            logger.debug("%s already at max level", upgrade.name)
            return ActionResult(False, f"{upgrade.name} is already at max level.")
        cost = self.get_cost(uid)
        if not self.store.spend_focus(cost):
            logger.debug(
                "Not enough Focus Points for %s. Need %s, have %s",
                upgrade.name, cost, self.store.focus_points,
            )
            return ActionResult(False, "Not enough Focus Points.")
        new_level = self.level(uid) + 1
        self.store.focus_upgrades_purchased[uid] = new_level
        logger.info("Purchased upgrade: %s (Level %d)", upgrade.name, new_level)
        return ActionResult(True)
