from __future__ import annotations

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SAVE_KEY = "productivityAscendanceSave"
SAVE_VERSION = 1
AUTO_SAVE_INTERVAL_SEC = 30.0

DUE_SOON_WINDOW_MS = 2 * 24 * 60 * 60 * 1000  # 48h


def default_tuning_path() -> Path:
    return Path(__file__).resolve().parents[2] / "tuning.json"


@dataclass
class Tuning:
    """Balance constants for the reward, streak, tick and prestige rules."""

    prestige_requirement: float = 1000.0
    discipline_drain_per_generator: float = 0.1

    streak_bonus_per_day: float = 0.01
    streak_max_bonus: float = 0.5

    task_base_reward: int = 10
    subtask_base_reward: int = 4
    due_date_bonus_ratio: float = 0.5

    easy_reward_multiplier: float = 1.0
    medium_reward_multiplier: float = 1.5
    hard_reward_multiplier: float = 2.0

    medium_buff_multiplier: float = 1.1
    medium_buff_duration_ms: float = 15000.0
    hard_buff_multiplier: float = 1.25
    hard_buff_duration_ms: float = 30000.0

    min_subtasks: int = 2


def load_tuning(path: Path | None = None) -> Tuning:
    if path is None:
        path = default_tuning_path()
    if not path.exists():
        return Tuning()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read tuning file %s: %s", path, e)
        return Tuning()
    try:
        return Tuning(**data)
    except TypeError as e:
        logger.warning("Ignoring invalid tuning file %s: %s", path, e)
        return Tuning()


def save_tuning(tuning: Tuning, path: Path | None = None) -> None:
    if path is None:
        path = default_tuning_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(tuning), indent=2), encoding="utf-8")
