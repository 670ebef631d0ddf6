"""Save/load, export/import and auto-save for the game state.

The save blob is a JSON object holding the resource ledger and the task list.
Field names match the browser build's localStorage save so that an old
unversioned blob loads unchanged; new saves add "version".

Storage: JSON file (native, written atomically) or localStorage (web).
Export: base64-JSON text. Import: raw JSON or base64-JSON.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from ascendance.catalog import generator_id, upgrade_id
from ascendance.config import AUTO_SAVE_INTERVAL_SEC, SAVE_KEY, SAVE_VERSION
from ascendance.simulation import EngineEvent, Simulation
from ascendance.store import EnergyBuff, ResourceStore
from ascendance.tasks import Task, parse_difficulty
from ascendance.types import ActionResult, Difficulty
from ascendance.utils import local_date, normalize_due_date

logger = logging.getLogger(__name__)

_WEB = sys.platform == "emscripten"

# Anything a malformed blob can raise while being converted to engine types.
_RESTORE_ERRORS = (KeyError, TypeError, ValueError, AttributeError, OverflowError)


class SaveBackend(Protocol):
    def read(self) -> Optional[str]: ...

    def write(self, text: str) -> None: ...


class MemoryBackend:
    """Key-value blob held in a dict (tests, embedding hosts)."""

    def __init__(self, key: str = SAVE_KEY, data: Optional[Dict[str, str]] = None) -> None:
        self.key = key
        self.data: Dict[str, str] = data if data is not None else {}

    def read(self) -> Optional[str]:
        return self.data.get(self.key)

    def write(self, text: str) -> None:
        self.data[self.key] = text


class FileBackend:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def write(self, text: str) -> None:
        """Write atomically (tmp + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(self.path)


if _WEB:
    class LocalStorageBackend:
        def __init__(self, key: str = SAVE_KEY) -> None:
            self.key = key

        def read(self) -> Optional[str]:
            from js import window  # type: ignore
            text = window.localStorage.getItem(self.key)
            if text is None:
                return None
            # Convert JsProxy string to Python string if needed
            return str(text)

        def write(self, text: str) -> None:
            from js import window  # type: ignore
            window.localStorage.setItem(self.key, text)


def default_backend(path: Optional[Path] = None) -> SaveBackend:
    if _WEB:
        return LocalStorageBackend()
    if path is None:
        path = Path.cwd() / "ascendance_save.json"
    return FileBackend(path)


# ── Schema ──────────────────────────────────────────────────────────

def _task_to_dict(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "text": task.text,
        "dueDate": task.due_date,
        "completed": task.completed,
        "difficulty": task.difficulty.value,
        "isBreakable": task.is_breakable,
        "isSubtask": task.is_subtask,
        "parentTaskId": task.parent_task_id,
        "subTaskIds": list(task.sub_task_ids),
        "isCollapsed": task.is_collapsed,
    }


def _due_date(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        logger.warning("Ignoring non-text due date %r in save", value)
        return None
    return normalize_due_date(value)


def _task_from_dict(data: Dict[str, Any]) -> Task:
    difficulty = parse_difficulty(data.get("difficulty") or Difficulty.MEDIUM) or Difficulty.MEDIUM
    breakable = data.get("isBreakable")
    parent = data.get("parentTaskId")
    return Task(
        id=int(data.get("id") or 0),
        text=str(data.get("text") or "Unnamed Task"),
        due_date=_due_date(data.get("dueDate")),
        completed=bool(data.get("completed", False)),
        difficulty=difficulty,
        is_breakable=bool(breakable) if breakable is not None else difficulty is Difficulty.HARD,
        is_subtask=bool(data.get("isSubtask", False)),
        parent_task_id=int(parent) if parent else None,
        sub_task_ids=[int(i) for i in data.get("subTaskIds") or []],
        is_collapsed=bool(data.get("isCollapsed", False)),
    )


def _build_save_dict(sim: Simulation) -> Dict[str, Any]:
    """Build a JSON-serializable dict from simulation state."""
    store = sim.store
    return {
        "version": SAVE_VERSION,
        "energy": store.energy,
        "focusPoints": store.focus_points,
        "disciplinePoints": store.discipline_points,
        "generators": {gid.value: {"count": count} for gid, count in store.generators.items()},
        "focusUpgradesPurchased": {uid.value: lvl for uid, lvl in store.focus_upgrades_purchased.items()},
        "activeEnergyMultipliers": [
            {"multiplier": b.multiplier, "duration": b.duration_ms}
            for b in store.active_energy_multipliers
        ],
        "currentStreak": store.current_streak,
        "lastCompletionTimestamp": store.last_completion_timestamp,
        "streakEnergyMultiplier": store.streak_energy_multiplier,
        "stats": {
            "totalEnergyEarned": store.total_energy_earned,
            "totalTasksCompleted": store.total_tasks_completed,
            "bestStreak": store.best_streak,
            "refocusCount": store.refocus_count,
        },
        "tasks": [_task_to_dict(t) for t in sim.board.tasks],
    }


def _num(data: Dict[str, Any], key: str, default: float = 0.0) -> float:
    value = data.get(key)
    return default if value is None else float(value)


def _timestamp(data: Dict[str, Any], key: str) -> int:
    """Epoch ms that must map to a local calendar date."""
    ts = int(_num(data, key))
    if ts:
        try:
            local_date(ts)
        except (OverflowError, OSError) as e:
            raise ValueError(f"{key} out of range: {ts}") from e
    return ts


def _store_from_dict(data: Dict[str, Any]) -> ResourceStore:
    store = ResourceStore(
        energy=_num(data, "energy"),
        focus_points=_num(data, "focusPoints"),
        discipline_points=_num(data, "disciplinePoints"),
        current_streak=int(_num(data, "currentStreak")),
        last_completion_timestamp=_timestamp(data, "lastCompletionTimestamp"),
        streak_energy_multiplier=_num(data, "streakEnergyMultiplier", 1.0),
    )

    for raw_id, entry in (data.get("generators") or {}).items():
        gid = generator_id(raw_id)
        if gid is None:
            logger.warning("Unknown generator '%s' in save, skipping", raw_id)
            continue
        count = entry.get("count", 0) if isinstance(entry, dict) else entry
        store.generators[gid] = int(count or 0)

    for raw_id, level in (data.get("focusUpgradesPurchased") or {}).items():
        uid = upgrade_id(raw_id)
        if uid is None:
            logger.warning("Unknown focus upgrade '%s' in save, skipping", raw_id)
            continue
        store.focus_upgrades_purchased[uid] = int(level or 0)

    for entry in data.get("activeEnergyMultipliers") or []:
        store.active_energy_multipliers.append(
            EnergyBuff(_num(entry, "multiplier", 1.0), _num(entry, "duration"))
        )

    stats = data.get("stats") or {}
    store.total_energy_earned = _num(stats, "totalEnergyEarned")
    store.total_tasks_completed = int(_num(stats, "totalTasksCompleted"))
    store.best_streak = max(int(_num(stats, "bestStreak")), store.current_streak)
    store.refocus_count = int(_num(stats, "refocusCount"))
    return store


def _restore_from_dict(sim: Simulation, data: Dict[str, Any]) -> None:
    """Replace simulation state with the contents of a save dict.

    Raises one of _RESTORE_ERRORS for malformed data; the simulation is only
    touched once the whole blob has been converted.
    """
    if not isinstance(data, dict):
        raise TypeError(f"save data must be an object, got {type(data).__name__}")
    version = int(data.get("version") or 0)
    if version > SAVE_VERSION:
        logger.warning("Save version %d is newer than supported %d", version, SAVE_VERSION)
    store = _store_from_dict(data)
    tasks: List[Task] = [_task_from_dict(t) for t in data.get("tasks") or []]

    # The live list only holds incomplete tasks.
    done = {t.id for t in tasks if t.completed}
    if done:
        logger.info("Dropping %d completed task(s) from save", len(done))
        tasks = [t for t in tasks if t.id not in done]
        for task in tasks:
            task.sub_task_ids = [i for i in task.sub_task_ids if i not in done]
    sim.install(store, tasks)


# ── Save / load ─────────────────────────────────────────────────────

def save_game(sim: Simulation, backend: SaveBackend) -> bool:
    text = json.dumps(_build_save_dict(sim), separators=(",", ":"))
    try:
        backend.write(text)
    except Exception:
        logger.exception("Error saving game")
        return False
    return True


def load_game(sim: Simulation, backend: SaveBackend) -> bool:
    """Load saved state. Returns False on missing or corrupt data.

    A corrupt blob resets the simulation to a fresh game instead of raising.
    """
    loaded = False
    try:
        text = backend.read()
    except Exception:
        logger.exception("Error reading save data")
        text = None

    if text is None:
        logger.info("No save found, starting new game.")
    else:
        try:
            _restore_from_dict(sim, json.loads(text))
            loaded = True
            logger.info("Game loaded successfully.")
        except _RESTORE_ERRORS:
            logger.exception("Error loading game, starting a new game")
            sim.reset_state()

    sim.check_daily_streak()
    sim.emit(EngineEvent.LOADED)
    return loaded


def export_save_text(sim: Simulation) -> str:
    """Export base64-JSON save text."""
    json_str = json.dumps(_build_save_dict(sim), separators=(",", ":"))
    return base64.b64encode(json_str.encode("utf-8")).decode("ascii")


def _parse_import(encoded: str) -> Optional[Dict[str, Any]]:
    encoded = encoded.strip()
    try:
        data = json.loads(encoded)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    try:
        raw = base64.b64decode(encoded, validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


def import_save_text(sim: Simulation, encoded: str) -> ActionResult:
    """Import exported text. Rejected input leaves the current game untouched."""
    data = _parse_import(encoded)
    if data is None:
        logger.warning("Could not parse import text (not a valid save)")
        return ActionResult(False, "Not a valid save.")
    try:
        _restore_from_dict(sim, data)
    except _RESTORE_ERRORS as e:
        logger.warning("Error restoring imported save: %s", e)
        return ActionResult(False, "Not a valid save.")
    sim.check_daily_streak()
    sim.emit(EngineEvent.IMPORTED)
    return ActionResult(True)


# ── Auto-save ───────────────────────────────────────────────────────

class AutoSaver:
    """Saves on a fixed interval and after every mutating engine event."""

    def __init__(self, sim: Simulation, backend: SaveBackend,
                 interval: float = AUTO_SAVE_INTERVAL_SEC) -> None:
        self.sim = sim
        self.backend = backend
        self.interval = interval
        self.saves = 0
        self._elapsed = 0.0
        sim.subscribe(self._on_event)
        logger.info("Auto-save started every %s seconds.", interval)

    def _on_event(self, event: EngineEvent) -> None:
        if event.is_mutation:
            self.save_now()

    def update(self, dt: float) -> None:
        self._elapsed += dt
        if self.interval > 0 and self._elapsed >= self.interval:
            self.save_now()

    def save_now(self) -> bool:
        self._elapsed = 0.0
        ok = save_game(self.sim, self.backend)
        if ok:
            self.saves += 1
        return ok

    def close(self) -> None:
        self.sim.unsubscribe(self._on_event)
