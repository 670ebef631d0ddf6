"""Task store: task lifecycle and parent/sub-task decomposition.

The live list only ever holds incomplete tasks. Completing or deleting a task
removes it; nothing is archived. Sub-tasks appear in the list after their
parent, and the parent's sub_task_ids keeps their display order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from ascendance.types import ActionResult, Difficulty
from ascendance.utils import normalize_due_date

logger = logging.getLogger(__name__)


@dataclass
class Task:
    id: int
    text: str
    due_date: Optional[str] = None
    completed: bool = False
    difficulty: Difficulty = Difficulty.MEDIUM
    is_breakable: bool = False
    is_subtask: bool = False
    parent_task_id: Optional[int] = None
    sub_task_ids: List[int] = field(default_factory=list)
    is_collapsed: bool = False

    @property
    def has_subtasks(self) -> bool:
        return len(self.sub_task_ids) > 0


@dataclass
class SubtaskSpec:
    name: str = ""
    due_date: Optional[str] = None


def parse_difficulty(raw: object) -> Optional[Difficulty]:
    if isinstance(raw, Difficulty):
        return raw
    try:
        return Difficulty(str(raw).lower())
    except ValueError:
        return None


class TaskBoard:
    def __init__(self, min_subtasks: int = 2) -> None:
        self.tasks: List[Task] = []
        self.last_task_id = 0
        self.min_subtasks = min_subtasks

    # ── Lookup ────────────────────────────────────────────────────

    def next_task_id(self) -> int:
        self.last_task_id += 1
        return self.last_task_id

    def get(self, task_id: int) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def top_level(self) -> List[Task]:
        return [t for t in self.tasks if not t.is_subtask]

    def children(self, parent: Task) -> List[Task]:
        out = []
        for sub_id in parent.sub_task_ids:
            sub = self.get(sub_id)
            if sub is None:
                logger.warning("Could not find sub-task %d for parent %d", sub_id, parent.id)
                continue
            out.append(sub)
        return out

    def orphans(self) -> List[Task]:
        """Sub-tasks whose parent is no longer in the list."""
        return [t for t in self.tasks if t.is_subtask and self.get(t.parent_task_id) is None]

    def set_tasks(self, tasks: Iterable[Task]) -> None:
        self.tasks = list(tasks)
        # Never decrement; ids are not reused even after everything is deleted.
        self.last_task_id = max([self.last_task_id] + [t.id for t in self.tasks])

    # ── Mutations ─────────────────────────────────────────────────

    def add(self, text: str, due_date: object = None,
            difficulty: object = Difficulty.MEDIUM) -> ActionResult:
        text = (text or "").strip()
        if not text:
            return ActionResult(False, "Please enter a task description.")
        diff = parse_difficulty(difficulty)
        if diff is None:
            logger.warning("Unknown difficulty %r", difficulty)
            return ActionResult(False, f"Unknown difficulty: {difficulty}.")

        task = Task(
            id=self.next_task_id(),
            text=text,
            due_date=normalize_due_date(due_date),
            difficulty=diff,
            is_breakable=diff is Difficulty.HARD,
        )
        self.tasks.append(task)
        logger.info("Task added: %d %r (%s)", task.id, task.text, task.difficulty.value)
        return ActionResult(True, created_ids=[task.id])

    def delete(self, task_id: int) -> ActionResult:
        task = self.get(task_id)
        if task is None:
            logger.warning("Cannot delete unknown task %r", task_id)
            return ActionResult(False, "Task not found.")

        if task.has_subtasks:
            doomed = {task.id} | {t.id for t in self.tasks if t.parent_task_id == task.id}
            logger.info("Deleting parent task %d and its sub-tasks", task.id)
            self.tasks = [t for t in self.tasks if t.id not in doomed]
        elif task.is_subtask and task.parent_task_id is not None:
            parent = self.get(task.parent_task_id)
            if parent is not None and task.id in parent.sub_task_ids:
                parent.sub_task_ids.remove(task.id)
            logger.info("Deleting sub-task %d", task.id)
            self.tasks.remove(task)
        else:
            logger.info("Deleting task %d", task.id)
            self.tasks.remove(task)
        return ActionResult(True)

    def toggle_collapse(self, task_id: int) -> ActionResult:
        task = self.get(task_id)
        if task is None:
            logger.warning("Cannot toggle unknown task %r", task_id)
            return ActionResult(False, "Task not found.")
        if not task.has_subtasks:
            return ActionResult(False, "Only tasks with sub-tasks can be collapsed.")
        task.is_collapsed = not task.is_collapsed
        return ActionResult(True)

    def remove_completed(self, task: Task) -> List[int]:
        """Drop a completed task; a parent goes with its last sub-task.

        Returns the ids removed from the list.
        """
        removed = [task.id]
        self.tasks.remove(task)
        if not task.is_subtask:
            return removed

        parent = self.get(task.parent_task_id) if task.parent_task_id is not None else None
        if parent is None:
            logger.warning("Completed orphan sub-task %d (parent %r missing)", task.id, task.parent_task_id)
            return removed
        if task.id in parent.sub_task_ids:
            parent.sub_task_ids.remove(task.id)
        if not parent.sub_task_ids:
            logger.info("All sub-tasks for parent %d completed, removing parent", parent.id)
            self.tasks.remove(parent)
            removed.append(parent.id)
        return removed

    # ── Breakdown ─────────────────────────────────────────────────

    @staticmethod
    def can_break_down(task: Task) -> bool:
        return (
            task.is_breakable
            and task.difficulty is Difficulty.HARD
            and not task.is_subtask
            and not task.has_subtasks
        )

    def default_subtask_specs(self, parent_id: int, count: int = 2) -> List[SubtaskSpec]:
        """Pre-filled specs: 'Sub-task i/n' names and the parent's due date."""
        count = max(self.min_subtasks, int(count))
        parent = self.get(parent_id)
        due = parent.due_date if parent is not None else None
        if due and "T" not in due:
            due = f"{due}T00:00"
        return [SubtaskSpec(name=f"Sub-task {i}/{count}", due_date=due) for i in range(1, count + 1)]

    def breakdown(self, parent_id: int, specs: Sequence[SubtaskSpec]) -> ActionResult:
        parent = self.get(parent_id)
        if parent is None:
            logger.warning("Cannot break down unknown task %r", parent_id)
            return ActionResult(False, "Task not found.")
        if not self.can_break_down(parent):
            logger.info("Task %d cannot be broken down", parent.id)
            return ActionResult(False, "This task cannot be broken down.")
        specs = list(specs)
        if len(specs) < self.min_subtasks:
            return ActionResult(False, f"A task must be broken into at least {self.min_subtasks} sub-tasks.")

        created: List[int] = []
        total = len(specs)
        for i, spec in enumerate(specs, start=1):
            name = (spec.name or "").strip() or f"Sub-task {i}/{total}"
            sub = Task(
                id=self.next_task_id(),
                text=name,
                due_date=normalize_due_date(spec.due_date),
                difficulty=Difficulty.MEDIUM,
                is_breakable=False,
                is_subtask=True,
                parent_task_id=parent.id,
            )
            self.tasks.append(sub)
            created.append(sub.id)

        parent.sub_task_ids = list(created)
        parent.is_breakable = False
        parent.is_collapsed = False
        logger.info("Task %d broken down into %d sub-tasks", parent.id, total)
        return ActionResult(True, created_ids=created)
