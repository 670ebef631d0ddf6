from __future__ import annotations

from datetime import date, datetime

from ascendance.simulation import EngineEvent, Simulation
from ascendance.tasks import SubtaskSpec, Task, TaskBoard
from ascendance.types import Difficulty

NOW = int(datetime(2024, 6, 12, 12).timestamp() * 1000)


def _sim() -> Simulation:
    return Simulation(clock=lambda: NOW)


def _broken_down(sim: Simulation, count: int = 2) -> int:
    parent = sim.add_task("Launch website", difficulty="hard").created_ids[0]
    specs = [SubtaskSpec(f"Step {i}") for i in range(1, count + 1)]
    assert sim.breakdown(parent, specs).ok
    return parent


def test_add_rejects_blank_description() -> None:
    sim = _sim()
    events = []
    sim.subscribe(events.append)

    assert not sim.add_task("")
    assert not sim.add_task("   ")
    assert sim.board.tasks == []
    assert events == []


def test_add_rejects_unknown_difficulty() -> None:
    sim = _sim()

    result = sim.add_task("Stretch", difficulty="legendary")

    assert not result.ok
    assert sim.board.tasks == []


def test_add_sets_defaults_and_emits() -> None:
    sim = _sim()
    events = []
    sim.subscribe(events.append)

    result = sim.add_task("  Read chapter 3  ", due_date=date(2024, 6, 14))

    task = sim.board.get(result.created_ids[0])
    assert task.text == "Read chapter 3"
    assert task.due_date == "2024-06-14"
    assert task.difficulty is Difficulty.MEDIUM
    assert not task.is_breakable
    assert not task.completed
    assert events == [EngineEvent.TASKS]


def test_only_hard_tasks_are_breakable() -> None:
    sim = _sim()
    hard = sim.add_task("Thesis", difficulty=Difficulty.HARD).created_ids[0]
    easy = sim.add_task("Dishes", difficulty="easy").created_ids[0]

    assert sim.board.get(hard).is_breakable
    assert not sim.board.get(easy).is_breakable


def test_task_ids_never_reused() -> None:
    sim = _sim()
    first = sim.add_task("One").created_ids[0]
    sim.delete_task(first)

    second = sim.add_task("Two").created_ids[0]

    assert second == first + 1


def test_datetime_due_date_normalized_to_minutes() -> None:
    sim = _sim()

    task_id = sim.add_task("Call", due_date=datetime(2024, 6, 14, 9, 30, 15)).created_ids[0]

    assert sim.board.get(task_id).due_date == "2024-06-14T09:30"


def test_breakdown_requires_two_subtasks() -> None:
    sim = _sim()
    parent = sim.add_task("Launch website", difficulty="hard").created_ids[0]

    result = sim.breakdown(parent, [SubtaskSpec("Only step")])

    assert not result.ok
    assert len(sim.board.tasks) == 1
    assert sim.board.get(parent).is_breakable
    assert sim.board.get(parent).sub_task_ids == []


def test_breakdown_creates_medium_subtasks() -> None:
    sim = _sim()
    parent = sim.add_task("Launch website", difficulty="hard").created_ids[0]

    result = sim.breakdown(parent, [SubtaskSpec("Design", "2024-06-13T10:00"), SubtaskSpec("  ")])

    assert result.ok
    assert result.created_ids == [2, 3]
    parent_task = sim.board.get(parent)
    assert parent_task.sub_task_ids == [2, 3]
    assert not parent_task.is_breakable
    assert [t.id for t in sim.board.tasks] == [1, 2, 3]

    design, unnamed = sim.board.get(2), sim.board.get(3)
    assert design.text == "Design"
    assert design.due_date == "2024-06-13T10:00"
    assert unnamed.text == "Sub-task 2/2"
    for sub in (design, unnamed):
        assert sub.is_subtask
        assert sub.parent_task_id == parent
        assert sub.difficulty is Difficulty.MEDIUM
        assert not sub.is_breakable


def test_breakdown_rejected_for_non_hard_or_already_split() -> None:
    sim = _sim()
    medium = sim.add_task("Groceries").created_ids[0]
    parent = _broken_down(sim)
    sub = sim.board.get(parent).sub_task_ids[0]
    specs = [SubtaskSpec("a"), SubtaskSpec("b")]

    assert not sim.breakdown(medium, specs)
    assert not sim.breakdown(parent, specs)
    assert not sim.breakdown(sub, specs)
    assert not sim.breakdown(999, specs)


def test_last_subtask_completion_removes_parent() -> None:
    sim = _sim()
    parent = _broken_down(sim)
    first, second = sim.board.get(parent).sub_task_ids

    assert sim.complete_task(first).ok
    assert sim.board.get(parent).sub_task_ids == [second]
    assert sim.store.energy == 6  # ceil(4 * 1.5)

    result = sim.complete_task(second)

    assert result.ok
    assert result.message == "All sub-tasks done, parent task completed."
    assert sim.board.tasks == []
    assert sim.store.total_tasks_completed == 2


def test_delete_parent_cascades() -> None:
    sim = _sim()
    parent = _broken_down(sim, count=3)
    other = sim.add_task("Unrelated").created_ids[0]

    assert sim.delete_task(parent).ok

    assert [t.id for t in sim.board.tasks] == [other]


def test_delete_subtask_keeps_parent() -> None:
    sim = _sim()
    parent = _broken_down(sim)
    first, second = sim.board.get(parent).sub_task_ids

    sim.delete_task(first)
    assert sim.board.get(parent).sub_task_ids == [second]

    sim.delete_task(second)
    parent_task = sim.board.get(parent)
    assert parent_task is not None
    assert not parent_task.has_subtasks
    assert sim.complete_task(parent).reward.final_reward == 20


def test_delete_unknown_task_rejected() -> None:
    sim = _sim()

    assert not sim.delete_task(7)


def test_toggle_collapse_only_for_parents() -> None:
    sim = _sim()
    plain = sim.add_task("Plain").created_ids[0]
    parent = _broken_down(sim)

    assert not sim.toggle_collapse(plain)
    assert sim.toggle_collapse(parent)
    assert sim.board.get(parent).is_collapsed
    assert sim.toggle_collapse(parent)
    assert not sim.board.get(parent).is_collapsed


def test_default_subtask_specs_use_parent_due_date() -> None:
    sim = _sim()
    parent = sim.add_task("Move house", due_date="2024-06-30", difficulty="hard").created_ids[0]

    specs = sim.default_subtask_specs(parent, 3)

    assert [s.name for s in specs] == ["Sub-task 1/3", "Sub-task 2/3", "Sub-task 3/3"]
    assert all(s.due_date == "2024-06-30T00:00" for s in specs)


def test_default_subtask_specs_clamped_to_minimum() -> None:
    sim = _sim()
    parent = sim.add_task("Move house", difficulty="hard").created_ids[0]

    specs = sim.default_subtask_specs(parent, 1)

    assert len(specs) == 2
    assert all(s.due_date is None for s in specs)


def test_orphan_subtask_completes_normally() -> None:
    sim = _sim()
    sim.board.set_tasks([
        Task(id=5, text="Left behind", is_subtask=True, parent_task_id=4),
    ])

    result = sim.complete_task(5)

    assert result.ok
    assert result.reward.final_reward == 6
    assert sim.board.tasks == []


def test_set_tasks_advances_id_counter() -> None:
    board = TaskBoard()
    board.set_tasks([Task(id=3, text="a"), Task(id=9, text="b")])

    assert board.next_task_id() == 10

    board.set_tasks([])
    assert board.next_task_id() == 11
