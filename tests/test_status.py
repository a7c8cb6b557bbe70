from datetime import datetime, timedelta, timezone

import pytest

from taskboard.rpc.errors import ProcedureError
from taskboard.services.status import create_new_task, get_tasks_status


async def test_empty_summary(make_caller):
    summary = await get_tasks_status(make_caller(1))
    assert summary.total == summary.total_completed == summary.total_pending == 0
    assert summary.total_tasks == summary.completed == summary.pending == []


async def test_partitions_are_disjoint_and_exhaustive(make_caller):
    caller = make_caller(1)
    ids = []
    for index in range(5):
        task = await caller.call("tasks.create", {"title": f"task {index}"})
        ids.append(task.id)
    for task_id in ids[:2]:
        await caller.call("tasks.update", {"id": task_id, "completed": True})
    # someone else's tasks never show up
    await make_caller(2).call("tasks.create", {"title": "other"})

    summary = await get_tasks_status(caller)

    assert summary.total == summary.total_completed + summary.total_pending == 5
    assert summary.total_completed == 2
    completed_ids = {task.id for task in summary.completed}
    pending_ids = {task.id for task in summary.pending}
    assert completed_ids.isdisjoint(pending_ids)
    assert completed_ids | pending_ids == {task.id for task in summary.total_tasks}
    assert completed_ids == set(ids[:2])


async def test_status_mirrors_completed_flag(make_caller):
    caller = make_caller(1)
    done = await caller.call("tasks.create", {"title": "done"})
    await caller.call("tasks.update", {"id": done.id, "completed": True})
    await caller.call("tasks.create", {"title": "open"})

    summary = await get_tasks_status(caller)

    assert [task.status for task in summary.total_tasks] == ["pending", "completed"]
    assert all(task.status == "completed" for task in summary.completed)
    assert all(task.status == "pending" for task in summary.pending)


async def test_summary_keeps_newest_first(make_caller):
    caller = make_caller(1)
    for title in ("a", "b", "c"):
        await caller.call("tasks.create", {"title": title})
    summary = await get_tasks_status(caller)
    assert [task.title for task in summary.total_tasks] == ["c", "b", "a"]
    assert [task.title for task in summary.pending] == ["c", "b", "a"]


async def test_failure_propagates_unchanged(make_caller):
    with pytest.raises(ProcedureError) as exc:
        await get_tasks_status(make_caller())
    assert exc.value.code == "UNAUTHORIZED"


async def test_create_new_task_parses_due_date_and_defaults_priority(make_caller):
    caller = make_caller(3)
    due = (datetime.now(timezone.utc) + timedelta(days=2)).replace(microsecond=0)

    task = await create_new_task(
        caller, {"title": "Buy milk", "description": None, "due_date": due.isoformat()}
    )

    assert task.user_id == 3
    assert task.priority == "medium"
    assert task.due_date == due


async def test_create_new_task_reraises(make_caller):
    with pytest.raises(ProcedureError) as exc:
        await create_new_task(make_caller(1), {"title": ""})
    assert exc.value.code == "BAD_REQUEST"


async def test_create_new_task_rejects_unparseable_due_date(make_caller, caplog):
    caller = make_caller(1)
    with pytest.raises(ProcedureError) as exc:
        await create_new_task(caller, {"title": "x", "due_date": "not-a-date"})
    assert exc.value.code == "BAD_REQUEST"
    assert exc.value.field_errors == {"dueDate": ["Invalid date"]}
    assert "Error creating task via procedure caller" in caplog.text
    assert await caller.call("tasks.getAll") == []
