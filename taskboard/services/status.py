"""Server-side helpers used by the views: task status summary and task creation.

Both go through a procedure caller and never touch the store directly.
"""

import logging
from datetime import datetime
from typing import Any

from taskboard.rpc.errors import ProcedureError
from taskboard.rpc.procedures import Caller
from taskboard.schemas import TaskRead, TaskStatusSummary, TaskWithStatus

logger = logging.getLogger(__name__)


def _with_status(task: TaskRead) -> TaskWithStatus:
    status = "completed" if task.completed else "pending"
    return TaskWithStatus.model_validate({**task.model_dump(), "status": status})


async def get_tasks_status(caller: Caller) -> TaskStatusSummary:
    logger.info(f"Fetching tasks status for identity {caller.context.identity}")
    try:
        # connectivity smoke check, result is only logged
        health = await caller.call("health")
        logger.info(f"Health check: status={health.status} database={health.database}")

        total_tasks = [_with_status(task) for task in await caller.call("tasks.getAll")]
    except Exception:
        logger.exception("Error in get_tasks_status")
        raise

    completed = [task for task in total_tasks if task.completed]
    pending = [task for task in total_tasks if not task.completed]
    return TaskStatusSummary(
        total=len(total_tasks),
        total_completed=len(completed),
        total_pending=len(pending),
        total_tasks=total_tasks,
        completed=completed,
        pending=pending,
    )


def _parse_due_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ProcedureError(
            "BAD_REQUEST", "Invalid input", field_errors={"dueDate": ["Invalid date"]}
        ) from None


async def create_new_task(caller: Caller, data: dict[str, Any]) -> TaskRead:
    """Create a task for the caller's identity from loosely typed form data.

    ``due_date`` may be an ISO-8601 string; ``priority`` defaults to medium.
    """
    try:
        due_date = data.get("due_date")
        if isinstance(due_date, str):
            due_date = _parse_due_date(due_date)
        return await caller.call(
            "tasks.create",
            {
                "title": data["title"],
                "description": data.get("description"),
                "priority": data.get("priority") or "medium",
                "due_date": due_date,
            },
        )
    except Exception:
        logger.exception("Error creating task via procedure caller")
        raise
