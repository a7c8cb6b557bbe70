"""JSON endpoints backing the dashboard, task list, task form and health pages."""

import logging
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError, field_validator

from taskboard.deps import get_caller, get_view_caller
from taskboard.models import get_utc_now
from taskboard.rpc.errors import ProcedureError, flatten_validation_error
from taskboard.rpc.procedures import Caller
from taskboard.rpc.transformer import serialize
from taskboard.services.status import create_new_task, get_tasks_status

logger = logging.getLogger(__name__)

router = APIRouter(tags=["views"])


class NewTaskForm(BaseModel):
    """Fields submitted by the task creation form"""

    title: str = Field(min_length=3, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    priority: Literal["low", "medium", "high"]
    due_date: str | None = Field(default=None, alias="dueDate")

    @field_validator("description", "due_date", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value: str | None):
        if value is None:
            return value
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("Invalid date") from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        if parsed <= get_utc_now():
            raise ValueError("Due date must be in the future")
        return value


async def _tasks_status_response(caller: Caller):
    try:
        summary = await get_tasks_status(caller)
    except ProcedureError as e:
        return {"errors": e.message}
    return {"tasksStatus": serialize(summary)}


@router.get("/dashboard")
async def dashboard(caller: Caller = Depends(get_view_caller)):
    return await _tasks_status_response(caller)


@router.get("/tasks")
async def tasks_view(caller: Caller = Depends(get_view_caller)):
    return await _tasks_status_response(caller)


@router.post("/tasks")
async def refresh_tasks(caller: Caller = Depends(get_view_caller)):
    """Form-submitted refresh of the task list"""
    return await _tasks_status_response(caller)


@router.post("/tasks/new")
async def new_task(request: Request, caller: Caller = Depends(get_view_caller)):
    form = await request.form()
    try:
        data = NewTaskForm.model_validate(dict(form))
    except ValidationError as e:
        form_errors, field_errors = flatten_validation_error(e)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"errors": {"formErrors": form_errors, "fieldErrors": field_errors}},
        )

    try:
        await create_new_task(caller, data.model_dump())
    except ProcedureError:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "errors": {"formErrors": ["Failed to create task. Please try again."]}
            },
        )
    return {"success": True, "message": "Task created successfully."}


@router.get("/health")
async def health_view(
    simulate: Literal["throw", "return"] | None = Query(default=None),
    caller: Caller = Depends(get_caller),
):
    if simulate == "throw":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Simulated health check service unavailable",
        )
    if simulate == "return":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "health": None,
                "error": "Simulated health check failure",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    try:
        health = await caller.call("health")
    except ProcedureError as e:
        logger.error(f"Health check failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Health check service unavailable",
        ) from e
    return {"health": health.model_dump(by_alias=True)}
