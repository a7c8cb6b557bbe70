"""The procedure set served at /rpc and used by the in-process callers."""

import asyncio
import logging
import time
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from taskboard.auth.credentials import check_password, hash_password
from taskboard.rpc.errors import ProcedureError
from taskboard.rpc.procedures import ProcedureContext, ProcedureSet
from taskboard.schemas import (
    AuthResult,
    CategoryCreate,
    CategoryRead,
    DeleteResult,
    HealthStatus,
    LoginInput,
    RegisterInput,
    TaskCreate,
    TaskDelete,
    TaskFilter,
    TaskRead,
    TaskUpdate,
    UserSummary,
)
from taskboard.services.category_service import CategoryService
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()

INVALID_CREDENTIALS = "Invalid credentials"

app_router = ProcedureSet()


# auth


@app_router.mutation("auth.register", input=RegisterInput)
async def register(ctx: ProcedureContext, data: RegisterInput) -> AuthResult:
    users = UserService(ctx.db)
    if await users.get_by_email(data.email) is not None:
        raise ProcedureError("CONFLICT", "User already exists")

    password_hash = await asyncio.to_thread(
        hash_password, data.password, ctx.password_rounds
    )
    try:
        user = await users.create_user(data.email, password_hash, data.name)
    except IntegrityError as e:
        # lost a race against a concurrent registration
        await ctx.db.rollback()
        raise ProcedureError("CONFLICT", "User already exists") from e

    logger.info(f"Registered user {user.id}")
    return AuthResult(
        user=UserSummary.model_validate(user), token=ctx.verifier.sign(user.id)
    )


@app_router.mutation("auth.login", input=LoginInput)
async def login(ctx: ProcedureContext, data: LoginInput) -> AuthResult:
    user = await UserService(ctx.db).get_by_email(data.email)
    if user is None:
        raise ProcedureError("NOT_FOUND", INVALID_CREDENTIALS)

    valid = await asyncio.to_thread(check_password, data.password, user.password_hash)
    if not valid:
        raise ProcedureError("UNAUTHORIZED", INVALID_CREDENTIALS)

    return AuthResult(
        user=UserSummary.model_validate(user), token=ctx.verifier.sign(user.id)
    )


# tasks


@app_router.query("tasks.getAll", input=TaskFilter, optional_input=True, protected=True)
async def get_all_tasks(ctx: ProcedureContext, data: TaskFilter | None) -> list[TaskRead]:
    tasks = await TaskService(ctx.db).get_all_tasks(ctx.identity, data)
    return [TaskRead.model_validate(task) for task in tasks]


@app_router.mutation("tasks.create", input=TaskCreate, protected=True)
async def create_task(ctx: ProcedureContext, data: TaskCreate) -> TaskRead:
    task = await TaskService(ctx.db).create_task(ctx.identity, data)
    return TaskRead.model_validate(task)


@app_router.mutation("tasks.update", input=TaskUpdate, protected=True)
async def update_task(ctx: ProcedureContext, data: TaskUpdate) -> TaskRead:
    task = await TaskService(ctx.db).update_task(ctx.identity, data)
    if task is None:
        raise ProcedureError("NOT_FOUND", "Task not found")
    return TaskRead.model_validate(task)


@app_router.mutation("tasks.delete", input=TaskDelete, protected=True)
async def delete_task(ctx: ProcedureContext, data: TaskDelete) -> DeleteResult:
    if not await TaskService(ctx.db).delete_task(ctx.identity, data.id):
        raise ProcedureError("NOT_FOUND", "Task not found")
    return DeleteResult(success=True)


# categories


@app_router.query("categories.getAll", protected=True)
async def get_all_categories(ctx: ProcedureContext, data: None) -> list[CategoryRead]:
    categories = await CategoryService(ctx.db).get_all_categories(ctx.identity)
    return [CategoryRead.model_validate(category) for category in categories]


@app_router.mutation("categories.create", input=CategoryCreate, protected=True)
async def create_category(ctx: ProcedureContext, data: CategoryCreate) -> CategoryRead:
    category = await CategoryService(ctx.db).create_category(ctx.identity, data)
    return CategoryRead.model_validate(category)


# health


@app_router.query("health")
async def health(ctx: ProcedureContext, data: None) -> HealthStatus:
    try:
        await ctx.db.scalar(text("SELECT 1"))
        database = True
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
        await ctx.db.rollback()
        database = False

    return HealthStatus(
        status="ok" if database else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=time.monotonic() - _STARTED_AT,
        database=database,
    )
