from sqlalchemy import delete, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.models import Task, get_utc_now
from taskboard.schemas import TaskCreate, TaskFilter, TaskUpdate


class TaskService:
    """Owner-scoped task queries. Every statement filters on the owner id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all_tasks(self, user_id: int, filters: TaskFilter | None = None):
        query = select(Task).where(Task.user_id == user_id)
        if filters is not None:
            if filters.completed is not None:
                query = query.where(Task.completed == filters.completed)
            if filters.category_id:
                query = query.where(Task.category_id == filters.category_id)
        query = query.order_by(col(Task.created_at).desc(), col(Task.id).desc())

        result = await self.db.exec(query)
        return result.all()

    async def create_task(self, user_id: int, task_data: TaskCreate):
        task = Task(**task_data.model_dump(), user_id=user_id)
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def update_task(self, user_id: int, task_data: TaskUpdate):
        """Apply a partial update in one conditional statement.

        Returns None when no task matches both id and owner.
        """
        update_data = task_data.model_dump(exclude_unset=True, exclude={"id"})
        stmt = (
            update(Task)
            .where(col(Task.id) == task_data.id, col(Task.user_id) == user_id)
            .values(**update_data, updated_at=get_utc_now())
            .returning(Task)
        )
        result = await self.db.scalars(stmt)
        task = result.first()
        await self.db.commit()
        return task

    async def delete_task(self, user_id: int, task_id: int) -> bool:
        stmt = (
            delete(Task)
            .where(col(Task.id) == task_id, col(Task.user_id) == user_id)
            .returning(col(Task.id))
        )
        result = await self.db.scalars(stmt)
        deleted = result.first()
        await self.db.commit()
        return deleted is not None
