from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.models import Category
from taskboard.schemas import CategoryCreate


class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all_categories(self, user_id: int):
        query = select(Category).where(Category.user_id == user_id)
        result = await self.db.exec(query.order_by(col(Category.id)))
        return result.all()

    async def create_category(self, user_id: int, category_data: CategoryCreate):
        category = Category(**category_data.model_dump(), user_id=user_id)
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return category
