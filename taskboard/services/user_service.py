from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.models import User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.exec(select(User).where(User.email == email).limit(1))
        return result.first()

    async def create_user(self, email: str, password_hash: str, name: str) -> User:
        user = User(email=email, password_hash=password_hash, name=name)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user
