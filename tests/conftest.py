import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.session import Base
import app.models.user  # noqa: F401
import app.models.group  # noqa: F401
import app.models.group_member  # noqa: F401
import app.models.expense  # noqa: F401
import app.models.expense_split  # noqa: F401
import app.models.settlement  # noqa: F401
from app.models.user import User


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def users(db):
    people = [
        User(email=f"user{i}@example.com", name=f"User {i}", password_hash="x")
        for i in range(1, 5)
    ]
    db.add_all(people)
    await db.commit()
    return [u.id for u in people]
