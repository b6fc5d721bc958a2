from typing import AsyncIterator
from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

class Base(DeclarativeBase):
    pass

def create_engine(database_url: str) -> AsyncEngine:
    # Ensure we use asyncpg driver for async PostgreSQL
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # in-memory databases exist per connection; share one
        if ":memory:" in database_url or database_url.endswith("://"):
            kwargs["poolclass"] = StaticPool
    return create_async_engine(database_url, echo=False, **kwargs)

def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)

async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.sessionmaker() as session:
        yield session
