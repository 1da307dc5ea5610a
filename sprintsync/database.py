from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from .config import settings

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    future=True
)

# Create session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


# Dependency to get database session
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(
    session_factory: Optional[async_sessionmaker] = None
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session whose work commits as one transaction.

    Leaving the block normally commits; an exception rolls back every row
    written inside it and propagates.
    """
    factory = session_factory or async_session
    async with factory() as session:
        async with session.begin():
            yield session


async def create_tables(bind=None) -> None:
    """Create all tables on the given engine (defaults to the app engine)"""
    from .models import Base

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
