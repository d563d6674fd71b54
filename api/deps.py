"""FastAPI dependencies for database and repository access."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db as get_db_session
from repos.sampling_repo import SamplingRepository, SqlSamplingRepository


async def get_db() -> AsyncSession:
    """
    Dependency to get database session.
    Reuses the get_db function from db.py.
    """
    async for session in get_db_session():
        yield session


async def get_repository(db: AsyncSession = Depends(get_db)) -> SamplingRepository:
    """
    Dependency to get the sampling repository for the request's session.

    Tests override this with an in-memory repository.
    """
    return SqlSamplingRepository(db)
