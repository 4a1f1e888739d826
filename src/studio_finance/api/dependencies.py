"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.database import init_db
from studio_finance.finance import StaticIdentityResolver, StudioFinance


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, session_factory = init_db()
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_user_id(
    x_user_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Extract the acting user ID from header (optional)."""
    if not x_user_id:
        return None
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-ID format",
        )


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
UserId = Annotated[UUID | None, Depends(get_user_id)]


async def get_finance(db: DbSession, user_id: UserId) -> StudioFinance:
    """Build the finance facade for one request."""
    return StudioFinance(db, StaticIdentityResolver(user_id))


Finance = Annotated[StudioFinance, Depends(get_finance)]
