"""Studio lookup."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.errors import NotFoundError
from studio_finance.models import Studio


async def get_studio_id(session: AsyncSession, slug: str) -> UUID:
    """Resolve a studio slug to its id, raising NotFoundError if missing."""
    result = await session.execute(select(Studio.id).where(Studio.slug == slug))
    studio_id = result.scalar_one_or_none()
    if studio_id is None:
        raise NotFoundError("Studio", slug)
    return studio_id
