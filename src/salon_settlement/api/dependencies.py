"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from salon_settlement.database import async_session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly; anything left uncommitted is rolled back on close.
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def _parse_uuid_header(value: str | None, header: str) -> UUID:
    if not value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{header} header is required",
        )
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header} format",
        )


async def get_salon_id(
    x_salon_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract the authenticated salon ID from header."""
    return _parse_uuid_header(x_salon_id, "X-Salon-ID")


async def get_actor_id(
    x_user_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract the acting user ID from header (required on writes)."""
    return _parse_uuid_header(x_user_id, "X-User-ID")


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
SalonId = Annotated[UUID, Depends(get_salon_id)]
ActorId = Annotated[UUID, Depends(get_actor_id)]
