"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from staff_payroll.calculators.proration import ProrationStrategy
from staff_payroll.config import StatutoryPolicy
from staff_payroll.database import init_db


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        _, factory = init_db(request.app.state.settings.database_url)
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_policy(request: Request) -> StatutoryPolicy:
    """The statutory policy loaded when the application was created."""
    return request.app.state.policy


def get_proration_strategy(request: Request) -> ProrationStrategy:
    return request.app.state.proration_strategy


async def get_actor_id(
    x_actor_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Extract the acting user's ID from the optional header."""
    if not x_actor_id:
        return None
    try:
        return UUID(x_actor_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Actor-ID format",
        )


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Policy = Annotated[StatutoryPolicy, Depends(get_policy)]
Strategy = Annotated[ProrationStrategy, Depends(get_proration_strategy)]
ActorId = Annotated[UUID | None, Depends(get_actor_id)]
