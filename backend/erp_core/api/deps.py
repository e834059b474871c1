"""ERP Core — FastAPI dependencies (auth, unit of work, cache, clock)."""
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from erp_core.core.clock import SystemClock
from erp_core.core.redis import AlertCache, get_redis
from erp_core.db.unit_of_work import UnitOfWork


class CurrentUser:
    """Identity from the JWT, set on request.state by the auth middleware."""

    def __init__(self, id: UUID, company_id: UUID):
        self.id = id
        self.company_id = company_id


async def require_auth(request: Request) -> CurrentUser:
    """Require an authenticated, company-scoped caller. Raise 401 otherwise."""
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    from erp_core.db.session import async_session_maker

    return async_session_maker


def get_clock():
    return SystemClock()


async def get_uow(
    user: CurrentUser = Depends(require_auth),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> UnitOfWork:
    """A fresh, not yet entered unit of work scoped to the caller's company."""
    return UnitOfWork(session_maker, user.company_id)


async def get_alert_cache() -> AlertCache:
    return AlertCache(await get_redis())


Uow = Annotated[UnitOfWork, Depends(get_uow)]
Cache = Annotated[AlertCache, Depends(get_alert_cache)]
Clock = Annotated[SystemClock, Depends(get_clock)]
