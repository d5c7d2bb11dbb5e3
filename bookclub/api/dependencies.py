"""API dependencies for authentication and database access."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.core.database import get_db
from bookclub.core.exceptions import AccountNotFound
from bookclub.core.security import verify_token
from bookclub.models import Account
from bookclub.services.account_service import AccountService
from bookclub.services.locks import StudyLockRegistry, study_locks
from bookclub.utils.clock import Clock, system_clock

# Security scheme
security = HTTPBearer()


def get_clock() -> Clock:
    """Clock used for all date checks; overridden in tests."""
    return system_clock


def get_locks() -> StudyLockRegistry:
    return study_locks


async def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Account:
    """Resolve the bearer token to an account."""
    token_data = verify_token(credentials.credentials)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await AccountService(db).get_by_email(token_data.email)
    except AccountNotFound:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown account",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Dependency aliases for easier use
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentAccount = Annotated[Account, Depends(get_current_account)]
CurrentClock = Annotated[Clock, Depends(get_clock)]
Locks = Annotated[StudyLockRegistry, Depends(get_locks)]
