"""FastAPI dependencies resolving the caller.

Credentials are verified by the upstream identity provider, which forwards
the caller's id and role as trusted headers.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
import structlog

from .models import Caller, Role

logger = structlog.get_logger(__name__)


async def get_caller(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None)
) -> Caller:
    """Build the caller from the identity headers.

    Raises:
        HTTPException: If either header is missing or malformed
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate caller identity",
    )

    if not x_user_id or not x_user_role:
        logger.warning("Identity headers missing")
        raise credentials_exception

    try:
        return Caller(user_id=UUID(x_user_id), role=Role(x_user_role.upper()))
    except ValueError:
        logger.warning("Invalid identity headers", user_id=x_user_id, role=x_user_role)
        raise credentials_exception


async def require_reviewer(caller: Caller = Depends(get_caller)) -> Caller:
    """Require a reviewer or admin caller.

    Raises:
        HTTPException: If the caller lacks the role
    """
    if not caller.is_reviewer:
        logger.warning("Reviewer access denied", user_id=str(caller.user_id), role=caller.role.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Reviewer role required"
        )
    return caller


async def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_admin:
        logger.warning("Admin access denied", user_id=str(caller.user_id), role=caller.role.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return caller
