"""FastAPI dependencies: get_current_user, require_admin.

Authentication happens upstream; the gateway forwards the verified caller id
in the X-User-Id header and this service trusts it.

Usage in any router:
    from src.bm_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: Annotated[UserModel, Depends(get_current_user)]):
        ...
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.errors import AdminRequiredError
from src.bm_gateway.user.db_models import UserModel

_UNAUTHENTICATED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Missing or unknown X-User-Id",
)


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> UserModel:
    """Resolve the X-User-Id header to a users row; HTTP 401 if absent or unknown."""
    if not x_user_id:
        raise _UNAUTHENTICATED
    result = await db.execute(select(UserModel).where(UserModel.id == x_user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _UNAUTHENTICATED
    return user


async def require_admin(
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> UserModel:
    """Verify the caller carries users.is_admin; AdminRequiredError (403) otherwise."""
    if not current_user.is_admin:
        raise AdminRequiredError()
    return current_user
