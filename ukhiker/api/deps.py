# FILE: ukhiker/api/deps.py

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ukhiker.core.database import get_db
from ukhiker.core.errors import Forbidden, InternalError, InvalidToken, Unauthorized
from ukhiker.models.user import User
from ukhiker.services.token_service import verify_token

security = HTTPBearer(auto_error=False)

async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
):
    """Request identity from the bearer token. No database lookup."""
    if not credentials or not credentials.credentials:
        raise Unauthorized("No token, authorization denied")

    try:
        user_id = verify_token(credentials.credentials)
    except InvalidToken:
        raise Unauthorized("Token is not valid")

    return {"id": user_id}

async def require_admin(
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    try:
        record = await db.get(User, user["id"])
    except SQLAlchemyError as exc:
        raise InternalError("Server error", detail=str(exc))

    if not record or not record.is_admin:
        raise Forbidden("Access denied: Admin privileges required")

    return user
