# FILE: ukhiker/api/auth.py
from datetime import timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ukhiker.core.database import get_db
from ukhiker.schemas.auth import UserCreate, UserLogin, TokenResponse, PublicUser, UserResponse
from ukhiker.services import auth_service
from ukhiker.api.deps import get_current_user

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(data: UserCreate, db: AsyncSession = Depends(get_db)):
    token, user = await auth_service.signup(db, data.name, data.email, data.password)
    return TokenResponse(
        token=token,
        user=PublicUser(id=user.id, name=user.name, email=user.email),
    )

@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    token, user = await auth_service.login(db, data.email, data.password)
    return TokenResponse(
        token=token,
        user=PublicUser(id=user.id, name=user.name, email=user.email),
    )

@router.get("/me", response_model=UserResponse)
async def auth_me(user=Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    record = await auth_service.get_self(db, user["id"])
    return UserResponse(
        id=record.id,
        name=record.name,
        email=record.email,
        is_admin=bool(record.is_admin),
        created_at=record.created_at.replace(tzinfo=timezone.utc).isoformat() if record.created_at else None,
    )
