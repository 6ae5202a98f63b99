# FILE: ukhiker/services/auth_service.py
import logging
import uuid
from datetime import datetime
from typing import Tuple

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ukhiker.core.config import BCRYPT_ROUNDS
from ukhiker.core.errors import Conflict, InvalidCredentials, NotFound
from ukhiker.models.user import User
from ukhiker.services.token_service import create_token

logger = logging.getLogger("ukhiker.auth")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash or over-long password
        return False


# Compared against when the email is unknown so both failure paths cost one bcrypt round
_DUMMY_HASH = hash_password(uuid.uuid4().hex)


async def get_user_by_email(db: AsyncSession, email: str):
    return (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()


async def signup(db: AsyncSession, name: str, email: str, password: str) -> Tuple[str, User]:
    if await get_user_by_email(db, email):
        raise Conflict("User already exists")

    user = User(
        id=str(uuid.uuid4()),
        name=name,
        email=email,
        password_hash=hash_password(password),
        is_admin=False,
        created_at=datetime.utcnow(),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # lost a concurrent signup race on the unique email index
        await db.rollback()
        raise Conflict("User already exists")

    logger.info(f"New user signed up: {user.id}")
    return create_token(user.id), user


async def login(db: AsyncSession, email: str, password: str) -> Tuple[str, User]:
    user = await get_user_by_email(db, email)
    if not user:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()

    return create_token(user.id), user


async def get_self(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def set_admin(db: AsyncSession, email: str, is_admin: bool = True) -> User:
    user = await get_user_by_email(db, email.strip().lower())
    if not user:
        raise NotFound("User not found")
    user.is_admin = is_admin
    await db.commit()
    logger.info(f"User {user.id} admin flag set to {is_admin}")
    return user
