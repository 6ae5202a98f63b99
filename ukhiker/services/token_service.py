# FILE: ukhiker/services/token_service.py
import jwt
from datetime import datetime, timezone, timedelta

from ukhiker.core.config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRATION_HOURS
from ukhiker.core.errors import InvalidToken


def create_token(user_id: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "iat": now,
        "exp": now + timedelta(hours=JWT_EXPIRATION_HOURS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> str:
    """Return the user id carried by ``token`` or raise InvalidToken."""
    try:
        payload = jwt.decode(
            token.strip(),
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidToken("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken("Invalid token") from exc

    user_id = payload.get("userId")
    if not user_id or not isinstance(user_id, str):
        raise InvalidToken("Invalid token payload")
    return user_id
