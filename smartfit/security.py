import logging
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from smartfit import config
from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.models import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def create_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "user": {"id": str(user.id), "email": user.email, "name": user.name},
        "iat": now,
        "exp": now + timedelta(days=config.JWT_EXPIRE_DAYS),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Return ``{"id", "email"}`` from either the nested or the flat payload."""
    payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    claims = payload.get("user") or {"id": payload.get("id"), "email": payload.get("email")}
    if claims.get("id") is None:
        raise jwt.InvalidTokenError("token carries no user id")
    return claims


def _unauthorized(message: str) -> ApiError:
    return ApiError(401, "Unauthorized", message)


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise _unauthorized("No token provided. Authorization denied.")
    if not auth_header.startswith("Bearer "):
        raise _unauthorized("Invalid token format. Authorization denied.")

    token = auth_header[len("Bearer "):].strip()
    if not token:
        raise _unauthorized("Token missing. Authorization denied.")

    try:
        claims = decode_token(token)
        user_id = int(claims["id"])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired. Please login again.")
    except (jwt.InvalidTokenError, TypeError, ValueError):
        raise _unauthorized("Invalid token. Authorization denied.")

    user = await db.get(User, user_id)
    if user is None:
        raise _unauthorized("Invalid token. Authorization denied.")
    return user


def ensure_owner(current_user: User, user_id: int, action: str):
    if current_user.id != user_id:
        raise ApiError(403, "Forbidden", f"Not authorized to {action}")
