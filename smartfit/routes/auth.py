import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
import redis.asyncio as redis

from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.models import Goal, User
from smartfit.redis import get_redis, hit_rate_limit
from smartfit.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    ResponseSchema,
    UserOut,
)
from smartfit.security import create_token, get_current_user, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()


async def auth_rate_limit(request: Request, redis_client: redis.Redis = Depends(get_redis)):
    client = request.client.host if request.client else "unknown"
    if await hit_rate_limit(redis_client, client):
        logger.warning("Auth rate limit exceeded for %s", client)
        raise ApiError(
            429,
            "Too many attempts",
            "Too many authentication attempts. Please try again in 15 minutes.",
        )


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    dependencies=[Depends(auth_rate_limit)],
)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == payload.email))
    if result.scalars().first() is not None:
        raise ApiError(409, "Conflict", "An account with this email already exists")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    await db.flush()
    for goal in payload.goals:
        db.add(Goal(user_id=user.id, goal=goal, progress=0))
    await db.commit()
    await db.refresh(user)

    logger.info("Registered user %s", user.id)
    return AuthResponse(
        data=UserOut.model_validate(user),
        token=create_token(user),
        message="Registration successful",
    )


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(auth_rate_limit)])
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalars().first()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise ApiError(401, "Unauthorized", "Invalid email or password")

    return AuthResponse(
        data=UserOut.model_validate(user),
        token=create_token(user),
        message="Login successful",
    )


@router.get("/me", response_model=ResponseSchema[UserOut])
async def me(current_user: User = Depends(get_current_user)):
    return ResponseSchema(data=UserOut.model_validate(current_user))
