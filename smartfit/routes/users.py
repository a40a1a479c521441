import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
import redis.asyncio as redis

from smartfit.accounts import remove_account
from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.models import User
from smartfit.redis import get_redis
from smartfit.schemas import (
    AccountDeletion,
    MessageResponse,
    PasswordChangeRequest,
    ResponseSchema,
    UserOut,
    UserUpdateRequest,
)
from smartfit.security import ensure_owner, get_current_user, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ResponseSchema[list[UserOut]])
async def list_users(
    db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)
):
    users = (await db.execute(select(User).order_by(User.id))).scalars().all()
    return ResponseSchema(data=[UserOut.model_validate(u) for u in users], count=len(users))


@router.get("/{user_id}", response_model=ResponseSchema[UserOut])
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await db.get(User, user_id)
    if not user:
        raise ApiError(404, "User not found")
    return ResponseSchema(data=UserOut.model_validate(user))


@router.put("/{user_id}", response_model=ResponseSchema[UserOut])
async def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await db.get(User, user_id)
    if not user:
        raise ApiError(404, "User not found")
    ensure_owner(current_user, user_id, "update another user's profile")

    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in updates and updates["email"] != user.email:
        taken = await db.execute(select(User).where(User.email == updates["email"]))
        if taken.scalars().first() is not None:
            raise ApiError(409, "Conflict", "Email already in use")
    if "name" in updates:
        updates["name"] = updates["name"].strip()
        if len(updates["name"]) < 2:
            raise ApiError(400, "Validation failed", "Name must be at least 2 characters")

    for field, value in updates.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return ResponseSchema(data=UserOut.model_validate(user), message="Profile updated successfully")


@router.put("/{user_id}/password", response_model=MessageResponse)
async def change_password(
    user_id: int,
    payload: PasswordChangeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await db.get(User, user_id)
    if not user:
        raise ApiError(404, "User not found")
    ensure_owner(current_user, user_id, "change another user's password")

    if payload.current_password is not None and not verify_password(
        payload.current_password, user.password_hash
    ):
        raise ApiError(401, "Unauthorized", "Current password is incorrect")

    user.password_hash = hash_password(payload.new_password)
    await db.commit()
    logger.info("Password changed for user %s", user_id)
    return MessageResponse(message="Password updated successfully")


@router.delete("/{user_id}", response_model=ResponseSchema[AccountDeletion])
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    current_user: User = Depends(get_current_user),
):
    return await remove_account(db, redis_client, current_user, user_id)
