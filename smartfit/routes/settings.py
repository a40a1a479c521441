from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import redis.asyncio as redis

from smartfit.accounts import remove_account
from smartfit.database import get_db
from smartfit.models import User
from smartfit.redis import get_redis
from smartfit.schemas import AccountDeletion, MessageResponse, ResponseSchema
from smartfit.security import get_current_user

router = APIRouter()


@router.get("", response_model=MessageResponse)
async def settings_status():
    return MessageResponse(message="Settings API is running")


@router.delete("/account/{user_id}", response_model=ResponseSchema[AccountDeletion])
async def delete_user_account(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    current_user: User = Depends(get_current_user),
):
    return await remove_account(db, redis_client, current_user, user_id)
