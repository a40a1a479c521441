from fastapi import APIRouter, Depends
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.models import Notification, User
from smartfit.schemas import NotificationListResponse, NotificationOut, ResponseSchema
from smartfit.security import ensure_owner, get_current_user

router = APIRouter()


def _listing(notifications, message: str) -> NotificationListResponse:
    return NotificationListResponse(
        data=[NotificationOut.model_validate(n) for n in notifications],
        message=message,
        count=len(notifications),
        unread_count=sum(1 for n in notifications if not n.is_read),
    )


@router.get("", response_model=NotificationListResponse)
async def all_notifications(
    db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(Notification).order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return _listing(result.scalars().all(), "All notifications retrieved successfully")


@router.get("/user/{user_id}", response_model=NotificationListResponse)
async def user_notifications(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return _listing(result.scalars().all(), "User notifications retrieved successfully")


@router.put("/user/{user_id}/read-all", response_model=ResponseSchema[int])
async def mark_all_read(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, user_id, "update another user's notifications")
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return ResponseSchema(data=result.rowcount or 0, message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=ResponseSchema[NotificationOut])
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification = await db.get(Notification, notification_id)
    if not notification:
        raise ApiError(404, "Notification not found")

    notification.is_read = True
    await db.commit()
    return ResponseSchema(
        data=NotificationOut.model_validate(notification),
        message="Notification marked as read",
    )
