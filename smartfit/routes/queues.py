from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
import redis.asyncio as redis

from smartfit import queueing
from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.events import Outbox
from smartfit.models import QueueEntry, QueueStatus, User, Zone
from smartfit.redis import get_redis, mirror_join, mirror_leave
from smartfit.schemas import QueueJoinRequest, QueueOut, QueueUpdateRequest, ResponseSchema
from smartfit.security import ensure_owner, get_current_user

router = APIRouter()


async def _owned_entry(db: AsyncSession, queue_id: int, user: User, action: str) -> QueueEntry:
    entry = await db.get(QueueEntry, queue_id)
    if not entry:
        raise ApiError(404, "Queue entry not found")
    ensure_owner(user, entry.user_id, f"{action} this queue entry")
    return entry


async def _sync_mirror(redis_client, entry: QueueEntry):
    if entry.status == QueueStatus.ACTIVE:
        await mirror_join(redis_client, entry)
    else:
        await mirror_leave(redis_client, entry)


@router.post("", status_code=201, response_model=ResponseSchema[QueueOut])
async def join_queue(
    payload: QueueJoinRequest,
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, payload.user_id, "create queue for another user")

    zone = await db.get(Zone, payload.zone_id)
    if not zone:
        raise ApiError(404, "Zone not found")

    outbox = Outbox()
    entry = await queueing.join_queue(db, outbox, current_user.id, zone, payload.facility_id)
    await db.commit()

    await mirror_join(redis_client, entry)
    await outbox.send()
    return ResponseSchema(
        data=QueueOut.model_validate(entry), message="Successfully joined queue"
    )


@router.get("/user/{user_id}", response_model=ResponseSchema[list[QueueOut]])
async def list_user_queues(
    user_id: int,
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, user_id, "view queues for another user")

    query = select(QueueEntry).where(QueueEntry.user_id == user_id)
    if status:
        query = query.where(QueueEntry.status == status)
    result = await db.execute(query.order_by(QueueEntry.joined_at.desc(), QueueEntry.id.desc()))
    entries = result.scalars().all()
    return ResponseSchema(
        data=[QueueOut.model_validate(e) for e in entries], count=len(entries)
    )


@router.get("/{queue_id}", response_model=ResponseSchema[QueueOut])
async def get_queue(
    queue_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entry = await _owned_entry(db, queue_id, current_user, "view")
    return ResponseSchema(data=QueueOut.model_validate(entry))


@router.put("/{queue_id}", response_model=ResponseSchema[QueueOut])
async def update_queue(
    queue_id: int,
    payload: QueueUpdateRequest,
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    current_user: User = Depends(get_current_user),
):
    entry = await _owned_entry(db, queue_id, current_user, "update")

    outbox = Outbox()
    changes = payload.model_dump(include=payload.model_fields_set)
    await queueing.update_entry(db, outbox, entry, changes)
    await db.commit()

    await _sync_mirror(redis_client, entry)
    await outbox.send()
    return ResponseSchema(
        data=QueueOut.model_validate(entry), message="Queue updated successfully"
    )


@router.delete("/{queue_id}", response_model=ResponseSchema[QueueOut])
async def leave_queue(
    queue_id: int,
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    current_user: User = Depends(get_current_user),
):
    entry = await _owned_entry(db, queue_id, current_user, "delete")
    snapshot = QueueOut.model_validate(entry)

    outbox = Outbox()
    await queueing.leave_queue(db, outbox, entry)
    await db.commit()

    await mirror_leave(redis_client, entry)
    await outbox.send()
    return ResponseSchema(data=snapshot, message="Successfully left queue")


@router.post("/{queue_id}/start", response_model=ResponseSchema[QueueOut])
async def start_queue(
    queue_id: int,
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    current_user: User = Depends(get_current_user),
):
    entry = await _owned_entry(db, queue_id, current_user, "start")

    outbox = Outbox()
    await queueing.start_entry(db, outbox, entry)
    await db.commit()

    await mirror_leave(redis_client, entry)
    await outbox.send()
    return ResponseSchema(data=QueueOut.model_validate(entry), message="Equipment in use")


@router.post("/{queue_id}/stop", response_model=ResponseSchema[QueueOut])
async def stop_queue(
    queue_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entry = await _owned_entry(db, queue_id, current_user, "stop")

    outbox = Outbox()
    await queueing.stop_entry(db, outbox, entry)
    await db.commit()

    await outbox.send()
    return ResponseSchema(data=QueueOut.model_validate(entry), message="Workout session completed")
