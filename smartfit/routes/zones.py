from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
import redis.asyncio as redis

from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.models import QueueEntry, QueueStatus, Zone
from smartfit.queueing import wait_for, zone_status_for
from smartfit.redis import get_redis, read_zone_line
from smartfit.schemas import LineEntry, ResponseSchema, ZoneOut

router = APIRouter()


async def _waiting_counts(db: AsyncSession, zone_ids: list) -> dict:
    if not zone_ids:
        return {}
    result = await db.execute(
        select(QueueEntry.zone_id, func.count(QueueEntry.id))
        .where(QueueEntry.zone_id.in_(zone_ids), QueueEntry.status == QueueStatus.ACTIVE)
        .group_by(QueueEntry.zone_id)
    )
    return {zone_id: count for zone_id, count in result.all()}


def _with_live_stats(zone: Zone, queue_length: int) -> ZoneOut:
    return ZoneOut.model_validate(zone).model_copy(
        update={
            "queue_length": queue_length,
            "average_wait_time": wait_for(queue_length),
            "status": zone_status_for(queue_length),
        }
    )


@router.get("", response_model=ResponseSchema[list[ZoneOut]])
async def list_zones(facilityId: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    query = select(Zone).order_by(Zone.id)
    if facilityId is not None:
        # an id that cannot exist is reported the same way as an unknown one
        if not facilityId.isdigit():
            raise ApiError(404, "Facility not found")
        query = query.where(Zone.facility_id == int(facilityId))

    zones = (await db.execute(query)).scalars().all()
    if facilityId is not None and not zones:
        raise ApiError(404, "No zones found for this facility")

    counts = await _waiting_counts(db, [z.id for z in zones])
    data = [_with_live_stats(z, counts.get(z.id, 0)) for z in zones]
    return ResponseSchema(data=data, count=len(data))


@router.get("/{zone_id}", response_model=ResponseSchema[ZoneOut])
async def get_zone(zone_id: int, db: AsyncSession = Depends(get_db)):
    zone = await db.get(Zone, zone_id)
    if not zone:
        raise ApiError(404, "Zone not found")
    counts = await _waiting_counts(db, [zone.id])
    return ResponseSchema(data=_with_live_stats(zone, counts.get(zone.id, 0)))


@router.get("/{zone_id}/queue", response_model=ResponseSchema[list[LineEntry]])
async def get_zone_line(
    zone_id: int,
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
):
    zone = await db.get(Zone, zone_id)
    if not zone:
        raise ApiError(404, "Zone not found")
    line = await read_zone_line(redis_client, zone_id)
    return ResponseSchema(data=[LineEntry(**entry) for entry in line], count=len(line))
