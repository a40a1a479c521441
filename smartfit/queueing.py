"""Zone queue lifecycle.

An entry waits as ``active`` with a 1-based ``position``, may move to ``in_use``
while the user is on the equipment, and ends ``completed`` or ``cancelled``.
Whenever an entry leaves the waiting line the remaining ``active`` entries of
its zone are renumbered 1..n. Functions here only touch the session; callers
commit and then send the outbox.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartfit import config
from smartfit.errors import ApiError
from smartfit.events import Outbox, notify
from smartfit.models import QueueEntry, QueueStatus, Zone, ZoneStatus, utcnow
from smartfit.schemas import QueueOut

logger = logging.getLogger(__name__)


def wait_for(position: int) -> int:
    return position * config.MINUTES_PER_POSITION


def zone_status_for(queue_length: int) -> str:
    if queue_length >= config.ZONE_BUSY_THRESHOLD:
        return ZoneStatus.BUSY
    if queue_length >= config.ZONE_MODERATE_THRESHOLD:
        return ZoneStatus.MODERATE
    return ZoneStatus.AVAILABLE


async def count_waiting(db: AsyncSession, zone_id: int) -> int:
    result = await db.execute(
        select(func.count(QueueEntry.id)).where(
            QueueEntry.zone_id == zone_id, QueueEntry.status == QueueStatus.ACTIVE
        )
    )
    return result.scalar_one()


async def find_open_entry(db: AsyncSession, user_id: int):
    result = await db.execute(
        select(QueueEntry)
        .where(QueueEntry.user_id == user_id, QueueEntry.status.in_(QueueStatus.OPEN))
        .order_by(QueueEntry.joined_at.desc())
        .limit(1)
    )
    return result.scalars().first()


async def waiting_entries(db: AsyncSession, zone_id: int) -> list:
    result = await db.execute(
        select(QueueEntry)
        .where(QueueEntry.zone_id == zone_id, QueueEntry.status == QueueStatus.ACTIVE)
        .order_by(QueueEntry.position, QueueEntry.joined_at, QueueEntry.id)
    )
    return list(result.scalars().all())


async def refresh_zone_stats(db: AsyncSession, zone: Zone) -> Zone:
    queue_length = await count_waiting(db, zone.id)
    zone.queue_length = queue_length
    zone.average_wait_time = wait_for(queue_length)
    zone.status = zone_status_for(queue_length)
    return zone


async def renumber_zone(db: AsyncSession, outbox: Outbox, zone_id: int) -> list:
    """Close the gaps in a zone's line. Returns the entries whose position moved."""
    moved = []
    for position, entry in enumerate(await waiting_entries(db, zone_id), start=1):
        if entry.position == position:
            continue
        entry.position = position
        entry.estimated_wait = wait_for(position)
        moved.append(entry)
        outbox.queue_update(entry)
        if position == 1:
            await notify(
                db,
                outbox,
                entry.user_id,
                "queue_ready",
                "You're next",
                "You are now first in line. Head over to the zone.",
                priority="high",
                related_id=entry.id,
                related_type="queue",
            )
    if moved:
        logger.info("Renumbered %d entries in zone %s", len(moved), zone_id)
    return moved


async def join_queue(
    db: AsyncSession, outbox: Outbox, user_id: int, zone: Zone, facility_id=None
) -> QueueEntry:
    existing = await find_open_entry(db, user_id)
    if existing is not None:
        raise ApiError(
            409,
            "User already has an active queue",
            "User already has an active queue",
            data=QueueOut.model_validate(existing).model_dump(by_alias=True),
        )

    position = await count_waiting(db, zone.id) + 1
    now = utcnow()
    entry = QueueEntry(
        user_id=user_id,
        zone_id=zone.id,
        facility_id=facility_id or zone.facility_id,
        position=position,
        estimated_wait=wait_for(position),
        status=QueueStatus.ACTIVE,
        joined_at=now,
        updated_at=now,
    )
    db.add(entry)
    await db.flush()

    await refresh_zone_stats(db, zone)
    outbox.zone_update(zone, "queue_joined")
    await notify(
        db,
        outbox,
        user_id,
        "queue_update",
        "Queue Joined",
        f"You joined the {zone.name} queue at position #{entry.position}. "
        f"Estimated wait: {entry.estimated_wait} minutes",
        related_id=entry.id,
        related_type="queue",
    )
    logger.info("User %s joined zone %s at position %s", user_id, zone.id, position)
    return entry


async def update_entry(db: AsyncSession, outbox: Outbox, entry: QueueEntry, changes: dict):
    """Apply a client update.

    ``changes`` holds only the fields the client sent: ``position``,
    ``estimated_wait`` and ``status``. A status can only move forward to
    ``completed`` or ``cancelled``; ``in_use`` is entered through
    :func:`start_entry` and closed entries cannot be reopened.
    """
    status = changes.get("status")
    # position 0 completes the entry before any explicit status applies
    current = QueueStatus.COMPLETED if changes.get("position") == 0 else entry.status
    if status is not None and status != current:
        if current in QueueStatus.CLOSED and status in QueueStatus.OPEN:
            raise ApiError(409, "Conflict", f"Cannot reopen a {current} queue entry")
        if status == QueueStatus.IN_USE:
            raise ApiError(409, "Conflict", "Use the start endpoint to begin using the equipment")
        if status == QueueStatus.ACTIVE:
            raise ApiError(409, "Conflict", f"Cannot move a {current} queue entry back to active")

    was_waiting = entry.status == QueueStatus.ACTIVE
    was_in_use = entry.status == QueueStatus.IN_USE

    if "position" in changes and changes["position"] is not None:
        position = changes["position"]
        entry.position = position
        if position == 0:
            entry.estimated_wait = 0
            entry.status = QueueStatus.COMPLETED
            entry.completed_at = utcnow()
        else:
            entry.estimated_wait = wait_for(position)

    if changes.get("estimated_wait") is not None:
        entry.estimated_wait = changes["estimated_wait"]

    if status is not None and status != entry.status:
        entry.status = status
        if status in QueueStatus.CLOSED:
            entry.completed_at = utcnow()

    entry.updated_at = utcnow()
    await db.flush()
    outbox.queue_update(entry)

    zone = await db.get(Zone, entry.zone_id)
    if was_waiting and entry.status != QueueStatus.ACTIVE:
        await renumber_zone(db, outbox, entry.zone_id)
    if zone is not None:
        if was_in_use and entry.status in QueueStatus.CLOSED:
            zone.current_occupancy = max(zone.current_occupancy - 1, 0)
        await refresh_zone_stats(db, zone)
        outbox.zone_update(zone, "queue_updated")
    logger.info("Queue entry %s updated: %s", entry.id, changes)
    return entry


async def leave_queue(db: AsyncSession, outbox: Outbox, entry: QueueEntry):
    was_waiting = entry.status == QueueStatus.ACTIVE
    was_in_use = entry.status == QueueStatus.IN_USE
    zone_id = entry.zone_id

    await db.delete(entry)
    await db.flush()

    zone = await db.get(Zone, zone_id)
    if was_waiting:
        await renumber_zone(db, outbox, zone_id)
    if zone is not None:
        if was_in_use:
            zone.current_occupancy = max(zone.current_occupancy - 1, 0)
        await refresh_zone_stats(db, zone)
        outbox.zone_update(zone, "queue_left")
    logger.info("Queue entry %s removed from zone %s", entry.id, zone_id)


async def start_entry(db: AsyncSession, outbox: Outbox, entry: QueueEntry):
    if entry.status != QueueStatus.ACTIVE:
        raise ApiError(409, "Conflict", f"Cannot start a queue entry that is {entry.status}")

    now = utcnow()
    entry.status = QueueStatus.IN_USE
    entry.position = 0
    entry.estimated_wait = 0
    entry.started_at = now
    entry.updated_at = now
    await db.flush()
    outbox.queue_update(entry)

    await renumber_zone(db, outbox, entry.zone_id)
    zone = await db.get(Zone, entry.zone_id)
    if zone is not None:
        zone.current_occupancy += 1
        await refresh_zone_stats(db, zone)
        outbox.zone_update(zone, "equipment_started")
    logger.info("Queue entry %s started using zone %s", entry.id, entry.zone_id)
    return entry


async def stop_entry(db: AsyncSession, outbox: Outbox, entry: QueueEntry):
    if entry.status != QueueStatus.IN_USE:
        raise ApiError(409, "Conflict", f"Cannot stop a queue entry that is {entry.status}")

    now = utcnow()
    entry.status = QueueStatus.COMPLETED
    entry.completed_at = now
    entry.updated_at = now
    await db.flush()
    outbox.queue_update(entry)

    zone = await db.get(Zone, entry.zone_id)
    if zone is not None:
        zone.current_occupancy = max(zone.current_occupancy - 1, 0)
        await refresh_zone_stats(db, zone)
        outbox.zone_update(zone, "equipment_released")
    logger.info("Queue entry %s finished in zone %s", entry.id, entry.zone_id)
    return entry


async def remove_user_entries(db: AsyncSession, outbox: Outbox, user_id: int) -> list:
    """Delete every entry of a user and close the gaps they leave behind."""
    result = await db.execute(select(QueueEntry).where(QueueEntry.user_id == user_id))
    entries = list(result.scalars().all())
    for entry in entries:
        await leave_queue(db, outbox, entry)
    return entries
