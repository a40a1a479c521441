import logging

from sqlalchemy.ext.asyncio import AsyncSession

from smartfit.models import Notification
from smartfit.realtime import (
    facility_zones_room,
    hub,
    notifications_room,
    queue_room,
    zone_room,
)
from smartfit.schemas import NotificationOut

logger = logging.getLogger(__name__)


class Outbox:
    """Socket events collected during a request and sent once it has committed."""

    def __init__(self):
        self.events: list[tuple[str, str, dict]] = []

    def add(self, room: str, event: str, data: dict):
        self.events.append((room, event, data))

    def queue_update(self, entry):
        self.add(
            queue_room(entry.id),
            "queue:update",
            {
                "queueId": entry.id,
                "position": entry.position,
                "estimatedWait": entry.estimated_wait,
                "status": entry.status,
            },
        )

    def zone_update(self, zone, action: str):
        self.add(
            zone_room(zone.id),
            "zone:update",
            {"zoneId": zone.id, "action": action, "queueLength": zone.queue_length},
        )
        self.add(
            facility_zones_room(zone.facility_id),
            "facility-zones:update",
            {"zoneId": zone.id, "facilityId": zone.facility_id, "action": action},
        )

    def notification(self, notification: Notification):
        self.add(
            notifications_room(notification.user_id),
            "notification:new",
            NotificationOut.model_validate(notification).model_dump(by_alias=True),
        )

    async def send(self):
        events, self.events = self.events, []
        for room, event, data in events:
            await hub.emit(room, event, data)


async def notify(
    db: AsyncSession,
    outbox: Outbox,
    user_id: int,
    type: str,
    title: str,
    message: str,
    priority: str = "medium",
    related_id=None,
    related_type=None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        priority=priority,
        is_read=False,
        related_id=related_id,
        related_type=related_type,
    )
    db.add(notification)
    await db.flush()
    outbox.notification(notification)
    logger.info("Notification %s for user %s: %s", type, user_id, title)
    return notification
