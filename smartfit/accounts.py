import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from smartfit.errors import ApiError
from smartfit.events import Outbox
from smartfit.models import Goal, Notification, SupportIssue, User, Workout
from smartfit.queueing import remove_user_entries
from smartfit.redis import mirror_leave
from smartfit.schemas import AccountDeletion, DeletedUser, RemovedRecords, ResponseSchema
from smartfit.security import ensure_owner

logger = logging.getLogger(__name__)


async def _delete_owned(db: AsyncSession, model, user_id: int) -> int:
    result = await db.execute(delete(model).where(model.user_id == user_id))
    return result.rowcount or 0


async def delete_account(db: AsyncSession, outbox: Outbox, user: User):
    """Remove a user and everything that belongs to them. Caller commits.

    Returns the deletion report and the removed queue entries.
    """
    deleted_user = DeletedUser(id=user.id, email=user.email, name=user.name)

    entries = await remove_user_entries(db, outbox, user.id)
    removed = RemovedRecords(
        queues=len(entries),
        goals=await _delete_owned(db, Goal, user.id),
        history=await _delete_owned(db, Workout, user.id),
        notifications=await _delete_owned(db, Notification, user.id),
        support_issues=await _delete_owned(db, SupportIssue, user.id),
    )
    await db.delete(user)
    await db.flush()

    logger.info("Deleted account %s (%s)", user.id, removed.model_dump())
    return AccountDeletion(user=deleted_user, removed_records=removed), entries


async def remove_account(db: AsyncSession, redis_client, current_user: User, user_id: int):
    user = await db.get(User, user_id)
    if not user:
        raise ApiError(404, "User not found")
    ensure_owner(current_user, user_id, "delete another user's account")

    outbox = Outbox()
    deletion, entries = await delete_account(db, outbox, user)
    await db.commit()

    for entry in entries:
        await mirror_leave(redis_client, entry)
    await outbox.send()
    return ResponseSchema(data=deletion, message="Account deleted successfully")
