from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.events import Outbox, notify
from smartfit.models import Goal, User
from smartfit.schemas import (
    GoalCreateRequest,
    GoalOut,
    GoalUpdateRequest,
    MessageResponse,
    ResponseSchema,
)
from smartfit.security import ensure_owner, get_current_user

router = APIRouter()


def _clamp(progress: int) -> int:
    return max(0, min(100, progress))


async def _goals_for(db: AsyncSession, user_id: int) -> list:
    result = await db.execute(
        select(Goal).where(Goal.user_id == user_id).order_by(Goal.created_at, Goal.id)
    )
    return [GoalOut.model_validate(g) for g in result.scalars().all()]


async def _owned_goal(db: AsyncSession, goal_id: int, user: User, action: str) -> Goal:
    goal = await db.get(Goal, goal_id)
    if not goal:
        raise ApiError(404, "Goal not found")
    ensure_owner(user, goal.user_id, f"{action} this goal")
    return goal


@router.get("", response_model=ResponseSchema[list[GoalOut]])
async def my_goals(
    db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)
):
    goals = await _goals_for(db, current_user.id)
    return ResponseSchema(data=goals, count=len(goals))


@router.get("/user/{user_id}", response_model=ResponseSchema[list[GoalOut]])
async def user_goals(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    goals = await _goals_for(db, user_id)
    return ResponseSchema(data=goals, count=len(goals))


@router.post("", status_code=201, response_model=ResponseSchema[GoalOut])
async def create_goal(
    payload: GoalCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    goal = Goal(user_id=current_user.id, goal=payload.goal, progress=_clamp(payload.progress))
    db.add(goal)
    await db.commit()
    await db.refresh(goal)
    return ResponseSchema(data=GoalOut.model_validate(goal), message="Goal created successfully")


@router.put("/{goal_id}", response_model=ResponseSchema[GoalOut])
async def update_goal(
    goal_id: int,
    payload: GoalUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    goal = await _owned_goal(db, goal_id, current_user, "update")

    outbox = Outbox()
    previous = goal.progress
    goal.progress = _clamp(payload.progress)
    if goal.progress == 100 and previous < 100:
        await notify(
            db,
            outbox,
            current_user.id,
            "achievement",
            "Goal achieved",
            f"You completed your goal: {goal.goal}",
            related_id=goal.id,
            related_type="goal",
        )
    await db.commit()
    await db.refresh(goal)

    await outbox.send()
    return ResponseSchema(data=GoalOut.model_validate(goal), message="Goal updated successfully")


@router.delete("/{goal_id}", response_model=MessageResponse)
async def delete_goal(
    goal_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    goal = await _owned_goal(db, goal_id, current_user, "delete")
    await db.delete(goal)
    await db.commit()
    return MessageResponse(message="Goal deleted successfully")
