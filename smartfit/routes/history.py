from collections import Counter
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.models import User, Workout, Zone, utcnow
from smartfit.schemas import (
    HistoryResponse,
    ResponseSchema,
    WorkoutCreateRequest,
    WorkoutOut,
    WorkoutStats,
)
from smartfit.security import ensure_owner, get_current_user

router = APIRouter()


def _most_common(values) -> Optional[str]:
    counts = Counter(v for v in values if v)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def workout_stats(workouts: list) -> WorkoutStats:
    return WorkoutStats(
        total_workouts=len(workouts),
        total_minutes=sum(w.duration or 0 for w in workouts),
        total_calories=sum(w.calories_burned or 0 for w in workouts),
        most_frequent_gym=_most_common(w.zone_name for w in workouts),
        most_frequent_exercise=_most_common(e for w in workouts for e in (w.exercises or [])),
        workout_type_breakdown=dict(Counter(w.type for w in workouts)),
    )


async def _history(
    db: AsyncSession,
    user_id: int,
    location: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    type: Optional[str] = None,
) -> HistoryResponse:
    query = select(Workout).where(Workout.user_id == user_id)
    if location:
        query = query.where(func.lower(Workout.zone_name).contains(location.lower()))
    if start_date:
        query = query.where(Workout.date >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.where(Workout.date <= datetime.combine(end_date, time.max))
    if type:
        query = query.where(func.lower(Workout.type) == type.lower())

    result = await db.execute(query.order_by(Workout.date.desc(), Workout.id.desc()))
    workouts = result.scalars().all()
    return HistoryResponse(
        data=[WorkoutOut.model_validate(w) for w in workouts],
        stats=workout_stats(workouts),
        count=len(workouts),
    )


@router.get("", response_model=HistoryResponse)
async def my_history(
    db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return await _history(db, current_user.id)


@router.get("/user/{user_id}", response_model=HistoryResponse)
async def user_history(
    user_id: int,
    location: Optional[str] = None,
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
    type: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await _history(db, user_id, location, startDate, endDate, type)


@router.get("/{workout_id}", response_model=ResponseSchema[WorkoutOut])
async def get_workout(
    workout_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    workout = await db.get(Workout, workout_id)
    if not workout:
        raise ApiError(404, "Workout not found", f"No workout exists with ID: {workout_id}")
    return ResponseSchema(data=WorkoutOut.model_validate(workout))


@router.post("", status_code=201, response_model=ResponseSchema[WorkoutOut])
async def log_workout(
    payload: WorkoutCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_owner(current_user, payload.user_id, "log workouts for another user")

    zone = await db.get(Zone, payload.zone_id)
    if not zone or zone.facility_id != payload.facility_id:
        raise ApiError(404, "Zone not found", "No such zone in this facility")

    workout = Workout(
        user_id=payload.user_id,
        facility_id=payload.facility_id,
        zone_id=payload.zone_id,
        zone_name=payload.zone_name or zone.name,
        exercises=payload.exercises,
        date=utcnow(),
        duration=payload.duration,
        type=payload.type,
        notes=payload.notes,
        calories_burned=payload.calories_burned,
    )
    db.add(workout)
    await db.commit()
    await db.refresh(workout)
    return ResponseSchema(
        data=WorkoutOut.model_validate(workout), message="Workout logged successfully"
    )
