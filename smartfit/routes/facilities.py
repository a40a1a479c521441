from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from smartfit.database import get_db
from smartfit.errors import ApiError
from smartfit.models import Facility
from smartfit.schemas import FacilityOut, ResponseSchema

router = APIRouter()


@router.get("", response_model=ResponseSchema[list[FacilityOut]])
async def list_facilities(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Facility).order_by(Facility.name))
    facilities = result.scalars().all()
    return ResponseSchema(
        data=[FacilityOut.model_validate(f) for f in facilities],
        message="Facilities retrieved successfully",
        count=len(facilities),
    )


@router.get("/{facility_id}", response_model=ResponseSchema[FacilityOut])
async def get_facility(facility_id: int, db: AsyncSession = Depends(get_db)):
    facility = await db.get(Facility, facility_id)
    if not facility:
        raise ApiError(404, "Facility not found")
    return ResponseSchema(data=FacilityOut.model_validate(facility))
