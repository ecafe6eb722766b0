import logging
from datetime import time

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.auth.dependencies import require_admin
from clinic_backend.core import config
from clinic_backend.database import get_db
from clinic_backend.models.user import User
from clinic_backend.routes.appointment_routes import DATABASE_UNAVAILABLE_DETAIL, ensure_database_ready
from clinic_backend.scheduling.stores import AvailabilityStore
from clinic_backend.scheduling.time_slots import WEEKDAY_NAMES

router = APIRouter(tags=['availability'])

logger = logging.getLogger(__name__)


class SetAvailabilityRequest(BaseModel):
    start_time: time
    end_time: time


class AvailabilityWindowResponse(BaseModel):
    id: int
    doctor_id: int
    day_of_week: str
    start_time: time
    end_time: time

    class Config:
        from_attributes = True


def normalize_day_of_week(day_of_week: str) -> str:
    normalized = day_of_week.strip().capitalize()
    if normalized not in WEEKDAY_NAMES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Day of week must be a full weekday name (Monday through Sunday).',
        )
    return normalized


def validate_window(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Start time must be before end time.',
        )

    for boundary in (start_time, end_time):
        if boundary.minute % config.SLOT_DURATION_MINUTES != 0 or boundary.second or boundary.microsecond:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Times must be on {config.SLOT_DURATION_MINUTES}-minute boundaries.',
            )


@router.get('/doctors/{doctor_id}', response_model=list[AvailabilityWindowResponse])
def list_doctor_availability(
    doctor_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    ensure_database_ready()

    try:
        return AvailabilityStore(db).list_windows(doctor_id)
    except SQLAlchemyError as exc:
        logger.exception('Availability lookup failed for doctor %s.', doctor_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.put('/doctors/{doctor_id}/{day_of_week}', response_model=AvailabilityWindowResponse)
def set_doctor_availability(
    doctor_id: int,
    day_of_week: str,
    data: SetAvailabilityRequest,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    if doctor_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid doctor.',
        )
    normalized_day = normalize_day_of_week(day_of_week)
    validate_window(data.start_time, data.end_time)

    ensure_database_ready()

    try:
        return AvailabilityStore(db).set_window(doctor_id, normalized_day, data.start_time, data.end_time)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Availability update failed for doctor %s on %s.', doctor_id, normalized_day)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
