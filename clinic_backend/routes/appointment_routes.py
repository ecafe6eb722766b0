import logging
from datetime import date, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.auth.dependencies import require_admin
from clinic_backend.database import ensure_appointment_schema, ensure_availability_schema, get_db
from clinic_backend.models.appointment import APPOINTMENT_STATUSES
from clinic_backend.models.user import User
from clinic_backend.scheduling.stores import AppointmentStore, AvailabilityStore
from clinic_backend.scheduling.time_slots import (
    InvalidParameters,
    SlotDescriptor,
    generate_time_slots,
    validate_slot_query,
)

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'
SLOT_TAKEN_DETAIL = 'This time slot is already booked. Please select another time.'
MAX_APPOINTMENT_NOTES_LENGTH = 600


class AppointmentResponse(BaseModel):
    appointment_id: int
    patient_id: int | None = None
    doctor_id: int
    appointment_date: date
    time_slot: time
    status: str
    notes: str | None = None

    class Config:
        from_attributes = True


class UpdateAppointmentRequest(BaseModel):
    patient_id: int
    doctor_id: int
    appointment_date: date
    time_slot: time
    status: str
    notes: str | None = None

    @field_validator('patient_id', 'doctor_id')
    @classmethod
    def validate_positive_id(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Identifiers must be positive.')
        return value

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in APPOINTMENT_STATUSES:
            raise ValueError('Invalid appointment status.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
        ensure_availability_schema()
    except SQLAlchemyError as exc:
        logger.exception('Schema check failed.')
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/time-slots', response_model=list[SlotDescriptor])
def list_time_slots(
    doctor_id: str | None = Query(default=None),
    slot_date: str | None = Query(default=None, alias='date'),
    appointment_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    try:
        parsed_doctor_id, parsed_date, parsed_appointment_id = validate_slot_query(
            doctor_id,
            slot_date,
            appointment_id,
        )
    except InvalidParameters as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid parameters',
        ) from exc

    ensure_database_ready()

    try:
        return generate_time_slots(
            parsed_doctor_id,
            parsed_date,
            parsed_appointment_id,
            appointment_store=AppointmentStore(db),
            availability_store=AvailabilityStore(db),
        )
    except SQLAlchemyError as exc:
        logger.exception('Time slot lookup failed for doctor %s on %s.', doctor_id, slot_date)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    ensure_database_ready()

    try:
        appointment = AppointmentStore(db).get_appointment(appointment_id)
    except SQLAlchemyError as exc:
        logger.exception('Appointment lookup failed for %s.', appointment_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )

    return appointment


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    ensure_database_ready()

    try:
        store = AppointmentStore(db)
        appointment = store.get_appointment(appointment_id)
        if appointment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Appointment not found.',
            )

        slot_changed = (
            appointment.doctor_id != data.doctor_id
            or appointment.appointment_date != data.appointment_date
            or appointment.time_slot != data.time_slot
        )
        if slot_changed and store.is_slot_booked(
            data.doctor_id,
            data.appointment_date,
            data.time_slot,
            excluding_appointment_id=appointment_id,
        ):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=SLOT_TAKEN_DETAIL,
            )

        appointment.patient_id = data.patient_id
        appointment.doctor_id = data.doctor_id
        appointment.appointment_date = data.appointment_date
        appointment.time_slot = data.time_slot
        appointment.status = data.status
        appointment.notes = data.notes
        db.commit()
        db.refresh(appointment)

        return appointment
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Appointment update failed for %s.', appointment_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
