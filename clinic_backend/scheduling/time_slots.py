"""Available time slot generation for editing a doctor's appointment.

The generator walks a fixed 30-minute grid across the doctor's availability
window for the weekday of the requested date. A slot is offered when no other
scheduled appointment holds it; the slot already held by the appointment being
edited is always offered and flagged as current.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Protocol

from pydantic import BaseModel

from clinic_backend.core import config

logger = logging.getLogger(__name__)

SLOT_DURATION = timedelta(minutes=config.SLOT_DURATION_MINUTES)
WEEKDAY_NAMES = (
    'Monday',
    'Tuesday',
    'Wednesday',
    'Thursday',
    'Friday',
    'Saturday',
    'Sunday',
)


class InvalidParameters(ValueError):
    """Raised when a slot query is missing a doctor, date or appointment."""


class AvailabilityWindow(BaseModel):
    start_time: time
    end_time: time

    class Config:
        from_attributes = True


class SlotDescriptor(BaseModel):
    time: time
    formatted_time: str
    is_current: bool


class AppointmentLookup(Protocol):
    def get_time_slot(self, appointment_id: int) -> time | None: ...

    def is_slot_booked(
        self,
        doctor_id: int,
        appointment_date: date,
        time_slot: time,
        excluding_appointment_id: int,
    ) -> bool: ...


class AvailabilityLookup(Protocol):
    def get_availability(self, doctor_id: int, day_of_week: str) -> AvailabilityWindow | None: ...


def parse_positive_id(value: int | str | None) -> int:
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError as exc:
            raise InvalidParameters('Invalid parameters') from exc

    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise InvalidParameters('Invalid parameters')
    return value


def parse_slot_date(value: date | str | None) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    normalized = (value or '').strip()
    if not normalized:
        raise InvalidParameters('Invalid parameters')

    try:
        return date.fromisoformat(normalized)
    except ValueError as exc:
        raise InvalidParameters('Invalid parameters') from exc


def weekday_name(slot_date: date) -> str:
    return WEEKDAY_NAMES[slot_date.weekday()]


def format_slot_time(slot_time: time) -> str:
    hour = slot_time.hour % 12 or 12
    suffix = 'AM' if slot_time.hour < 12 else 'PM'
    return f'{hour:02d}:{slot_time.minute:02d} {suffix}'


def iterate_slot_starts(start_time: time, end_time: time) -> list[time]:
    # Anchored on an arbitrary day so a step past midnight compares greater than end_time.
    anchor = date.min
    current = datetime.combine(anchor, start_time)
    end = datetime.combine(anchor, end_time)

    slots: list[time] = []
    while current < end:
        slots.append(current.time())
        current += SLOT_DURATION

    return slots


def validate_slot_query(
    doctor_id: int | str | None,
    slot_date: date | str | None,
    appointment_id: int | str | None,
) -> tuple[int, date, int]:
    """Coerce raw query values, raising ``InvalidParameters`` when any is
    missing, not a positive integer, or not an ISO date."""
    return parse_positive_id(doctor_id), parse_slot_date(slot_date), parse_positive_id(appointment_id)


def generate_time_slots(
    doctor_id: int | str | None,
    slot_date: date | str | None,
    appointment_id: int | str | None,
    appointment_store: AppointmentLookup,
    availability_store: AvailabilityLookup,
) -> list[SlotDescriptor]:
    """Return the slots a doctor can offer on ``slot_date`` when rescheduling
    ``appointment_id``.

    Raises:
        InvalidParameters: ``doctor_id`` or ``appointment_id`` is not a positive
            integer, or ``slot_date`` is empty or not an ISO date.
    """
    doctor_id, appointment_date, appointment_id = validate_slot_query(doctor_id, slot_date, appointment_id)

    current_time_slot = appointment_store.get_time_slot(appointment_id)
    day_of_week = weekday_name(appointment_date)

    window = availability_store.get_availability(doctor_id, day_of_week)
    if window is None:
        logger.debug('Doctor %s has no availability on %s', doctor_id, day_of_week)
        return []

    slots: list[SlotDescriptor] = []
    for slot_time in iterate_slot_starts(window.start_time, window.end_time):
        if current_time_slot is not None and slot_time == current_time_slot:
            slots.append(
                SlotDescriptor(time=slot_time, formatted_time=format_slot_time(slot_time), is_current=True)
            )
            continue

        if appointment_store.is_slot_booked(
            doctor_id,
            appointment_date,
            slot_time,
            excluding_appointment_id=appointment_id,
        ):
            continue

        slots.append(
            SlotDescriptor(time=slot_time, formatted_time=format_slot_time(slot_time), is_current=False)
        )

    logger.debug(
        'Generated %d slots for doctor %s on %s (appointment %s)',
        len(slots),
        doctor_id,
        appointment_date,
        appointment_id,
    )
    return slots
