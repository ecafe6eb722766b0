"""SQLAlchemy-backed lookups used by the time slot generator."""

from datetime import date, time

from sqlalchemy import func
from sqlalchemy.orm import Session

from clinic_backend.models.appointment import SCHEDULED_STATUS, Appointment
from clinic_backend.models.availability import DoctorAvailability
from clinic_backend.scheduling.time_slots import WEEKDAY_NAMES, AvailabilityWindow


class AppointmentStore:
    def __init__(self, db: Session):
        self.db = db

    def get_appointment(self, appointment_id: int) -> Appointment | None:
        return self.db.query(Appointment).filter(Appointment.appointment_id == appointment_id).first()

    def get_time_slot(self, appointment_id: int) -> time | None:
        row = self.db.query(Appointment.time_slot).filter(
            Appointment.appointment_id == appointment_id,
        ).first()
        if row is None:
            return None
        return row.time_slot

    def is_slot_booked(
        self,
        doctor_id: int,
        appointment_date: date,
        time_slot: time,
        excluding_appointment_id: int,
    ) -> bool:
        booked = self.db.query(Appointment.appointment_id).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == appointment_date,
            Appointment.time_slot == time_slot,
            func.lower(Appointment.status) == SCHEDULED_STATUS,
            Appointment.appointment_id != excluding_appointment_id,
        ).first()
        return booked is not None


class AvailabilityStore:
    def __init__(self, db: Session):
        self.db = db

    def _first_window(self, doctor_id: int, day_of_week: str) -> DoctorAvailability | None:
        return self.db.query(DoctorAvailability).filter(
            DoctorAvailability.doctor_id == doctor_id,
            DoctorAvailability.day_of_week == day_of_week,
        ).order_by(DoctorAvailability.id.asc()).first()

    def get_availability(self, doctor_id: int, day_of_week: str) -> AvailabilityWindow | None:
        window = self._first_window(doctor_id, day_of_week)
        if window is None:
            return None
        return AvailabilityWindow.model_validate(window)

    def list_windows(self, doctor_id: int) -> list[DoctorAvailability]:
        windows = self.db.query(DoctorAvailability).filter(
            DoctorAvailability.doctor_id == doctor_id,
        ).order_by(DoctorAvailability.id.asc()).all()

        first_per_day: dict[str, DoctorAvailability] = {}
        for window in windows:
            first_per_day.setdefault(window.day_of_week, window)

        return [first_per_day[day] for day in WEEKDAY_NAMES if day in first_per_day]

    def set_window(self, doctor_id: int, day_of_week: str, start_time: time, end_time: time) -> DoctorAvailability:
        window = self._first_window(doctor_id, day_of_week)
        if window is None:
            window = DoctorAvailability(doctor_id=doctor_id, day_of_week=day_of_week)
            self.db.add(window)

        window.start_time = start_time
        window.end_time = end_time
        self.db.commit()
        self.db.refresh(window)
        return window
