"""Appointment model definitions."""

from sqlalchemy import Column, Date, Integer, String, Time
from clinic_backend.database import Base

SCHEDULED_STATUS = "scheduled"
APPOINTMENT_STATUSES = ("scheduled", "completed", "cancelled")


class Appointment(Base):
    """Represents a patient's booking on a doctor's slot grid."""
    __tablename__ = "appointments"

    appointment_id = Column(Integer, primary_key=True)
    patient_id = Column(Integer)
    doctor_id = Column(Integer, index=True)
    appointment_date = Column(Date)
    time_slot = Column(Time)
    status = Column(String, default=SCHEDULED_STATUS)
    notes = Column(String)
