"""Doctor availability model definitions."""

from sqlalchemy import Column, Integer, String, Time
from clinic_backend.database import Base


class DoctorAvailability(Base):
    """Represents a doctor's working hours for one day of the week."""
    __tablename__ = "doctor_availability"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, index=True)
    day_of_week = Column(String)  # Monday..Sunday
    start_time = Column(Time)
    end_time = Column(Time)
