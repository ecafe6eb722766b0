"""User model definitions."""

from sqlalchemy import Column, Integer, String
from clinic_backend.database import Base

ADMIN_ROLE = "admin"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    role = Column(String)  # admin/doctor/patient
