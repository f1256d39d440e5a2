"""User model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from petcare.database import Base

PATIENT_ROLE = "patient"
VET_ROLE = "vet"
ADMIN_ROLE = "admin"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    role = Column(String)  # patient/vet/admin
    specialization = Column(String, index=True)  # vets only
    is_enabled = Column(Boolean, default=True)

    @property
    def is_veterinarian(self) -> bool:
        return (self.role or "").strip().lower() == VET_ROLE

    @property
    def is_bookable_veterinarian(self) -> bool:
        return self.is_veterinarian and self.is_enabled is not False
