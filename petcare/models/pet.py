"""Pet model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from petcare.database import Base


class Pet(Base):
    """A pet brought to an appointment."""
    __tablename__ = "pets"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), index=True)
    name = Column(String)
    type = Column(String)
    color = Column(String)
    breed = Column(String)
    age = Column(Integer)

    appointment = relationship("Appointment", back_populates="pets")
