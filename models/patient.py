# models/patient.py

from sqlalchemy import Column, Integer, String, Text, DateTime
from core.database import Base
from core.time_utils import utc_timestamp


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Not unique: two patients may share a name
    name = Column(String, nullable=False, index=True)

    contact = Column(String, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, default=utc_timestamp)
    updated_at = Column(DateTime, default=utc_timestamp)

    def __repr__(self):
        return f"<Patient {self.id} - {self.name}>"
