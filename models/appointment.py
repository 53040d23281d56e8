# models/appointment.py

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, JSON
from core.database import Base
from core.time_utils import utc_timestamp

APPOINTMENT_STATUSES = ("planned", "done", "no-show", "rescheduled")

STATUS_LABELS = {
    "planned": "Planejado",
    "done": "Realizado",
    "no-show": "Faltou",
    "rescheduled": "Remarcado",
}


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, autoincrement=True)

    date = Column(Date, nullable=False, index=True)
    # Free text, e.g. "14:30"; empty when the visit has no fixed slot
    time = Column(String, nullable=False, default="")

    # Copy of the patient's name, not a foreign key. Renaming or deleting a
    # Patient never rewrites past appointments.
    patient_name = Column(String, nullable=False, index=True)

    status = Column(String, nullable=False, default="planned")

    # Clinical sheet shown while attending the patient
    ficha = Column(Text, nullable=False, default="")
    # Ordered list of procedure strings. Reassign, never mutate in place:
    # plain JSON columns do not track list mutations.
    procedures = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, default=utc_timestamp)
    updated_at = Column(DateTime, default=utc_timestamp)

    def __repr__(self):
        return f"<Appointment {self.id} {self.date} - {self.patient_name}>"
