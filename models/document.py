# models/document.py

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, JSON
from core.database import Base
from core.time_utils import utc_timestamp

DOCUMENT_TYPES = ("prescription", "certificate", "receipt", "estimate", "report", "clinical-record")

DOCUMENT_LABELS = {
    "prescription": "Receita",
    "certificate": "Atestado",
    "receipt": "Recibo",
    "estimate": "Orçamento",
    "report": "Laudo",
    "clinical-record": "Ficha Clínica",
}

DRAFT = "draft"
CONFIRMED = "confirmed"
TRASHED = "trashed"


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)

    type = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default=DRAFT, index=True)

    # Weak reference: only used to find the current draft of an appointment.
    # Confirmed documents outlive the appointment they came from.
    appointment_id = Column(Integer, nullable=True, index=True)

    date = Column(Date, nullable=True, index=True)
    patient_name = Column(String, nullable=False, default="", index=True)
    body = Column(Text, nullable=False, default="")

    # Frozen practitioner fields used to render this document
    snapshot = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=utc_timestamp)
    updated_at = Column(DateTime, default=utc_timestamp)
    trashed_at = Column(DateTime, nullable=True)

    @property
    def label(self) -> str:
        return DOCUMENT_LABELS.get(self.type, "Documento")

    def __repr__(self):
        return f"<Document {self.id} {self.type}/{self.status} - {self.patient_name}>"
