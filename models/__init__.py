from .setting import Setting
from .patient import Patient
from .appointment import Appointment, APPOINTMENT_STATUSES, STATUS_LABELS
from .document import Document, DOCUMENT_TYPES, DOCUMENT_LABELS, DRAFT, CONFIRMED, TRASHED

__all__ = [
    "Setting",
    "Patient",
    "Appointment",
    "APPOINTMENT_STATUSES",
    "STATUS_LABELS",
    "Document",
    "DOCUMENT_TYPES",
    "DOCUMENT_LABELS",
    "DRAFT",
    "CONFIRMED",
    "TRASHED",
]
