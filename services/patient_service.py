from sqlalchemy.orm import Session

from core.database import get_db_context
from core.errors import ValidationError
from core.logger import get_logger
from core.record_store import RecordStore
from core.time_utils import utc_timestamp
from models import Patient

log = get_logger(__name__)


# ------------------------------------------
# Create or update a patient
# ------------------------------------------
def save_patient(
    name: str,
    *,
    contact: str = "",
    notes: str = "",
    patient_id: int | None = None,
    db: Session | None = None,
):
    if db is None:
        with get_db_context() as _db:
            return save_patient(name, contact=contact, notes=notes, patient_id=patient_id, db=_db)

    name = (name or "").strip()
    if not name:
        raise ValidationError("Nome obrigatório.")

    store = RecordStore(db)
    existing = store.get("patients", patient_id) if patient_id is not None else None

    patient = Patient(
        id=patient_id,
        name=name,
        contact=(contact or "").strip(),
        notes=(notes or "").strip(),
        created_at=existing.created_at if existing else utc_timestamp(),
        updated_at=utc_timestamp(),
    )

    if patient_id is None:
        store.insert("patients", patient)
        log.info("Patient %s created", patient.id)
        return patient

    return store.put("patients", patient)


# ------------------------------------------
# Fetch patients
# ------------------------------------------
def list_patients(db: Session | None = None):
    """All patients sorted by name."""
    if db is None:
        with get_db_context() as _db:
            return list_patients(db=_db)

    patients = RecordStore(db).all("patients")
    return sorted(patients, key=lambda p: (p.name or "").lower())


def get_patient(patient_id: int, db: Session | None = None):
    if db is None:
        with get_db_context() as _db:
            return get_patient(patient_id, db=_db)
    return RecordStore(db).get("patients", patient_id)


def search_patients(query: str, db: Session | None = None):
    q = (query or "").strip().lower()
    patients = list_patients(db=db)
    if not q:
        return patients
    return [p for p in patients if q in (p.name or "").lower() or q in (p.contact or "").lower()]


def patient_names(db: Session | None = None) -> list[str]:
    """Distinct names for the appointment form suggestions."""
    seen = []
    for p in list_patients(db=db):
        if p.name not in seen:
            seen.append(p.name)
    return seen


# ------------------------------------------
# Delete a patient
# ------------------------------------------
def delete_patient(patient_id: int, db: Session | None = None) -> None:
    """Appointments and documents keep their own copy of the name and stay."""
    if db is None:
        with get_db_context() as _db:
            return delete_patient(patient_id, db=_db)

    RecordStore(db).delete("patients", patient_id)
    log.info("Patient %s deleted", patient_id)
