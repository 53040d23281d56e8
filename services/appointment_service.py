import calendar
from datetime import date

from sqlalchemy.orm import Session

from core.database import get_db_context
from core.errors import ValidationError
from core.logger import get_logger
from core.record_store import RecordStore
from core.time_utils import utc_timestamp
from models import Appointment, APPOINTMENT_STATUSES, DRAFT

log = get_logger(__name__)


# ------------------------------------------
# New, unsaved appointment
# ------------------------------------------
def new_appointment(day: date) -> Appointment:
    """In-memory appointment for `day`. Nothing is stored until save_appointment."""
    now = utc_timestamp()
    return Appointment(
        id=None,
        date=day,
        time="",
        patient_name="",
        status="planned",
        ficha="",
        procedures=[],
        notes="",
        created_at=now,
        updated_at=now,
    )


# ------------------------------------------
# Procedures (in memory, persisted on next save)
# ------------------------------------------
def add_procedure(appointment: Appointment, text: str) -> Appointment:
    text = (text or "").strip()
    if text:
        appointment.procedures = [*(appointment.procedures or []), text]
    return appointment


def remove_procedure(appointment: Appointment, index: int) -> Appointment:
    procedures = list(appointment.procedures or [])
    if 0 <= index < len(procedures):
        procedures.pop(index)
        appointment.procedures = procedures
    return appointment


# ------------------------------------------
# Save
# ------------------------------------------
def save_appointment(appointment: Appointment, db: Session | None = None) -> Appointment:
    """Insert or update `appointment` and return the stored record with its id."""
    if db is None:
        with get_db_context() as _db:
            return save_appointment(appointment, db=_db)

    appointment.patient_name = (appointment.patient_name or "").strip()
    if not appointment.patient_name:
        raise ValidationError("Informe o nome do paciente.")
    if appointment.date is None:
        raise ValidationError("Informe a data do atendimento.")
    if appointment.status not in APPOINTMENT_STATUSES:
        raise ValidationError(f"Status inválido: {appointment.status}")

    appointment.time = (appointment.time or "").strip()
    appointment.ficha = (appointment.ficha or "").strip()
    appointment.notes = (appointment.notes or "").strip()
    appointment.procedures = list(appointment.procedures or [])
    appointment.updated_at = utc_timestamp()
    if appointment.created_at is None:
        appointment.created_at = appointment.updated_at

    store = RecordStore(db)
    if appointment.id is None:
        store.insert("appointments", appointment)
        log.info("Appointment %s created for %s", appointment.id, appointment.date)
        return appointment

    return store.put("appointments", appointment)


# ------------------------------------------
# Delete (drafts go with it, confirmed documents stay)
# ------------------------------------------
def delete_appointment(appointment_id: int, db: Session | None = None) -> int:
    """Delete the appointment and its draft documents. Returns drafts removed.

    Each delete commits on its own; a failure halfway is not rolled back.
    """
    if db is None:
        with get_db_context() as _db:
            return delete_appointment(appointment_id, db=_db)

    store = RecordStore(db)
    drafts = [
        d for d in store.find("documents", "appointment_id", appointment_id)
        if d.status == DRAFT
    ]
    for d in drafts:
        store.delete("documents", d.id)

    store.delete("appointments", appointment_id)
    log.info("Appointment %s deleted with %d draft(s)", appointment_id, len(drafts))
    return len(drafts)


# ------------------------------------------
# Queries
# ------------------------------------------
def get_appointment(appointment_id: int, db: Session | None = None):
    if db is None:
        with get_db_context() as _db:
            return get_appointment(appointment_id, db=_db)
    return RecordStore(db).get("appointments", appointment_id)


def list_day(day: date, db: Session | None = None) -> list[Appointment]:
    """Appointments of `day`, by time then patient name. Untimed ones first."""
    if db is None:
        with get_db_context() as _db:
            return list_day(day, db=_db)

    appointments = RecordStore(db).find("appointments", "date", day)
    return sorted(appointments, key=lambda a: ((a.time or ""), (a.patient_name or "").lower()))


def days_with_appointments(year: int, month: int, db: Session | None = None) -> set[date]:
    """Dates of the month that have at least one appointment (calendar dots)."""
    if db is None:
        with get_db_context() as _db:
            return days_with_appointments(year, month, db=_db)

    last = calendar.monthrange(year, month)[1]
    appointments = RecordStore(db).find(
        "appointments", "date", lower=date(year, month, 1), upper=date(year, month, last)
    )
    return {a.date for a in appointments}
