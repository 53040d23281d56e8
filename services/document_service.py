"""
Clinical document lifecycle
---------------------------------
    draft ──confirm──▶ confirmed ──trash──▶ trashed ──restore──▶ confirmed
                                               └──purge──▶ (gone)

A draft is scratch state tied to an appointment. Confirmation never promotes
the draft: it inserts a new confirmed row with a freshly captured snapshot of
the practitioner profile, and that row's content and snapshot are never
rewritten afterwards. Only confirmed rows are the official record.
"""

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.orm import Session

from core.database import get_db_context
from core.errors import (
    EmptyDocumentError,
    InvalidTransitionError,
    TrashDisabledError,
    ValidationError,
)
from core.logger import get_logger
from core.record_store import RecordStore
from core.time_utils import utc_timestamp
from models import Appointment, Document, DOCUMENT_TYPES, DRAFT, CONFIRMED, TRASHED
from services.appointment_service import save_appointment
from services.profile_service import get_profile, snapshot

log = get_logger(__name__)

# Types that may be confirmed with an empty body without asking
EMPTY_BODY_ALLOWED = {"prescription"}


@dataclass
class DocumentFilter:
    """Listing filter. Empty fields impose no constraint."""

    type: str | None = None
    patient: str = ""
    date_from: date | None = None
    date_to: date | None = None

    def matches(self, doc: Document) -> bool:
        if self.type and doc.type != self.type:
            return False
        needle = (self.patient or "").strip().lower()
        if needle and needle not in (doc.patient_name or "").lower():
            return False
        if self.date_from and (doc.date is None or doc.date < self.date_from):
            return False
        if self.date_to and (doc.date is None or doc.date > self.date_to):
            return False
        return True


def _check_type(doc_type: str) -> None:
    if doc_type not in DOCUMENT_TYPES:
        raise ValidationError(f"Tipo de documento inválido: {doc_type}")


def _ensure_saved(appointment: Appointment, db: Session) -> Appointment:
    """Documents need the appointment id, so an unsaved appointment is saved first."""
    if appointment.id is None:
        return save_appointment(appointment, db=db)
    return appointment


def _newest_first(doc: Document):
    return (doc.date or date.min, doc.created_at or datetime.min, doc.id or 0)


# ------------------------------------------
# Drafts
# ------------------------------------------
def latest_draft(appointment_id: int, db: Session | None = None) -> Document | None:
    """Most recently updated draft of the appointment (highest id on ties).

    Stale duplicate drafts may exist; only this one is surfaced.
    """
    if db is None:
        with get_db_context() as _db:
            return latest_draft(appointment_id, db=_db)

    if appointment_id is None:
        return None
    drafts = [
        d for d in RecordStore(db).find("documents", "appointment_id", appointment_id)
        if d.status == DRAFT
    ]
    if not drafts:
        return None
    return max(drafts, key=lambda d: (d.updated_at or datetime.min, d.id))


def save_draft(appointment: Appointment, doc_type: str, body: str, db: Session | None = None) -> Document:
    """Overwrite the appointment's current draft, or create one."""
    if db is None:
        with get_db_context() as _db:
            return save_draft(appointment, doc_type, body, db=_db)

    _check_type(doc_type)
    appointment = _ensure_saved(appointment, db)
    store = RecordStore(db)
    now = utc_timestamp()
    captured = snapshot(get_profile(db=db))

    draft = latest_draft(appointment.id, db=db)
    if draft is None:
        draft = Document(
            appointment_id=appointment.id,
            type=doc_type,
            status=DRAFT,
            date=appointment.date,
            patient_name=appointment.patient_name,
            body=body or "",
            snapshot=captured,
            created_at=now,
            updated_at=now,
        )
        store.insert("documents", draft)
        log.info("Draft %s created for appointment %s", draft.id, appointment.id)
        return draft

    draft.type = doc_type
    draft.body = body or ""
    draft.patient_name = appointment.patient_name
    draft.date = appointment.date
    draft.snapshot = captured
    draft.updated_at = now
    return store.put("documents", draft)


# ------------------------------------------
# Confirmation
# ------------------------------------------
def confirm(
    appointment: Appointment,
    doc_type: str,
    body: str,
    *,
    allow_empty: bool = False,
    db: Session | None = None,
) -> Document:
    """Add a confirmed document to the permanent record.

    Raises EmptyDocumentError for an empty body unless `allow_empty` is set or
    the type is a prescription. Existing drafts are left untouched.
    """
    if db is None:
        with get_db_context() as _db:
            return confirm(appointment, doc_type, body, allow_empty=allow_empty, db=_db)

    _check_type(doc_type)
    body = (body or "").strip()
    if not body and doc_type not in EMPTY_BODY_ALLOWED and not allow_empty:
        raise EmptyDocumentError("Conteúdo vazio. Confirmar mesmo assim?")

    appointment = _ensure_saved(appointment, db)
    now = utc_timestamp()
    document = Document(
        appointment_id=appointment.id,
        type=doc_type,
        status=CONFIRMED,
        date=appointment.date,
        patient_name=appointment.patient_name,
        body=body,
        snapshot=snapshot(get_profile(db=db)),
        created_at=now,
        updated_at=now,
    )
    RecordStore(db).insert("documents", document)
    log.info("Document %s confirmed (%s) for %s", document.id, doc_type, document.patient_name)
    return document


# ------------------------------------------
# Trash / restore / delete
# ------------------------------------------
def _stored(store: RecordStore, document: Document, expected: str) -> Document:
    stored = store.get("documents", document.id) if document.id is not None else None
    if stored is None:
        raise InvalidTransitionError("Documento não encontrado.")
    if stored.status != expected:
        raise InvalidTransitionError(
            f"Documento {stored.id} está '{stored.status}', esperado '{expected}'."
        )
    return stored


def trash(document: Document, db: Session | None = None) -> Document:
    """Move a confirmed document to the trash. Needs the trash feature on."""
    if db is None:
        with get_db_context() as _db:
            return trash(document, db=_db)

    if not get_profile(db=db)["enable_trash"]:
        raise TrashDisabledError("Lixeira desativada: exclua definitivamente.")

    store = RecordStore(db)
    stored = _stored(store, document, CONFIRMED)
    stored.status = TRASHED
    stored.trashed_at = utc_timestamp()
    stored.updated_at = stored.trashed_at
    stored = store.put("documents", stored)
    log.info("Document %s moved to trash", stored.id)
    return stored


def restore(document: Document, db: Session | None = None) -> Document:
    """Bring a trashed document back. trashed_at is kept as history."""
    if db is None:
        with get_db_context() as _db:
            return restore(document, db=_db)

    store = RecordStore(db)
    stored = _stored(store, document, TRASHED)
    stored.status = CONFIRMED
    stored.updated_at = utc_timestamp()
    stored = store.put("documents", stored)
    log.info("Document %s restored", stored.id)
    return stored


def purge(document: Document, db: Session | None = None) -> None:
    """Permanently delete a trashed document."""
    if db is None:
        with get_db_context() as _db:
            return purge(document, db=_db)

    store = RecordStore(db)
    stored = _stored(store, document, TRASHED)
    store.delete("documents", stored.id)
    log.info("Document %s purged", stored.id)


def hard_delete(document: Document, db: Session | None = None) -> None:
    """Permanently delete regardless of status. Used when the trash is off."""
    if db is None:
        with get_db_context() as _db:
            return hard_delete(document, db=_db)

    RecordStore(db).delete("documents", document.id)
    log.info("Document %s deleted", document.id)


def _deletion_strategy(profile: dict):
    return trash if profile["enable_trash"] else hard_delete


def delete_document(document: Document, db: Session | None = None):
    """Delete the way the profile says: to the trash when enabled, for good otherwise."""
    if db is None:
        with get_db_context() as _db:
            return delete_document(document, db=_db)

    strategy = _deletion_strategy(get_profile(db=db))
    return strategy(document, db=db)


def empty_trash(db: Session | None = None) -> int:
    """Purge every trashed document. Returns how many were removed."""
    if db is None:
        with get_db_context() as _db:
            return empty_trash(db=_db)

    store = RecordStore(db)
    trashed = store.find("documents", "status", TRASHED)
    for d in trashed:
        store.delete("documents", d.id)
    log.info("Trash emptied (%d document(s))", len(trashed))
    return len(trashed)


# ------------------------------------------
# Listings
# ------------------------------------------
def get_document(document_id: int, db: Session | None = None) -> Document | None:
    if db is None:
        with get_db_context() as _db:
            return get_document(document_id, db=_db)
    return RecordStore(db).get("documents", document_id)


def _list(status: str, filters: DocumentFilter | None, db: Session) -> list[Document]:
    filters = filters or DocumentFilter()
    docs = [d for d in RecordStore(db).find("documents", "status", status) if filters.matches(d)]
    return sorted(docs, key=_newest_first, reverse=True)


def list_confirmed(filters: DocumentFilter | None = None, db: Session | None = None) -> list[Document]:
    """Official record, newest date first, then newest creation."""
    if db is None:
        with get_db_context() as _db:
            return list_confirmed(filters, db=_db)
    return _list(CONFIRMED, filters, db)


def list_trashed(filters: DocumentFilter | None = None, db: Session | None = None) -> list[Document]:
    """Trashed documents; always empty while the trash feature is off."""
    if db is None:
        with get_db_context() as _db:
            return list_trashed(filters, db=_db)

    if not get_profile(db=db)["enable_trash"]:
        return []
    return _list(TRASHED, filters, db)


# ------------------------------------------
# Starter text per document type
# ------------------------------------------
def default_body(doc_type: str, appointment: Appointment | None = None) -> str:
    name = appointment.patient_name if appointment and appointment.patient_name else "_" * 32
    procedures = list(appointment.procedures or []) if appointment else []
    proc_lines = "\n".join(f"- {p}" for p in procedures) if procedures else "- " + "_" * 34

    if doc_type == "prescription":
        return "\n\n\n"
    if doc_type == "certificate":
        return (
            f"Atesto para os devidos fins que {name} esteve sob meus cuidados "
            "profissionais nesta data.\n\n"
            "Recomenda-se afastamento por ____ dia(s), a contar de ____/____/____.\n"
        )
    if doc_type == "receipt":
        return (
            f"Recebi de {name} a quantia de R$ ____________, referente a: "
            "________________________________.\n\n"
            "Forma de pagamento: ___________________.\n"
        )
    if doc_type == "estimate":
        return f"Orçamento para {name}:\n\n{proc_lines}\n\nValor total: R$ ____________\nValidade: ____ dias.\n"
    if doc_type == "report":
        return f"Laudo clínico referente a {name}:\n\nDescrever achados, exames, hipótese diagnóstica e conduta.\n"
    if doc_type == "clinical-record":
        return (
            f"Ficha clínica (resumo) de {name}:\n\n"
            "Queixa principal: _______________________\n"
            "Histórico: ______________________________\n"
            "Observações: ____________________________\n"
        )
    return ""
