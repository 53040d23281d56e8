"""
Backup export / import.

Wire format (version 1), kept compatible with backups produced by earlier
versions of the agenda:

    {
      "exportedAt": "...", "version": 1,
      "profile": {...}, "patients": [...], "appointments": [...], "documents": [...]
    }

Import merges: records carrying an id are upserted by id, records without one
are inserted, the profile is replaced. Nothing absent from the file is
deleted, so re-running an interrupted import is safe.
"""

import json
from datetime import date

from sqlalchemy.orm import Session

from core.database import get_db_context
from core.errors import BackupImportError
from core.logger import get_logger
from core.record_store import RecordStore
from core.time_utils import now_utc, parse_date, parse_timestamp
from models import Appointment, Document, Patient, DOCUMENT_TYPES, APPOINTMENT_STATUSES
from services.profile_service import get_profile, save_profile

log = get_logger(__name__)

BACKUP_VERSION = 1

# attribute -> wire key
PROFILE_WIRE = {
    "name": "name",
    "cro": "cro",
    "title": "title",
    "specialty": "spec",
    "address": "address",
    "phone": "phone",
    "whatsapp": "whatsapp",
    "whatsapp_message": "whatsappMsg",
    "show_phone_in_pdf": "showPhoneInPdf",
    "enable_trash": "enableTrash",
}

PATIENT_WIRE = {
    "id": "id",
    "name": "name",
    "contact": "contact",
    "notes": "notes",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

APPOINTMENT_WIRE = {
    "id": "id",
    "date": "date",
    "time": "time",
    "patient_name": "patientName",
    "status": "status",
    "ficha": "ficha",
    "procedures": "procedures",
    "notes": "notes",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

DOCUMENT_WIRE = {
    "id": "id",
    "appointment_id": "appointmentId",
    "type": "type",
    "status": "status",
    "date": "date",
    "patient_name": "patientName",
    "body": "body",
    "snapshot": "snapshot",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "trashed_at": "trashedAt",
}

# Values written by the first, Portuguese-keyed releases
LEGACY_STATUSES = {"planejado": "planned", "realizado": "done", "faltou": "no-show", "remarcado": "rescheduled"}
LEGACY_TYPES = {
    "receita": "prescription",
    "atestado": "certificate",
    "recibo": "receipt",
    "orcamento": "estimate",
    "laudo": "report",
    "ficha": "clinical-record",
}

DATE_FIELDS = {"date"}
TIMESTAMP_FIELDS = {"created_at", "updated_at", "trashed_at"}
TEXT_FIELDS = {"name", "contact", "patient_name", "type", "status", "body", "time", "ficha", "notes"}


# ------------------------------------------
# Encoding
# ------------------------------------------
def _encode_value(attr, value):
    if value is None:
        return None
    if attr in TIMESTAMP_FIELDS or attr in DATE_FIELDS:
        return value.isoformat()
    if attr == "snapshot":
        return profile_to_wire(value)
    return value


def _to_wire(record, mapping: dict) -> dict:
    return {wire: _encode_value(attr, getattr(record, attr)) for attr, wire in mapping.items()}


def profile_to_wire(profile: dict) -> dict:
    return {wire: profile[attr] for attr, wire in PROFILE_WIRE.items() if attr in profile}


def profile_from_wire(data: dict) -> dict:
    profile = {}
    for attr, wire in PROFILE_WIRE.items():
        if wire in data:
            profile[attr] = data[wire]
        elif attr in data:
            profile[attr] = data[attr]
    return profile


# ------------------------------------------
# Decoding
# ------------------------------------------
def _read(item: dict, attr: str, wire: str):
    if wire in item:
        return item[wire]
    return item.get(attr)


def _decode(item, mapping: dict, kind: str) -> dict:
    if not isinstance(item, dict):
        raise BackupImportError(f"Registro inválido em {kind}: {item!r}")

    values = {}
    for attr, wire in mapping.items():
        value = _read(item, attr, wire)
        try:
            if attr in DATE_FIELDS:
                value = parse_date(value)
            elif attr in TIMESTAMP_FIELDS:
                value = parse_timestamp(value)
        except (TypeError, ValueError) as exc:
            raise BackupImportError(f"Data inválida em {kind}: {value!r}") from exc
        if attr in TEXT_FIELDS and value is not None and not isinstance(value, str):
            raise BackupImportError(f"Campo '{wire}' inválido em {kind}: {value!r}")
        values[attr] = value

    for key in ("id", "appointment_id"):
        if values.get(key) is not None and not isinstance(values[key], int):
            raise BackupImportError(f"Id inválido em {kind}: {values[key]!r}")
    return values


def _patient(item) -> Patient:
    v = _decode(item, PATIENT_WIRE, "patients")
    if not (v["name"] or "").strip():
        raise BackupImportError("Paciente sem nome no backup.")
    v["contact"] = v["contact"] or ""
    v["notes"] = v["notes"] or ""
    return Patient(**v)


def _appointment(item) -> Appointment:
    v = _decode(item, APPOINTMENT_WIRE, "appointments")
    if v["date"] is None:
        raise BackupImportError("Atendimento sem data no backup.")
    status = LEGACY_STATUSES.get(v["status"], v["status"]) or "planned"
    if status not in APPOINTMENT_STATUSES:
        raise BackupImportError(f"Status de atendimento inválido: {status!r}")
    procedures = v["procedures"] or []
    if not isinstance(procedures, list):
        raise BackupImportError("Lista de procedimentos inválida no backup.")
    v.update(
        status=status,
        procedures=[str(p) for p in procedures],
        time=v["time"] or "",
        patient_name=v["patient_name"] or "",
        ficha=v["ficha"] or "",
        notes=v["notes"] or "",
    )
    return Appointment(**v)


def _document(item) -> Document:
    v = _decode(item, DOCUMENT_WIRE, "documents")
    doc_type = LEGACY_TYPES.get(v["type"], v["type"])
    if doc_type not in DOCUMENT_TYPES:
        raise BackupImportError(f"Tipo de documento inválido: {doc_type!r}")
    if v["status"] not in ("draft", "confirmed", "trashed"):
        raise BackupImportError(f"Status de documento inválido: {v['status']!r}")
    snap = v["snapshot"] or {}
    if not isinstance(snap, dict):
        raise BackupImportError("Snapshot inválido no backup.")
    v.update(
        type=doc_type,
        snapshot=profile_from_wire(snap),
        patient_name=v["patient_name"] or "",
        body=v["body"] or "",
    )
    return Document(**v)


def _parse(payload) -> dict:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8-sig")
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise BackupImportError("Arquivo inválido: não é um JSON.") from exc
    if not isinstance(payload, dict):
        raise BackupImportError("Arquivo inválido: esperado um objeto de backup.")
    return payload


def _items(data: dict, key: str) -> list:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise BackupImportError(f"Arquivo inválido: '{key}' deve ser uma lista.")
    return items


# ------------------------------------------
# Public API
# ------------------------------------------
def export_backup(db: Session | None = None) -> dict:
    if db is None:
        with get_db_context() as _db:
            return export_backup(db=_db)

    store = RecordStore(db)

    def dump(collection, mapping):
        records = sorted(store.all(collection), key=lambda r: r.id)
        return [_to_wire(r, mapping) for r in records]

    data = {
        "exportedAt": now_utc().isoformat(),
        "version": BACKUP_VERSION,
        "profile": profile_to_wire(get_profile(db=db)),
        "patients": dump("patients", PATIENT_WIRE),
        "appointments": dump("appointments", APPOINTMENT_WIRE),
        "documents": dump("documents", DOCUMENT_WIRE),
    }
    log.info(
        "Backup exported: %d patient(s), %d appointment(s), %d document(s)",
        len(data["patients"]), len(data["appointments"]), len(data["documents"]),
    )
    return data


def dumps_backup(data: dict) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def backup_filename(today: date | None = None) -> str:
    today = today or now_utc().date()
    return f"backup_agenda_{today.isoformat()}.json"


def import_backup(payload, db: Session | None = None) -> dict:
    """Merge a backup (JSON text, bytes or parsed dict) into the store.

    The whole payload is decoded and validated before the first write.
    Returns the number of records merged per collection.
    """
    if db is None:
        with get_db_context() as _db:
            return import_backup(payload, db=_db)

    data = _parse(payload)
    version = data.get("version", BACKUP_VERSION)
    if version != BACKUP_VERSION:
        raise BackupImportError(f"Versão de backup não suportada: {version!r}")

    profile = data.get("profile")
    if profile is not None and not isinstance(profile, dict):
        raise BackupImportError("Arquivo inválido: perfil malformado.")

    batches = [
        ("patients", [_patient(i) for i in _items(data, "patients")]),
        ("appointments", [_appointment(i) for i in _items(data, "appointments")]),
        ("documents", [_document(i) for i in _items(data, "documents")]),
    ]

    if profile:
        save_profile(profile_from_wire(profile), db=db)

    store = RecordStore(db)
    counts = {}
    for collection, records in batches:
        for record in records:
            if record.id is None:
                store.insert(collection, record)
            else:
                store.put(collection, record)
        counts[collection] = len(records)

    log.info("Backup imported: %s", counts)
    return counts


def wipe_all(db: Session | None = None) -> None:
    """Delete every patient, appointment and document. The profile stays."""
    if db is None:
        with get_db_context() as _db:
            return wipe_all(db=_db)

    store = RecordStore(db)
    for collection in ("patients", "appointments", "documents"):
        store.clear(collection)
    log.warning("All patients, appointments and documents wiped")
