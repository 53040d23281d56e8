from sqlalchemy.orm import Session

from core.database import get_db_context
from core.record_store import RecordStore
from models import CONFIRMED, DOCUMENT_LABELS


def search(query: str, limit: int = 5, db: Session | None = None) -> dict:
    """Quick search across appointments and confirmed documents.

    Appointments match on patient name, notes or any procedure; documents on
    patient name, body or type. At most `limit` hits of each kind.
    """
    if db is None:
        with get_db_context() as _db:
            return search(query, limit=limit, db=_db)

    q = (query or "").strip().lower()
    if not q:
        return {"appointments": [], "documents": []}

    store = RecordStore(db)

    appointments = [
        a for a in store.all("appointments")
        if q in (a.patient_name or "").lower()
        or q in (a.notes or "").lower()
        or any(q in (p or "").lower() for p in (a.procedures or []))
    ]
    appointments.sort(key=lambda a: (a.date, a.time or ""), reverse=True)

    documents = [
        d for d in store.find("documents", "status", CONFIRMED)
        if q in (d.patient_name or "").lower()
        or q in (d.body or "").lower()
        or q in (d.type or "").lower()
        or q in DOCUMENT_LABELS.get(d.type, "").lower()
    ]
    documents.sort(key=lambda d: (d.date, d.id), reverse=True)

    return {"appointments": appointments[:limit], "documents": documents[:limit]}
