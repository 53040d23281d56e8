from datetime import date

import pytest

from core.errors import ValidationError
from core.record_store import RecordStore
from services.appointment_service import (
    add_procedure,
    days_with_appointments,
    delete_appointment,
    get_appointment,
    list_day,
    new_appointment,
    remove_procedure,
    save_appointment,
)
from services.document_service import confirm, save_draft, trash
from tests.conftest import make_appointment


def test_new_appointment_is_not_stored(db):
    appt = new_appointment(date(2024, 5, 2))

    assert appt.id is None
    assert appt.status == "planned"
    assert appt.procedures == []
    assert list_day(date(2024, 5, 2), db=db) == []


def test_save_requires_patient_name(db):
    appt = new_appointment(date(2024, 5, 2))
    appt.patient_name = "   "

    with pytest.raises(ValidationError):
        save_appointment(appt, db=db)
    assert RecordStore(db).all("appointments") == []


def test_save_rejects_unknown_status(db):
    appt = new_appointment(date(2024, 5, 2))
    appt.patient_name = "Lúcia"
    appt.status = "cancelado"

    with pytest.raises(ValidationError):
        save_appointment(appt, db=db)


def test_save_inserts_then_updates_same_record(db):
    appt = new_appointment(date(2024, 5, 2))
    appt.patient_name = "  Lúcia Prado "
    saved = save_appointment(appt, db=db)

    assert saved.id is not None
    assert saved.patient_name == "Lúcia Prado"

    saved.status = "done"
    saved.ficha = "Restauração classe II"
    updated = save_appointment(saved, db=db)
    db.expire_all()

    assert updated.id == saved.id
    stored = get_appointment(saved.id, db=db)
    assert stored.status == "done"
    assert stored.ficha == "Restauração classe II"
    assert len(RecordStore(db).all("appointments")) == 1


def test_procedures_edit_in_memory_and_persist_on_save(db, appointment):
    add_procedure(appointment, "Limpeza")
    add_procedure(appointment, "   ")
    add_procedure(appointment, "Raspagem")
    add_procedure(appointment, "Clareamento")
    remove_procedure(appointment, 1)
    remove_procedure(appointment, 10)
    remove_procedure(appointment, -1)

    assert appointment.procedures == ["Limpeza", "Clareamento"]

    save_appointment(appointment, db=db)
    db.expire_all()
    assert get_appointment(appointment.id, db=db).procedures == ["Limpeza", "Clareamento"]


def test_delete_removes_only_drafts(db, appointment):
    save_draft(appointment, "receipt", "rascunho", db=db)
    kept = confirm(appointment, "receipt", "confirmado", db=db)
    binned = confirm(appointment, "certificate", "atestado", db=db)
    trash(binned, db=db)

    removed = delete_appointment(appointment.id, db=db)

    assert removed == 1
    assert get_appointment(appointment.id, db=db) is None
    remaining = RecordStore(db).find("documents", "appointment_id", appointment.id)
    assert sorted(d.id for d in remaining) == sorted([kept.id, binned.id])
    assert {d.status for d in remaining} == {"confirmed", "trashed"}


def test_delete_missing_appointment_is_harmless(db):
    assert delete_appointment(12345, db=db) == 0


def test_list_day_orders_by_time_then_name(db, profile):
    day = date(2024, 6, 3)
    make_appointment(db, day, "bruno", "14:00")
    make_appointment(db, day, "Ana", "14:00")
    make_appointment(db, day, "Carlos", "09:30")
    make_appointment(db, day, "Sem horário", "")
    make_appointment(db, date(2024, 6, 4), "Outro dia", "08:00")

    names = [a.patient_name for a in list_day(day, db=db)]

    assert names == ["Sem horário", "Carlos", "Ana", "bruno"]


def test_days_with_appointments_covers_whole_month(db, profile):
    make_appointment(db, date(2024, 2, 1), "A")
    make_appointment(db, date(2024, 2, 29), "B")
    make_appointment(db, date(2024, 2, 29), "C")
    make_appointment(db, date(2024, 3, 1), "D")

    assert days_with_appointments(2024, 2, db=db) == {date(2024, 2, 1), date(2024, 2, 29)}
    assert days_with_appointments(2024, 4, db=db) == set()


def test_documents_keep_patient_name_after_appointment_rename(db, appointment):
    doc = confirm(appointment, "report", "Laudo", db=db)

    appointment.patient_name = "Maria Silva Souza"
    save_appointment(appointment, db=db)
    db.expire_all()

    assert RecordStore(db).get("documents", doc.id).patient_name == "Maria Silva"
