"""Tests for the draft / confirmed / trashed document lifecycle."""
from datetime import date, timedelta

import pytest

from core.errors import EmptyDocumentError, InvalidTransitionError, TrashDisabledError, ValidationError
from core.record_store import RecordStore
from core.time_utils import utc_timestamp
from models import Document
from services.appointment_service import new_appointment
from services.document_service import (
    DocumentFilter,
    confirm,
    default_body,
    delete_document,
    empty_trash,
    get_document,
    latest_draft,
    list_confirmed,
    list_trashed,
    purge,
    restore,
    save_draft,
    trash,
)
from services.profile_service import get_profile, save_profile
from tests.conftest import make_appointment


def _documents(db, status=None):
    docs = RecordStore(db).all("documents")
    return [d for d in docs if status is None or d.status == status]


def _disable_trash(db):
    profile = get_profile(db=db)
    profile["enable_trash"] = False
    save_profile(profile, db=db)


# ------------------------------------------
# Drafts
# ------------------------------------------
def test_save_draft_twice_keeps_one_row_with_latest_body(db, appointment):
    save_draft(appointment, "receipt", "primeira versão", db=db)
    save_draft(appointment, "estimate", "segunda versão", db=db)

    drafts = _documents(db, "draft")
    assert len(drafts) == 1
    assert drafts[0].body == "segunda versão"
    assert drafts[0].type == "estimate"


def test_save_draft_saves_unsaved_appointment_first(db, profile):
    appt = new_appointment(date(2024, 7, 1))
    appt.patient_name = "Rafael Lima"

    draft = save_draft(appt, "report", "texto", db=db)

    assert appt.id is not None
    assert draft.appointment_id == appt.id
    assert draft.snapshot["name"] == "Ana Paula Ferreira"


def test_save_draft_without_patient_writes_nothing(db, profile):
    appt = new_appointment(date(2024, 7, 1))

    with pytest.raises(ValidationError):
        save_draft(appt, "report", "texto", db=db)
    assert _documents(db) == []
    assert RecordStore(db).all("appointments") == []


def test_unknown_type_is_rejected(db, appointment):
    with pytest.raises(ValidationError):
        save_draft(appointment, "invoice", "x", db=db)


def test_latest_draft_picks_most_recently_updated(db, appointment):
    store = RecordStore(db)
    now = utc_timestamp()
    for body, age in (("velho", 60), ("novo", 0), ("médio", 30)):
        store.insert("documents", Document(
            appointment_id=appointment.id, type="receipt", status="draft",
            date=appointment.date, patient_name=appointment.patient_name, body=body,
            snapshot={}, created_at=now, updated_at=now - timedelta(seconds=age),
        ))

    assert latest_draft(appointment.id, db=db).body == "novo"

    save_draft(appointment, "receipt", "editado", db=db)
    bodies = sorted(d.body for d in _documents(db, "draft"))
    assert bodies == ["editado", "médio", "velho"]


def test_latest_draft_ignores_confirmed(db, appointment):
    confirm(appointment, "receipt", "oficial", db=db)
    assert latest_draft(appointment.id, db=db) is None


# ------------------------------------------
# Confirmation
# ------------------------------------------
def test_draft_then_confirm_end_to_end(db, profile):
    appt = make_appointment(db, date(2024, 3, 10), "Maria Silva")
    draft = save_draft(appt, "receipt", "Amoxicilina 500mg", db=db)
    confirm(appt, "receipt", "Amoxicilina 500mg", db=db)

    confirmed = list_confirmed(db=db)
    assert len(confirmed) == 1
    doc = confirmed[0]
    assert doc.patient_name == "Maria Silva"
    assert doc.type == "receipt"
    assert doc.date == date(2024, 3, 10)
    assert doc.status == "confirmed"

    drafts = _documents(db, "draft")
    assert [d.id for d in drafts] == [draft.id]
    assert drafts[0].id != doc.id


def test_confirm_leaves_draft_untouched(db, appointment):
    draft = save_draft(appointment, "certificate", "rascunho original", db=db)
    before = (draft.id, draft.type, draft.body, draft.updated_at, dict(draft.snapshot))

    confirm(appointment, "receipt", "outro texto", db=db)
    db.expire_all()

    stored = get_document(draft.id, db=db)
    assert (stored.id, stored.type, stored.body, stored.updated_at, stored.snapshot) == before
    assert stored.status == "draft"


def test_confirm_strips_body(db, appointment):
    doc = confirm(appointment, "report", "  \n Laudo \n\n", db=db)
    assert doc.body == "Laudo"


def test_empty_body_needs_override_except_prescription(db, appointment):
    with pytest.raises(EmptyDocumentError):
        confirm(appointment, "certificate", "   \n", db=db)
    assert _documents(db) == []

    assert confirm(appointment, "certificate", "", allow_empty=True, db=db).body == ""
    assert confirm(appointment, "prescription", "\n\n\n", db=db).body == ""


def test_snapshot_is_frozen_at_confirmation(db, appointment):
    doc = confirm(appointment, "receipt", "R$ 200,00", db=db)

    profile = get_profile(db=db)
    profile["name"] = "Outro Nome"
    profile["cro"] = "CRO-RJ 1"
    save_profile(profile, db=db)
    db.expire_all()

    stored = get_document(doc.id, db=db)
    assert stored.snapshot["name"] == "Ana Paula Ferreira"
    assert stored.snapshot["cro"] == "CRO-SP 12345"


# ------------------------------------------
# Trash
# ------------------------------------------
def test_trash_and_restore_round_trip(db, appointment):
    doc = confirm(appointment, "estimate", "Implante", db=db)
    before = (doc.type, doc.body, dict(doc.snapshot))

    trashed = trash(doc, db=db)
    assert trashed.status == "trashed"
    assert trashed.trashed_at is not None
    assert [d.id for d in list_trashed(db=db)] == [doc.id]
    assert list_confirmed(db=db) == []

    restored = restore(doc, db=db)
    db.expire_all()
    stored = get_document(doc.id, db=db)
    assert restored.status == "confirmed"
    assert (stored.type, stored.body, stored.snapshot) == before
    assert stored.trashed_at is not None
    assert [d.id for d in list_confirmed(db=db)] == [doc.id]
    assert list_trashed(db=db) == []


def test_status_partitions_listings(db, appointment):
    a = confirm(appointment, "receipt", "a", db=db)
    b = confirm(appointment, "receipt", "b", db=db)
    save_draft(appointment, "receipt", "rascunho", db=db)
    trash(b, db=db)

    confirmed_ids = {d.id for d in list_confirmed(db=db)}
    trashed_ids = {d.id for d in list_trashed(db=db)}
    assert confirmed_ids == {a.id}
    assert trashed_ids == {b.id}


def test_trash_requires_feature_flag(db, appointment):
    doc = confirm(appointment, "receipt", "x", db=db)
    _disable_trash(db)

    with pytest.raises(TrashDisabledError):
        trash(doc, db=db)


def test_trash_listing_empty_when_disabled(db, appointment):
    doc = confirm(appointment, "receipt", "x", db=db)
    trash(doc, db=db)
    _disable_trash(db)

    assert list_trashed(db=db) == []
    assert len(_documents(db, "trashed")) == 1


def test_invalid_transitions(db, appointment):
    doc = confirm(appointment, "receipt", "x", db=db)
    draft = save_draft(appointment, "receipt", "y", db=db)

    with pytest.raises(InvalidTransitionError):
        restore(doc, db=db)
    with pytest.raises(InvalidTransitionError):
        purge(doc, db=db)
    with pytest.raises(InvalidTransitionError):
        trash(draft, db=db)

    trash(doc, db=db)
    with pytest.raises(InvalidTransitionError):
        trash(doc, db=db)


def test_purge_removes_trashed_document(db, appointment):
    doc = confirm(appointment, "receipt", "x", db=db)
    trash(doc, db=db)
    purge(doc, db=db)

    assert get_document(doc.id, db=db) is None


def test_delete_document_follows_trash_flag(db, appointment):
    soft = confirm(appointment, "receipt", "soft", db=db)
    delete_document(soft, db=db)
    assert get_document(soft.id, db=db).status == "trashed"

    _disable_trash(db)
    hard = confirm(appointment, "receipt", "hard", db=db)
    delete_document(hard, db=db)
    assert get_document(hard.id, db=db) is None


def test_empty_trash_purges_only_trashed(db, appointment):
    kept = confirm(appointment, "receipt", "fica", db=db)
    for body in ("um", "dois"):
        trash(confirm(appointment, "receipt", body, db=db), db=db)

    assert empty_trash(db=db) == 2
    assert [d.id for d in _documents(db)] == [kept.id]


# ------------------------------------------
# Listings
# ------------------------------------------
@pytest.fixture
def spread(db, profile):
    """Confirmed documents on several days for two patients."""
    docs = {}
    for day, name, doc_type in (
        (date(2024, 1, 5), "Maria Silva", "receipt"),
        (date(2024, 1, 20), "João Pereira", "certificate"),
        (date(2024, 2, 2), "maria silva", "estimate"),
        (date(2024, 2, 28), "João Pereira", "receipt"),
    ):
        appt = make_appointment(db, day, name)
        docs[day] = confirm(appt, doc_type, "texto", db=db)
    return docs


def test_date_range_is_inclusive(db, spread):
    result = list_confirmed(DocumentFilter(date_from=date(2024, 1, 20), date_to=date(2024, 2, 2)), db=db)
    assert [d.date for d in result] == [date(2024, 2, 2), date(2024, 1, 20)]


def test_open_ended_date_bounds(db, spread):
    from_only = list_confirmed(DocumentFilter(date_from=date(2024, 2, 1)), db=db)
    to_only = list_confirmed(DocumentFilter(date_to=date(2024, 1, 31)), db=db)

    assert {d.date for d in from_only} == {date(2024, 2, 2), date(2024, 2, 28)}
    assert {d.date for d in to_only} == {date(2024, 1, 5), date(2024, 1, 20)}
    assert len(list_confirmed(DocumentFilter(), db=db)) == 4


def test_patient_and_type_filters(db, spread):
    by_name = list_confirmed(DocumentFilter(patient="MARIA"), db=db)
    by_type = list_confirmed(DocumentFilter(type="receipt"), db=db)
    both = list_confirmed(DocumentFilter(type="receipt", patient="joão"), db=db)

    assert {d.date for d in by_name} == {date(2024, 1, 5), date(2024, 2, 2)}
    assert {d.date for d in by_type} == {date(2024, 1, 5), date(2024, 2, 28)}
    assert [d.date for d in both] == [date(2024, 2, 28)]


def test_listing_newest_first(db, appointment):
    first = confirm(appointment, "receipt", "1", db=db)
    second = confirm(appointment, "receipt", "2", db=db)

    assert [d.id for d in list_confirmed(db=db)] == [second.id, first.id]


# ------------------------------------------
# Starter text
# ------------------------------------------
def test_default_body_uses_patient_and_procedures(appointment):
    appointment.procedures = ["Limpeza", "Extração"]

    assert default_body("prescription", appointment) == "\n\n\n"
    assert "Maria Silva" in default_body("certificate", appointment)
    estimate = default_body("estimate", appointment)
    assert "- Limpeza\n- Extração" in estimate
    assert default_body("clinical-record", None).startswith("Ficha clínica")
