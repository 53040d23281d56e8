"""Tests for the generic record store."""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from core.errors import StorageError
from core.record_store import RecordStore
from models import Appointment, Patient, Setting


def _appt(day, name):
    return Appointment(date=day, patient_name=name, time="", status="planned",
                       ficha="", procedures=[], notes="")


def test_insert_returns_new_unique_ids(db):
    store = RecordStore(db)
    first = store.insert("patients", Patient(name="João"))
    second = store.insert("patients", Patient(name="João"))

    assert first != second
    assert {p.id for p in store.all("patients")} == {first, second}


def test_put_replaces_stored_record(db):
    store = RecordStore(db)
    pid = store.insert("patients", Patient(name="Carla", contact="1111", notes="alérgica"))

    store.put("patients", Patient(id=pid, name="Carla Souza", contact="", notes=""))
    db.expire_all()

    stored = store.get("patients", pid)
    assert stored.name == "Carla Souza"
    assert stored.contact == ""
    assert stored.notes == ""


def test_put_without_id_is_rejected(db):
    with pytest.raises(ValueError):
        RecordStore(db).put("patients", Patient(name="Sem id"))


def test_put_rejects_wrong_record_type(db):
    with pytest.raises(TypeError):
        RecordStore(db).put("patients", Setting(key="x", value=1))


def test_delete_is_idempotent(db):
    store = RecordStore(db)
    pid = store.insert("patients", Patient(name="Pedro"))

    store.delete("patients", pid)
    store.delete("patients", pid)
    store.delete("patients", 9999)

    assert store.get("patients", pid) is None


def test_find_by_equality_and_inclusive_range(db):
    store = RecordStore(db)
    for day in (date(2024, 3, 1), date(2024, 3, 10), date(2024, 3, 31), date(2024, 4, 1)):
        store.insert("appointments", _appt(day, "X"))

    assert len(store.find("appointments", "date", date(2024, 3, 10))) == 1

    march = store.find("appointments", "date", lower=date(2024, 3, 1), upper=date(2024, 3, 31))
    assert sorted(a.date.day for a in march) == [1, 10, 31]

    from_mid_march = store.find("appointments", "date", lower=date(2024, 3, 10))
    assert len(from_mid_march) == 3


def test_find_requires_indexed_field(db):
    with pytest.raises(ValueError):
        RecordStore(db).find("appointments", "notes", "x")


def test_unknown_collection(db):
    with pytest.raises(ValueError):
        RecordStore(db).all("invoices")


def test_clear_empties_one_collection_only(db):
    store = RecordStore(db)
    store.insert("patients", Patient(name="A"))
    store.insert("appointments", _appt(date(2024, 1, 1), "A"))

    assert store.clear("patients") == 1
    assert store.all("patients") == []
    assert len(store.all("appointments")) == 1


def test_database_failure_surfaces_as_storage_error(db, monkeypatch):
    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", broken_commit)

    with pytest.raises(StorageError):
        RecordStore(db).insert("patients", Patient(name="Falha"))
