"""
Generic record store over the four persisted collections.

Every write commits on its own: there are no transactions spanning several
collections, so a multi-step operation interrupted halfway leaves the earlier
steps in place.
"""

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import StorageError
from core.logger import get_logger
from models import Appointment, Document, Patient, Setting

log = get_logger(__name__)

COLLECTIONS = {
    "settings": Setting,
    "patients": Patient,
    "appointments": Appointment,
    "documents": Document,
}

# Fields that support find(); each is backed by a database index
INDEXES = {
    "settings": (),
    "patients": ("name",),
    "appointments": ("date", "patient_name"),
    "documents": ("date", "patient_name", "type", "status", "appointment_id"),
}

_ANY = object()


def _pk_name(model) -> str:
    return model.__mapper__.primary_key[0].key


class RecordStore:
    def __init__(self, db: Session):
        self.db = db

    def _model(self, collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _check(self, collection: str, record):
        model = self._model(collection)
        if not isinstance(record, model):
            raise TypeError(f"{collection} stores {model.__name__}, got {type(record).__name__}")
        return model

    @contextmanager
    def _guard(self, action: str, collection: str, write: bool = False):
        try:
            yield
            if write:
                self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            log.error("Storage failure during %s on %s: %s", action, collection, exc)
            raise StorageError(f"Could not {action} {collection}.") from exc

    # ------------------------------------------
    # Writes
    # ------------------------------------------
    def insert(self, collection: str, record):
        """Store a new record and return its generated id."""
        model = self._check(collection, record)
        pk = _pk_name(model)
        if pk == "id":
            record.id = None
        with self._guard("insert", collection, write=True):
            self.db.add(record)
        return getattr(record, pk)

    def put(self, collection: str, record):
        """Upsert by id, replacing every stored field. Returns the stored record."""
        model = self._check(collection, record)
        if getattr(record, _pk_name(model)) is None:
            raise ValueError(f"put on {collection} requires an id")
        with self._guard("update", collection, write=True):
            stored = self.db.merge(record)
        return stored

    def delete(self, collection: str, record_id) -> None:
        """Delete by id. Missing ids are ignored."""
        model = self._model(collection)
        with self._guard("delete", collection, write=True):
            record = self.db.get(model, record_id)
            if record is not None:
                self.db.delete(record)

    def clear(self, collection: str) -> int:
        model = self._model(collection)
        with self._guard("clear", collection, write=True):
            count = self.db.query(model).delete()
        return count

    # ------------------------------------------
    # Reads
    # ------------------------------------------
    def get(self, collection: str, record_id):
        model = self._model(collection)
        with self._guard("read", collection):
            return self.db.get(model, record_id)

    def all(self, collection: str) -> list:
        model = self._model(collection)
        with self._guard("read", collection):
            return self.db.query(model).all()

    def find(self, collection: str, field: str, value=_ANY, *, lower=None, upper=None) -> list:
        """Records whose indexed `field` equals `value` or lies in [lower, upper].

        Either bound may be omitted. The result is unordered.
        """
        model = self._model(collection)
        if field not in INDEXES[collection]:
            raise ValueError(f"{collection}.{field} is not indexed")

        column = getattr(model, field)
        query = self.db.query(model)
        if value is not _ANY:
            query = query.filter(column == value)
        if lower is not None:
            query = query.filter(column >= lower)
        if upper is not None:
            query = query.filter(column <= upper)

        with self._guard("query", collection):
            return query.all()
