"""
Pytest configuration for the entire test suite.

Every test gets a fresh in-memory SQLite database with all tables created.
Services are called with that session passed explicitly.
"""
import os

# Must be set before core.config is imported
os.environ.setdefault("AGENDA_DATABASE_URL", "sqlite://")
os.environ.setdefault("AGENDA_LOG_TO_FILE", "0")

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  (registers tables)
from core.database import Base
from services.appointment_service import new_appointment, save_appointment
from services.profile_service import save_profile


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def profile(db):
    """A filled-in practitioner profile with the trash enabled."""
    return save_profile(
        {
            "name": "Ana Paula Ferreira",
            "cro": "CRO-SP 12345",
            "title": "Cirurgiã-Dentista",
            "specialty": "Endodontia",
            "address": "Rua das Flores, 100\nSão Paulo - SP",
            "phone": "(11) 98765-4321",
            "whatsapp": "+55 (11) 98765-4321",
            "show_phone_in_pdf": True,
            "enable_trash": True,
        },
        db=db,
    )


@pytest.fixture
def appointment(db, profile):
    """Saved appointment for Maria Silva on 2024-03-10."""
    appt = new_appointment(date(2024, 3, 10))
    appt.patient_name = "Maria Silva"
    return save_appointment(appt, db=db)


def make_appointment(db, day: date, name: str, time: str = ""):
    appt = new_appointment(day)
    appt.patient_name = name
    appt.time = time
    return save_appointment(appt, db=db)
