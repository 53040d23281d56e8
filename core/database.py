import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from contextlib import contextmanager

from core.config import DATA_DIR, DATABASE_URL

if DATABASE_URL.startswith("sqlite:///"):
    os.makedirs(DATA_DIR, exist_ok=True)

# Create engine
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

# Session factory. Records are handed to Streamlit session state and outlive
# the session that loaded them, so attributes must not expire on commit.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# Base class for all models
Base = declarative_base()


def get_session():
    """Return a raw session. Caller closes it."""
    return SessionLocal()


@contextmanager
def get_db_context():
    """
    Context manager for database sessions.
    Automatically closes session when done.

    Usage:
        with get_db_context() as db:
            result = db.query(Model).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create every table registered on Base."""
    # Importing the models registers them on Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
