# core/setup_db.py

from core.database import init_db
from services.profile_service import ensure_profile


def main():
    print("Creating database tables...")

    # Create all SQLAlchemy tables
    init_db()

    # Persist the default practitioner profile on first run
    ensure_profile()

    print("Database initialized successfully.")


if __name__ == "__main__":
    main()
