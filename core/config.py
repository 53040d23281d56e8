import os
from dotenv import load_dotenv

# Path: project_root/.env
BASE_DIR = os.path.dirname(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))

DATA_DIR = os.getenv("AGENDA_DATA_DIR", os.path.join(BASE_DIR, "data"))

DATABASE_URL = os.getenv(
    "AGENDA_DATABASE_URL",
    f"sqlite:///{os.path.join(DATA_DIR, 'agenda.db')}",
)

LOG_LEVEL = os.getenv("AGENDA_LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = os.getenv("AGENDA_LOG_TO_FILE", "1").strip().lower() in {"1", "true", "yes"}
LOG_DIR = os.path.join(DATA_DIR, "logs")
