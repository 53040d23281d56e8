import re
from urllib.parse import quote

from sqlalchemy.orm import Session

from core.database import get_db_context
from core.logger import get_logger
from core.record_store import RecordStore
from models import Setting

log = get_logger(__name__)

PROFILE_KEY = "profile"

# Missing keys of a stored profile are backfilled from here on every read,
# so profiles saved by older versions keep working as fields are added.
DEFAULT_PROFILE = {
    "name": "",
    "cro": "",
    "title": "Cirurgião-Dentista",
    "specialty": "",
    "address": "",
    "phone": "",
    "whatsapp": "",
    "whatsapp_message": "Olá! Gostaria de mais informações.",
    "show_phone_in_pdf": True,
    "enable_trash": True,
}

# Fields frozen into every document at draft and confirmation time
SNAPSHOT_FIELDS = (
    "name",
    "cro",
    "title",
    "specialty",
    "address",
    "phone",
    "show_phone_in_pdf",
    "enable_trash",
)


def fill_defaults(data: dict | None) -> dict:
    profile = dict(DEFAULT_PROFILE)
    for key, value in (data or {}).items():
        if key in DEFAULT_PROFILE and value is not None:
            profile[key] = value.strip() if isinstance(value, str) else value
    profile["show_phone_in_pdf"] = bool(profile["show_phone_in_pdf"])
    profile["enable_trash"] = bool(profile["enable_trash"])
    return profile


# ------------------------------------------
# Read / write the single profile record
# ------------------------------------------
def get_profile(db: Session | None = None) -> dict:
    if db is None:
        with get_db_context() as _db:
            return get_profile(db=_db)

    record = RecordStore(db).get("settings", PROFILE_KEY)
    return fill_defaults(record.value if record else None)


def save_profile(profile: dict, db: Session | None = None) -> dict:
    """Replace the stored profile with a default-filled copy of `profile`."""
    if db is None:
        with get_db_context() as _db:
            return save_profile(profile, db=_db)

    filled = fill_defaults(profile)
    RecordStore(db).put("settings", Setting(key=PROFILE_KEY, value=filled))
    log.info("Profile saved")
    return filled


def ensure_profile(db: Session | None = None) -> dict:
    """Persist the default-filled profile so a fresh database has one."""
    if db is None:
        with get_db_context() as _db:
            return ensure_profile(db=_db)

    return save_profile(get_profile(db=db), db=db)


# ------------------------------------------
# Derived values
# ------------------------------------------
def snapshot(profile: dict) -> dict:
    """Copy of the profile fields a document is rendered with."""
    filled = fill_defaults(profile)
    return {key: filled[key] for key in SNAPSHOT_FIELDS}


def whatsapp_link(profile: dict) -> str | None:
    """wa.me link for the configured number, or None when there is none."""
    digits = re.sub(r"\D", "", profile.get("whatsapp") or "")
    if not digits:
        return None
    message = (profile.get("whatsapp_message") or "").strip()
    if message:
        return f"https://wa.me/{digits}?text={quote(message)}"
    return f"https://wa.me/{digits}"


def welcome_text(profile: dict) -> str:
    first = (profile.get("name") or "").split()
    if not first:
        return "Bem-vindo(a)"
    return f"Bem-vindo(a), Dr(a). {first[0]}"
