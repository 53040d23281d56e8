"""
Explicit UI state.

Pages keep one AppState in the Streamlit session and pass it to the handlers
in services.editor_service, which hand back a HandlerResult instead of
touching globals.
"""

from dataclasses import dataclass, field
from datetime import date

ROUTES = ("agenda", "patients", "documents", "settings")


def _today() -> date:
    return date.today()


def _month_start() -> date:
    return date.today().replace(day=1)


@dataclass
class AppState:
    route: str = "agenda"
    selected_date: date = field(default_factory=_today)
    # First day of the month shown in the mini calendar
    calendar_cursor: date = field(default_factory=_month_start)
    # Appointment open in the editor (may be unsaved) and its surfaced draft
    appointment: object | None = None
    draft: object | None = None
    doc_type: str = "prescription"
    show_trash: bool = False


@dataclass
class HandlerResult:
    state: AppState
    # Screen regions to refresh, e.g. ["calendar", "day", "documents"]
    rerender: list[str] = field(default_factory=list)
    message: str | None = None
