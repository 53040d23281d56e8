"""
Handlers behind the agenda screen.

Each handler takes the current AppState and returns a HandlerResult with the
next state, the regions that need redrawing and an optional user message.
Storage errors and validation errors propagate to the page.
"""

from dataclasses import replace
from datetime import date

from sqlalchemy.orm import Session

from core.app_state import AppState, HandlerResult, ROUTES
from services.appointment_service import (
    delete_appointment,
    get_appointment,
    new_appointment,
    save_appointment,
)
from services.document_service import confirm, latest_draft, save_draft

ALL = ["calendar", "day", "patients", "documents"]


# ------------------------------------------
# Navigation
# ------------------------------------------
def set_route(state: AppState, route: str) -> HandlerResult:
    if route not in ROUTES:
        raise ValueError(f"Unknown route: {route}")
    return HandlerResult(replace(state, route=route), rerender=ALL)


def select_date(state: AppState, day: date) -> HandlerResult:
    new = replace(state, selected_date=day, calendar_cursor=day.replace(day=1))
    return HandlerResult(new, rerender=["calendar", "day"])


def shift_month(state: AppState, delta: int) -> HandlerResult:
    cursor = state.calendar_cursor
    index = cursor.year * 12 + (cursor.month - 1) + delta
    new_cursor = date(index // 12, index % 12 + 1, 1)
    return HandlerResult(replace(state, calendar_cursor=new_cursor), rerender=["calendar"])


def go_today(state: AppState, today: date | None = None) -> HandlerResult:
    today = today or date.today()
    return select_date(state, today)


def toggle_trash(state: AppState) -> HandlerResult:
    return HandlerResult(replace(state, show_trash=not state.show_trash), rerender=["documents"])


def showing_trash(state: AppState, profile: dict) -> bool:
    """The trash view and its actions only exist while the trash feature is on."""
    return bool(state.show_trash and profile["enable_trash"])


# ------------------------------------------
# Appointment editor
# ------------------------------------------
def open_new_appointment(state: AppState, day: date | None = None) -> HandlerResult:
    appointment = new_appointment(day or state.selected_date)
    new = replace(state, appointment=appointment, draft=None, doc_type="prescription")
    return HandlerResult(new, rerender=["editor"])


def open_appointment(state: AppState, appointment_id: int, db: Session | None = None) -> HandlerResult:
    appointment = get_appointment(appointment_id, db=db)
    if appointment is None:
        return HandlerResult(state, message="Atendimento não encontrado.")

    draft = latest_draft(appointment.id, db=db)
    new = replace(
        state,
        appointment=appointment,
        draft=draft,
        doc_type=draft.type if draft else "prescription",
        selected_date=appointment.date,
        calendar_cursor=appointment.date.replace(day=1),
    )
    return HandlerResult(new, rerender=["editor"])


def close_appointment(state: AppState) -> HandlerResult:
    return HandlerResult(replace(state, appointment=None, draft=None), rerender=["editor"])


def save_appointment_action(state: AppState, db: Session | None = None) -> HandlerResult:
    saved = save_appointment(state.appointment, db=db)
    return HandlerResult(replace(state, appointment=saved), rerender=ALL, message="Atendimento salvo.")


def delete_appointment_action(state: AppState, db: Session | None = None) -> HandlerResult:
    appointment = state.appointment
    closed = replace(state, appointment=None, draft=None)
    if appointment is None or appointment.id is None:
        return HandlerResult(closed, rerender=["editor"])

    delete_appointment(appointment.id, db=db)
    return HandlerResult(closed, rerender=ALL, message="Atendimento excluído.")


# ------------------------------------------
# Documents of the open appointment
# ------------------------------------------
def save_draft_action(state: AppState, doc_type: str, body: str, db: Session | None = None) -> HandlerResult:
    appointment = state.appointment
    draft = save_draft(appointment, doc_type, body, db=db)
    new = replace(state, appointment=appointment, draft=draft, doc_type=doc_type)
    return HandlerResult(new, rerender=["day", "editor"], message="Rascunho salvo.")


def confirm_action(
    state: AppState,
    doc_type: str,
    body: str,
    *,
    allow_empty: bool = False,
    db: Session | None = None,
) -> HandlerResult:
    appointment = state.appointment
    confirm(appointment, doc_type, body, allow_empty=allow_empty, db=db)
    new = replace(state, appointment=appointment, doc_type=doc_type)
    return HandlerResult(
        new,
        rerender=["day", "documents"],
        message="Documento confirmado e salvo na memória.",
    )
