import calendar
from datetime import date

import streamlit as st
from streamlit_searchbox import st_searchbox

from core.errors import AgendaError, EmptyDocumentError, RenderError, StorageError, ValidationError
from core.helpers import bootstrap, download_pdf_button, render_sidebar
from core.session_manager import apply, get_state
from core.time_utils import pretty_date
from models import APPOINTMENT_STATUSES, DOCUMENT_LABELS, DOCUMENT_TYPES, STATUS_LABELS
from services import editor_service
from services.appointment_service import add_procedure, days_with_appointments, list_day, remove_procedure
from services.document_service import default_body, get_document
from services.patient_service import patient_names
from services.profile_service import get_profile, snapshot
from services.render_service import RenderRequest, pdf_filename, preview_html, render_document_pdf, render_pdf
from services.search_service import search

MONTHS = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]
WEEKDAYS = ["D", "S", "T", "Q", "Q", "S", "S"]


def _search_options(term: str):
    hits = search(term)
    options = []
    for a in hits["appointments"]:
        options.append((f"Atendimento • {a.patient_name} • {pretty_date(a.date)}", f"appt:{a.id}"))
    for d in hits["documents"]:
        options.append((f"{d.label} • {d.patient_name} • {pretty_date(d.date)}", f"doc:{d.id}"))
    return options


def render_search(state):
    selection = st_searchbox(
        _search_options,
        key="global_search",
        placeholder="Buscar paciente, procedimento ou documento...",
    )
    if not selection:
        return
    kind, _, raw_id = selection.partition(":")
    if kind == "appt":
        apply(editor_service.open_appointment(state, int(raw_id)), rerun=False)
    elif kind == "doc":
        doc = get_document(int(raw_id))
        if doc:
            try:
                filename, data = render_document_pdf(doc)
                download_pdf_button(f"Baixar PDF: {filename}", filename, data, key=f"search_pdf_{doc.id}")
            except RenderError as e:
                st.error(str(e))


def render_calendar(state):
    cursor = state.calendar_cursor
    marked = days_with_appointments(cursor.year, cursor.month)

    head = st.columns([1, 3, 1])
    with head[0]:
        if st.button("‹", key="cal_prev"):
            apply(editor_service.shift_month(state, -1))
    with head[1]:
        st.markdown(f"**{MONTHS[cursor.month - 1]} {cursor.year}**")
    with head[2]:
        if st.button("›", key="cal_next"):
            apply(editor_service.shift_month(state, 1))

    cols = st.columns(7)
    for col, label in zip(cols, WEEKDAYS):
        col.caption(label)

    # Weeks start on Sunday
    weeks = calendar.Calendar(firstweekday=6).monthdatescalendar(cursor.year, cursor.month)
    for week in weeks:
        cols = st.columns(7)
        for col, day in zip(cols, week):
            text = f"{day.day}•" if day in marked else str(day.day)
            kind = "primary" if day == state.selected_date else "secondary"
            if col.button(text, key=f"cal_{day.isoformat()}", type=kind, disabled=day.month != cursor.month):
                apply(editor_service.select_date(state, day))

    if st.button("Hoje", key="cal_today", use_container_width=True):
        apply(editor_service.go_today(state))


def render_day(state):
    st.subheader(pretty_date(state.selected_date))
    st.caption("Atendimentos e procedimentos")

    if st.button("+ Atendimento", type="primary"):
        apply(editor_service.open_new_appointment(state))

    appointments = list_day(state.selected_date)
    if not appointments:
        st.info("Nenhum atendimento neste dia. Clique em “+ Atendimento”.")
        return

    for a in appointments:
        time_label = a.time or "Sem horário"
        status = STATUS_LABELS.get(a.status, "—")
        count = len(a.procedures or [])
        label = f"{a.patient_name} • {time_label} • {status} • {count} procedimento(s)"
        if st.button(label, key=f"appt_{a.id}", use_container_width=True):
            apply(editor_service.open_appointment(state, a.id))


def _collect(appointment, key: str):
    """Copy the editor widgets into the in-memory appointment."""
    appointment.patient_name = st.session_state.get(f"{key}_patient", "")
    appointment.time = st.session_state.get(f"{key}_time", "")
    appointment.status = st.session_state.get(f"{key}_status", "planned")
    appointment.ficha = st.session_state.get(f"{key}_ficha", "")
    appointment.notes = st.session_state.get(f"{key}_notes", "")


def render_editor(state):
    appointment = state.appointment
    key = f"ed_{appointment.id or 'new'}"

    st.divider()
    st.subheader("Atendimento" if appointment.id else "Novo atendimento")
    st.caption(pretty_date(appointment.date))

    names = patient_names()
    st.text_input("Paciente", value=appointment.patient_name or "", key=f"{key}_patient")
    if names:
        st.caption("Cadastrados: " + ", ".join(names[:12]))
    c1, c2 = st.columns(2)
    c1.text_input("Horário (opcional)", value=appointment.time or "", key=f"{key}_time")
    c2.selectbox(
        "Status",
        APPOINTMENT_STATUSES,
        index=APPOINTMENT_STATUSES.index(appointment.status) if appointment.status in APPOINTMENT_STATUSES else 0,
        format_func=lambda s: STATUS_LABELS[s],
        key=f"{key}_status",
    )
    st.text_area("Ficha clínica", value=appointment.ficha or "", key=f"{key}_ficha")

    st.markdown("**Procedimentos**")
    for idx, proc in enumerate(appointment.procedures or []):
        pc1, pc2 = st.columns([6, 1])
        pc1.write(f"- {proc}")
        if pc2.button("✕", key=f"{key}_rmproc_{idx}"):
            _collect(appointment, key)
            remove_procedure(appointment, idx)
            st.rerun()
    pc1, pc2 = st.columns([6, 1])
    pc1.text_input("Novo procedimento", key=f"{key}_newproc", label_visibility="collapsed")
    if pc2.button("+", key=f"{key}_addproc"):
        _collect(appointment, key)
        add_procedure(appointment, st.session_state.get(f"{key}_newproc", ""))
        st.rerun()

    st.text_area("Observações", value=appointment.notes or "", key=f"{key}_notes")

    b1, b2, b3 = st.columns(3)
    if b1.button("Salvar atendimento", type="primary", key=f"{key}_save"):
        _collect(appointment, key)
        try:
            apply(editor_service.save_appointment_action(state))
        except (ValidationError, StorageError) as e:
            st.error(str(e))
    if b2.button("Excluir atendimento", key=f"{key}_delete"):
        try:
            apply(editor_service.delete_appointment_action(state))
        except StorageError as e:
            st.error(str(e))
    if b3.button("Fechar", key=f"{key}_close"):
        apply(editor_service.close_appointment(state))

    render_document_panel(state, key)


def render_document_panel(state, key: str):
    appointment = state.appointment
    draft = state.draft

    st.divider()
    st.subheader("Documento")
    doc_type = st.radio(
        "Tipo",
        DOCUMENT_TYPES,
        index=DOCUMENT_TYPES.index(state.doc_type),
        format_func=lambda t: DOCUMENT_LABELS[t],
        horizontal=True,
        key=f"{key}_doctype",
    )
    initial = draft.body if draft is not None and draft.type == doc_type else default_body(doc_type, appointment)
    body = st.text_area("Conteúdo", value=initial, height=220, key=f"{key}_body_{doc_type}")

    request = RenderRequest(
        type=doc_type,
        body=body,
        patient_name=appointment.patient_name or "",
        date=appointment.date,
        snapshot=snapshot(get_profile()),
    )
    with st.expander("Pré-visualização", expanded=True):
        st.markdown(preview_html(request), unsafe_allow_html=True)

    d1, d2, d3 = st.columns(3)
    if d1.button("Salvar rascunho", key=f"{key}_draft"):
        _collect(appointment, key)
        try:
            apply(editor_service.save_draft_action(state, doc_type, body))
        except (ValidationError, StorageError) as e:
            st.error(str(e))

    pending = f"{key}_confirm_empty"
    if d2.button("Confirmar documento", type="primary", key=f"{key}_confirm"):
        _collect(appointment, key)
        try:
            apply(editor_service.confirm_action(state, doc_type, body))
        except EmptyDocumentError as e:
            st.session_state[pending] = True
            st.warning(str(e))
        except (ValidationError, StorageError) as e:
            st.error(str(e))
    if st.session_state.get(pending):
        if st.button("Confirmar mesmo assim", key=f"{key}_confirm_override"):
            st.session_state.pop(pending, None)
            try:
                apply(editor_service.confirm_action(state, doc_type, body, allow_empty=True))
            except AgendaError as e:
                st.error(str(e))

    try:
        data = render_pdf(request)
        with d3:
            download_pdf_button("PDF", pdf_filename(request), data, key=f"{key}_pdf")
    except RenderError as e:
        d3.error("Não foi possível gerar o documento. " + str(e))


def main():
    st.set_page_config(
        page_title="Agenda Clínica",
        page_icon="🦷",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    bootstrap()
    render_sidebar()

    state = get_state()
    st.title("Agenda")
    st.caption("Mini-calendário com memória clínica.")
    render_search(state)
    state = get_state()

    left, right = st.columns([2, 3])
    with left:
        render_calendar(state)
    with right:
        render_day(state)

    if state.appointment is not None:
        render_editor(state)


if __name__ == "__main__":
    main()
