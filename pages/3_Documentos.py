import streamlit as st

from core.errors import AgendaError, RenderError
from core.helpers import bootstrap, download_pdf_button, render_sidebar
from core.session_manager import apply, get_state
from core.time_utils import pretty_date
from models import DOCUMENT_LABELS, DOCUMENT_TYPES
from services import editor_service
from services.document_service import (
    DocumentFilter,
    delete_document,
    empty_trash,
    list_confirmed,
    list_trashed,
    restore,
)
from services.profile_service import get_profile
from services.render_service import render_document_pdf

bootstrap()
render_sidebar()
state = get_state()
profile = get_profile()
trash_enabled = profile["enable_trash"]

st.title("Documentos")
st.caption("Memória oficial (confirmados) + lixeira opcional.")

# Filters
f1, f2, f3, f4 = st.columns(4)
doc_type = f1.selectbox(
    "Tipo",
    ("",) + DOCUMENT_TYPES,
    format_func=lambda t: DOCUMENT_LABELS.get(t, "Todos"),
)
patient = f2.text_input("Paciente")
date_from = f3.date_input("De", value=None, format="DD/MM/YYYY")
date_to = f4.date_input("Até", value=None, format="DD/MM/YYYY")
filters = DocumentFilter(type=doc_type or None, patient=patient, date_from=date_from, date_to=date_to)

t1, t2 = st.columns(2)
if trash_enabled:
    if t1.button("Ver Ativos" if state.show_trash else "Ver Lixeira"):
        apply(editor_service.toggle_trash(state))
showing_trash = editor_service.showing_trash(state, profile)
if showing_trash and t2.button("Esvaziar lixeira"):
    try:
        removed = empty_trash()
        st.toast(f"Lixeira esvaziada ({removed}).")
        st.rerun()
    except AgendaError as e:
        st.error(str(e))

documents = list_trashed(filters) if showing_trash else list_confirmed(filters)

if not documents:
    st.info("Lixeira vazia." if showing_trash else "Nenhum documento confirmado ainda.")
    st.stop()

for d in documents:
    with st.container():
        left, right = st.columns([3, 2])
        with left:
            st.write(f"**{d.label} • {d.patient_name}**")
            st.caption(f"{pretty_date(d.date)}  {(d.snapshot or {}).get('cro', '')}")
        with right:
            try:
                filename, data = render_document_pdf(d)
                download_pdf_button("PDF", filename, data, key=f"pdf_{d.id}")
            except RenderError as e:
                st.error(str(e))

            if showing_trash:
                if st.button("Restaurar", key=f"restore_{d.id}"):
                    try:
                        restore(d)
                        st.toast("Restaurado.")
                        st.rerun()
                    except AgendaError as e:
                        st.error(str(e))
            else:
                label = "Excluir" if trash_enabled else "Excluir definitivamente"
                if st.button(label, key=f"delete_{d.id}"):
                    try:
                        delete_document(d)
                        st.toast("Movido para lixeira." if trash_enabled else "Excluído.")
                        st.rerun()
                    except AgendaError as e:
                        st.error(str(e))
        st.markdown("---")
