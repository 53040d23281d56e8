import streamlit as st

from core.errors import StorageError, ValidationError
from core.helpers import bootstrap, render_sidebar
from services.patient_service import delete_patient, save_patient, search_patients

bootstrap()
render_sidebar()

st.title("Pacientes")
st.caption("Cadastro simples + busca rápida.")

with st.expander("➕ Novo paciente", expanded=False):
    with st.form("new_patient", clear_on_submit=True):
        name = st.text_input("Nome do paciente")
        contact = st.text_input("Contato (opcional)")
        notes = st.text_area("Observações (opcional)")
        if st.form_submit_button("Salvar paciente"):
            try:
                save_patient(name, contact=contact, notes=notes)
                st.toast("Paciente salvo.")
                st.rerun()
            except (ValidationError, StorageError) as e:
                st.error(str(e))

query = st.text_input("Buscar por nome ou contato", placeholder="ex.: Maria")
patients = search_patients(query)

if not patients:
    st.info("Nenhum paciente cadastrado.")
    st.stop()

for p in patients:
    with st.container():
        st.write(f"**{p.name}**")
        if p.contact:
            st.caption(p.contact)
        if p.notes:
            st.write(p.notes)

        with st.expander("✏️ Editar", expanded=False):
            new_name = st.text_input("Nome", value=p.name, key=f"name_{p.id}")
            new_contact = st.text_input("Contato", value=p.contact or "", key=f"contact_{p.id}")
            new_notes = st.text_area("Observações", value=p.notes or "", key=f"notes_{p.id}")
            if st.button("Salvar alterações", key=f"save_{p.id}", type="primary"):
                try:
                    save_patient(new_name, contact=new_contact, notes=new_notes, patient_id=p.id)
                    st.toast("Paciente salvo.")
                    st.rerun()
                except (ValidationError, StorageError) as e:
                    st.error(str(e))

        # Appointments and documents keep their copy of the name
        if st.button("🗑️ Excluir", key=f"del_{p.id}"):
            try:
                delete_patient(p.id)
                st.toast("Paciente excluído.")
                st.rerun()
            except StorageError as e:
                st.error(str(e))
        st.markdown("---")
