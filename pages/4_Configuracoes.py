import streamlit as st

from core.errors import AgendaError, BackupImportError
from core.helpers import bootstrap, render_sidebar
from core.session_manager import clear_session
from services.backup_service import backup_filename, dumps_backup, export_backup, import_backup, wipe_all
from services.profile_service import get_profile, save_profile

bootstrap()
render_sidebar()

st.title("Configurações")
st.caption("Perfil profissional e segurança.")

profile = get_profile()

st.subheader("Perfil profissional")
with st.form("profile_form"):
    name = st.text_input("Nome", value=profile["name"])
    cro = st.text_input("CRO", value=profile["cro"])
    title = st.text_input("Título", value=profile["title"])
    specialty = st.text_input("Especialidade", value=profile["specialty"])
    address = st.text_area("Endereço (uma linha por linha do rodapé)", value=profile["address"])
    phone = st.text_input("Telefone", value=profile["phone"])
    whatsapp = st.text_input("WhatsApp (com DDI/DDD)", value=profile["whatsapp"])
    whatsapp_message = st.text_input("Mensagem padrão do WhatsApp", value=profile["whatsapp_message"])
    show_phone = st.checkbox("Mostrar telefone em Recibo/Orçamento/Ficha", value=profile["show_phone_in_pdf"])
    enable_trash = st.checkbox("Ativar lixeira de documentos", value=profile["enable_trash"])
    if st.form_submit_button("Salvar perfil", type="primary"):
        try:
            save_profile({
                "name": name,
                "cro": cro,
                "title": title,
                "specialty": specialty,
                "address": address,
                "phone": phone,
                "whatsapp": whatsapp,
                "whatsapp_message": whatsapp_message,
                "show_phone_in_pdf": show_phone,
                "enable_trash": enable_trash,
            })
            st.toast("Perfil salvo.")
            st.rerun()
        except AgendaError as e:
            st.error(str(e))

st.divider()
st.subheader("Backup")
st.caption("Importar MESCLA os dados do arquivo com os atuais; nada é apagado.")

try:
    payload = dumps_backup(export_backup())
    st.download_button(
        "Exportar backup",
        data=payload.encode("utf-8"),
        file_name=backup_filename(),
        mime="application/json",
    )
except AgendaError as e:
    st.error(str(e))

uploaded = st.file_uploader("Importar backup (.json)", type=["json"])
if uploaded is not None and st.button("Importar"):
    try:
        counts = import_backup(uploaded.getvalue())
        st.success(
            f"Backup importado: {counts['patients']} paciente(s), "
            f"{counts['appointments']} atendimento(s), {counts['documents']} documento(s)."
        )
    except BackupImportError as e:
        st.error(f"Falha ao importar. {e}")
    except AgendaError as e:
        st.error(str(e))

st.divider()
with st.expander("🗑️ Apagar tudo", expanded=False):
    st.warning("Apaga pacientes, atendimentos e documentos. O perfil é mantido. Não pode ser desfeito.")
    confirm_text = st.text_input("Digite APAGAR para confirmar", value="")
    if st.button("Apagar tudo", type="secondary"):
        if confirm_text.strip().upper() == "APAGAR":
            try:
                wipe_all()
                clear_session()
                st.toast("Tudo apagado.")
                st.rerun()
            except AgendaError as e:
                st.error(str(e))
        else:
            st.error("Texto de confirmação não confere.")
