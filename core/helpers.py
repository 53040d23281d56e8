import streamlit as st

from services.profile_service import get_profile, welcome_text, whatsapp_link


# -----------------------------
# Sidebar helpers
# -----------------------------
def hide_default_sidebar_nav():
    """Hide Streamlit's default multi-page navigation for a cleaner custom menu."""
    st.markdown(
        """
        <style>
        /* Hide the auto-generated Pages section */
        [data-testid="stSidebarNav"] { display: none; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_sidebar():
    """Main menu, welcome line and the WhatsApp shortcut."""
    hide_default_sidebar_nav()
    profile = get_profile()
    with st.sidebar:
        st.markdown(f"### {welcome_text(profile)}")
        if st.button("Agenda", use_container_width=True):
            st.switch_page("app.py")
        if st.button("Pacientes", use_container_width=True):
            st.switch_page("pages/2_Pacientes.py")
        if st.button("Documentos", use_container_width=True):
            st.switch_page("pages/3_Documentos.py")
        if st.button("Configurações", use_container_width=True):
            st.switch_page("pages/4_Configuracoes.py")
        st.divider()
        link = whatsapp_link(profile)
        if link:
            st.link_button("WhatsApp", link, use_container_width=True)
        else:
            st.caption("WhatsApp não configurado.")


def download_pdf_button(label: str, filename: str, data: bytes, key: str):
    st.download_button(label, data=data, file_name=filename, mime="application/pdf", key=key)


def bootstrap():
    """Tables, default profile and session state. Safe to call on every run."""
    from core.database import init_db
    from core.session_manager import init_session_state
    from services.profile_service import ensure_profile

    init_db()
    ensure_profile()
    init_session_state()
