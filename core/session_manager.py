import streamlit as st

from core.app_state import AppState, HandlerResult


def init_session_state():
    """Ensure the app state exists in the Streamlit session."""
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState()


def get_state() -> AppState:
    init_session_state()
    return st.session_state.app_state


def apply(result: HandlerResult, *, rerun: bool = True):
    """Store the handler's state, show its message and redraw if asked."""
    st.session_state.app_state = result.state
    if result.message:
        st.toast(result.message)
    if rerun and result.rerender:
        st.rerun()


def clear_session():
    """Forget the app state without touching stored data."""
    st.session_state.pop("app_state", None)
