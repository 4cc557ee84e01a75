# frontend/streamlit_app.py
from __future__ import annotations

from contextlib import suppress
from typing import Any, Callable

import streamlit as st

import frontend_api as api


# ---------------------------
# UI helpers
# ---------------------------
def _ensure_session_state() -> None:
    if "token" not in st.session_state:
        st.session_state.token = None
    if "dashboard" not in st.session_state:
        st.session_state.dashboard = None
    if "is_sign_up" not in st.session_state:
        st.session_state.is_sign_up = False


def _start_session(payload: dict[str, Any]) -> None:
    st.session_state.token = payload["token"]
    st.session_state.dashboard = api.get_dashboard(payload["token"])


def _end_session() -> None:
    st.session_state.token = None
    st.session_state.dashboard = None


def _show_notifications(view: dict[str, Any] | None) -> None:
    """Show pending notifications once, then dismiss them server-side."""
    if not view:
        return
    token = st.session_state.token
    for note in view.get("notifications", []):
        text = f"**{note['title']}**: {note['description']}"
        if note["variant"] == "destructive":
            st.error(text)
        else:
            st.toast(text)
        if token:
            with suppress(api.ApiError):
                api.dismiss_notification(token, note["id"])
    view["notifications"] = []


def _run(action: Callable[[], dict[str, Any]]) -> None:
    try:
        st.session_state.dashboard = action()
    except api.ApiError as e:
        if e.status_code == 401:
            _end_session()
            st.warning("Your session has ended. Please sign in again.")
        else:
            st.error(e.message)
    except Exception as e:
        st.error(f"Could not reach the server: {e}")


# ---------------------------
# Views
# ---------------------------
def login_view() -> None:
    is_sign_up = st.session_state.is_sign_up
    _, col, _ = st.columns([1, 2, 1])
    with col, st.container(border=True):
        st.subheader("Sign Up" if is_sign_up else "Sign In")
        with st.form("login"):
            email = st.text_input("Email", placeholder="you@example.com")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button(
                "Create Account" if is_sign_up else "Sign In", use_container_width=True
            )
            if submitted:
                try:
                    payload = (
                        api.sign_up(email, password) if is_sign_up else api.sign_in(email, password)
                    )
                    _start_session(payload)
                    st.rerun()
                except api.ApiError as e:
                    st.error(e.message or "Something went wrong")

        with st.expander("Sign In with Google"):
            id_token = st.text_input("Google ID token", type="password")
            if st.button("Continue with Google", use_container_width=True):
                try:
                    _start_session(api.federated_sign_in(id_token or None))
                    st.rerun()
                except api.ApiError as e:
                    st.error(e.message or "Something went wrong")

        toggle = "Already have an account? Sign in" if is_sign_up else "Don't have an account? Sign up"
        if st.button(toggle, type="tertiary"):
            st.session_state.is_sign_up = not is_sign_up
            st.rerun()


def dashboard_view() -> None:
    token = st.session_state.token
    view = st.session_state.dashboard
    identity = view["identity"]
    form = view["form"]

    # ----- Header
    h1, h2 = st.columns([4, 1])
    with h1:
        st.title("Meeting Assistant")
        st.caption("AI-powered task generation")
    with h2:
        st.write(f"**{identity.get('display_name') or ''}**")
        st.caption(identity.get("email") or "")
        if st.button("Logout", use_container_width=True):
            try:
                result = api.sign_out(token)
            except api.ApiError as e:
                st.error(e.message)
            else:
                if result["signed_out"]:
                    _end_session()
                    _show_notifications(result)
                    st.rerun()
                _show_notifications(result)

    _show_notifications(view)

    first_name = (identity.get("display_name") or "").split(" ")[0]
    st.header(f"Welcome back, {first_name}!" if first_name else "Welcome back!")
    st.write(
        "Transform your meeting transcripts into actionable tasks. "
        "Paste your transcript below and we will generate a structured task list for you."
    )

    # ----- Form
    with st.container(border=True):
        st.subheader("Meeting Analysis Dashboard")
        with st.form("dashboard-form"):
            c1, c2 = st.columns(2)
            c1.text_input("Email", value=form["email"], disabled=True)
            role = c2.text_input(
                "Your Role",
                value=form["role"],
                placeholder="e.g., Product Manager, Developer, Designer",
            )
            goal = st.text_input(
                "Project Goal", value=form["goal"], placeholder="What are you trying to achieve?"
            )
            webhook_url = st.text_input(
                "Zapier Webhook URL",
                value=form["webhook_url"],
                placeholder="https://hooks.zapier.com/hooks/catch/...",
            )
            transcript = st.text_area(
                "Meeting Transcript",
                value=form["transcript"],
                placeholder="Paste your meeting transcript here...",
                height=220,
            )
            b1, b2 = st.columns(2)
            save = b1.form_submit_button(
                "Save Profile", disabled=view["saving"], use_container_width=True
            )
            generate = b2.form_submit_button(
                "Generate Tasks",
                type="primary",
                disabled=view["state"] == "submitting",
                use_container_width=True,
            )

        if save or generate:
            fields = {"role": role, "goal": goal, "webhook_url": webhook_url, "transcript": transcript}
            _run(lambda: api.update_form(token, **fields))
            if st.session_state.token:
                with st.spinner("Saving..." if save else "Sending transcript..."):
                    _run(lambda: api.save_profile(token) if save else api.submit_transcript(token))
            st.rerun()

    # ----- Tasks
    st.subheader("Generated Tasks")
    tasks = view["tasks"]
    if not tasks:
        st.info("No tasks yet. Submit a meeting transcript to generate tasks.")
    else:
        for i, task in enumerate(tasks, start=1):
            st.checkbox(task, key=f"task-{i}-{task}")

    st.divider()
    st.caption("Powered by Firebase and Zapier")


# ---------------------------
# App
# ---------------------------
def main() -> None:
    st.set_page_config(page_title="Meeting Assistant", page_icon="📝", layout="wide")
    _ensure_session_state()

    if st.session_state.token is None or st.session_state.dashboard is None:
        login_view()
        return
    dashboard_view()


# ---------------------------
# Entrypoint
# ---------------------------
if __name__ == "__main__":
    main()
