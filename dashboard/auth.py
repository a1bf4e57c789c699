from __future__ import annotations

import logging
import os
from urllib.parse import urlparse

import streamlit as st

from dashboard.state.session_slices import clear_all_slices

logger = logging.getLogger(__name__)

ENV_FALLBACK_KEYS = {
    ("auth", "redirect_uri"): "AUTH_REDIRECT_URI",
    ("auth", "cookie_secret"): "AUTH_COOKIE_SECRET",
    ("auth", "google", "client_id"): "GOOGLE_CLIENT_ID",
    ("auth", "google", "client_secret"): "GOOGLE_CLIENT_SECRET",
    ("auth", "google", "server_metadata_url"): "GOOGLE_SERVER_METADATA_URL",
    ("app", "allowed_user_ids"): "ALLOWED_USER_IDS",
    ("app", "user_id"): "DASHBOARD_USER_ID",
    ("app", "API_BASE_URL"): "API_BASE_URL",
    ("app", "BACKEND_SESSION_SECRET"): "BACKEND_SESSION_SECRET",
}

LOCAL_USER_ID = "local@offline"


def get_secret(path, default=None):
    env_key = ENV_FALLBACK_KEYS.get(tuple(path))
    if env_key:
        env_value = os.getenv(env_key)
        if env_value:
            return env_value
    try:
        current = st.secrets
        for key in path:
            if key not in current:
                return default
            current = current[key]
    except (FileNotFoundError, KeyError, TypeError):
        # No secrets.toml at all: environment only.
        return default
    return current


def auth_configured():
    return bool(
        get_secret(("auth", "redirect_uri"))
        and get_secret(("auth", "cookie_secret"))
        and get_secret(("auth", "google", "client_id"))
        and get_secret(("auth", "google", "client_secret"))
    )


def _allowed_user_ids():
    raw = get_secret(("app", "allowed_user_ids")) or ""
    return {item.strip().lower() for item in str(raw).split(",") if item.strip()}


def enforce_login():
    """Require a Google login when one is configured.

    Without an ``[auth]`` block the dashboard runs as ``DASHBOARD_USER_ID``,
    which is how it is used locally next to a development backend.
    """
    if not auth_configured():
        logger.debug("No login provider configured, using local user")
        return

    redirect_uri = (get_secret(("auth", "redirect_uri")) or "").strip()
    if urlparse(redirect_uri).path != "/oauth2callback":
        st.error("Invalid auth.redirect_uri. For st.login it must end with /oauth2callback.")
        st.stop()

    if not st.user.is_logged_in:
        st.markdown("### Login required")
        st.markdown("Use your Google account to open your tracker.")
        if st.button("Login with Google", key="auth.login"):
            st.login("google")
        st.stop()

    allowed = _allowed_user_ids()
    user_id = get_current_user_id()
    if allowed and user_id not in allowed:
        logger.warning("Rejected dashboard login for %s", user_id)
        st.error("Access denied for this account.")
        if st.button("Logout", key="auth.logout_denied"):
            st.logout()
        st.stop()

    with st.sidebar:
        st.caption(f"Logged in as: {user_id}")
        if st.button("Logout", key="auth.logout"):
            clear_all_slices()
            st.logout()


def get_current_user_id():
    if auth_configured():
        user_email = str(getattr(st.user, "email", "") or "").strip().lower()
        if user_email:
            return user_email
    fallback = str(get_secret(("app", "user_id")) or LOCAL_USER_ID)
    return fallback.strip().lower() or LOCAL_USER_ID


def get_display_name(user_id):
    user_name = str(getattr(st.user, "name", "") or "").strip() if auth_configured() else ""
    if user_name:
        return user_name.split()[0]
    local = (user_id or "").split("@")[0].replace(".", " ").strip()
    return local.title() if local else "User"
