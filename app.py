from datetime import date

import requests
import streamlit as st

from dashboard.auth import enforce_login, get_current_user_id, get_display_name, get_secret
from dashboard.context import DashboardContext
from dashboard.data import api_client, repositories
from dashboard.data.api_client import ApiError
from dashboard.data.loaders import invalidate_runtime_caches, load_bootstrap
from dashboard.header import render_global_header
from dashboard.logging_config import configure_logging
from dashboard.router import render_router

st.set_page_config(page_title="Life Tracker", layout="wide")
logger = configure_logging()

enforce_login()

api_client.configure(get_secret, get_current_user_id)
repositories.configure(invalidate_callback=invalidate_runtime_caches)

if not repositories.api_enabled():
    st.error("Set API_BASE_URL and BACKEND_SESSION_SECRET to connect the dashboard to its backend.")
    st.stop()

current_user_id = get_current_user_id()
bootstrap = {}
backend_ok = True
try:
    bootstrap = load_bootstrap(current_user_id)
except (ApiError, requests.RequestException) as exc:
    logger.warning("Bootstrap failed for %s: %s", current_user_id, exc)
    backend_ok = False

today = date.fromisoformat(bootstrap["today"]) if bootstrap.get("today") else date.today()
context = DashboardContext(
    user_id=current_user_id,
    user_name=get_display_name(current_user_id),
    today=today,
    timezone=bootstrap.get("timezone") or "UTC",
    quick_indicators=bootstrap.get("quick_indicators") or {},
    carry_over_status=bootstrap.get("carry_over_status"),
    backend_ok=backend_ok,
)

render_global_header(context)
render_router(context)
