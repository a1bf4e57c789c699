import logging

import requests
import streamlit as st

from dashboard.data import repositories
from dashboard.data.api_client import ApiError

logger = logging.getLogger(__name__)


def _field_widget(label, widget, options, key):
    options = dict(options)
    if widget == "int":
        return st.number_input(label, key=key, **options)
    if widget == "float":
        return st.number_input(label, key=key, format="%.1f", **options)
    if widget == "slider":
        return st.slider(label, key=key, **options)
    if widget == "select":
        return st.selectbox(label, key=key, **options)
    return st.text_input(label, key=key, **options)


def render_log_form(area, kind, form_spec, log_date):
    """One quick-log form. Returns True when an entry was saved."""
    title, fields = form_spec
    form_key = f"{area}.form.{kind}"
    with st.form(key=form_key, clear_on_submit=True):
        st.markdown(f"**{title}**")
        values = {}
        for field_name, label, widget, options in fields:
            values[field_name] = _field_widget(label, widget, options, f"{form_key}.{field_name}")
        submitted = st.form_submit_button("Save", use_container_width=True)

    if not submitted:
        return False
    payload = {key: value for key, value in values.items() if value not in (None, "")}
    payload["log_date"] = log_date.isoformat()
    try:
        repositories.add_log(area, kind, payload)
    except (ApiError, requests.RequestException) as exc:
        logger.warning("Saving %s/%s failed: %s", area, kind, exc)
        st.warning(str(exc))
        return False
    st.toast(f"{title} saved")
    return True


def render_log_forms(area, forms, log_date, columns=2):
    cols = st.columns(columns)
    saved = False
    for idx, (kind, form_spec) in enumerate(forms.items()):
        with cols[idx % columns]:
            saved = render_log_form(area, kind, form_spec, log_date) or saved
    return saved
