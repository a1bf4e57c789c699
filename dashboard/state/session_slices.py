"""Per-feature dicts kept in ``st.session_state`` for the signed-in session."""
import streamlit as st

SLICE_PREFIX = "tracker."


def _key(slice_name):
    return SLICE_PREFIX + slice_name


def get_slice(slice_name):
    return st.session_state.setdefault(_key(slice_name), {})


def clear_all_slices():
    for key in [key for key in st.session_state if str(key).startswith(SLICE_PREFIX)]:
        del st.session_state[key]
