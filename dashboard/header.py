import streamlit as st


@st.fragment
def render_global_header(ctx):
    indicators = ctx.get("quick_indicators") or {}
    user_name = ctx.get("user_name") or "You"
    backend_ok = ctx.get("backend_ok", True)

    st.markdown(f"### Hi {user_name}")
    st.caption(f"{ctx.today.strftime('%A, %d %B %Y')} • {ctx.get('timezone')}")

    cols = st.columns(3)
    cols[0].metric("Done", int(indicators.get("completed", 0) or 0))
    cols[1].metric("Upcoming", int(indicators.get("upcoming", 0) or 0))
    cols[2].metric("To do", int(indicators.get("pending", 0) or 0))

    if ctx.get("carry_over_status") == "pending":
        st.info("Yesterday's ongoing conditions are waiting for a decision in the Health tab.")
    if not backend_ok:
        st.warning("Backend unavailable… showing what could be loaded.")
