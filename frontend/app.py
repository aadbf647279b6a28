"""
Car View Check - Streamlit UI
Upload vehicle photos per view and check them against the relay endpoint.
"""
import logging
import os

import streamlit as st

from components.header import render_header, render_instructions
from components.upload_zone import render_upload_zone
from upload_state import VIEW_SLOTS, UploadState
from utils.styling import inject_custom_css

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def get_upload_state() -> UploadState:
    if "upload_state" not in st.session_state:
        st.session_state["upload_state"] = UploadState()
    return st.session_state["upload_state"]


def show_summary(state: UploadState):
    rows = state.summary_rows()
    if not rows:
        return
    st.markdown("---")
    st.markdown("### Validation Summary")
    st.dataframe(rows, use_container_width=True, hide_index=True)


def main():
    st.set_page_config(
        page_title="Car View Check",
        page_icon="🚗",
        layout="wide",
        initial_sidebar_state="collapsed",
    )
    inject_custom_css()

    state = get_upload_state()
    header = st.container()

    render_instructions()
    st.markdown("---")

    cols = st.columns(3)
    for i, slot in enumerate(VIEW_SLOTS):
        with cols[i % 3]:
            render_upload_zone(state, slot)

    # Counters reflect this run's uploads, so the header is filled last
    with header:
        render_header(state.stats())

    show_summary(state)


if __name__ == "__main__":
    main()
