"""
Styling utilities for the car view check UI.
Handles CSS injection and badge helpers.
"""
import logging
import os

import streamlit as st

logger = logging.getLogger(__name__)


def inject_custom_css(css_file_path: str = "assets/style.css"):
    """Inject custom CSS into the Streamlit app."""
    current_dir = os.path.dirname(os.path.abspath(__file__))
    app_dir = os.path.dirname(current_dir)
    css_path = os.path.join(app_dir, css_file_path)

    if not os.path.exists(css_path):
        logger.warning("Stylesheet not found: %s", css_path)
        return
    with open(css_path, "r") as f:
        css = f.read()
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)


def status_for(validation: dict | None) -> str:
    """Badge status for a validation result: pending, match or mismatch."""
    if validation is None:
        return "pending"
    return "match" if validation.get("isMatch") else "mismatch"


def render_status_badge(status: str, text: str = None) -> str:
    """Render a status badge HTML."""
    if text is None:
        text = status.upper()

    badge_class = f"carview-badge-{status}"
    return f'<span class="carview-badge {badge_class}">{text}</span>'
