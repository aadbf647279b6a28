"""
Header, counters and instructions for the car view check UI.
"""
import streamlit as st

from upload_state import VIEW_SLOTS, UploadStats


def render_header(stats: UploadStats):
    """Render the title bar with aggregate counters."""
    header_html = '''
    <div class="carview-header">
        <h1>🚗 Car View Check</h1>
        <p>AI-verified vehicle photo capture</p>
    </div>
    '''
    st.markdown(header_html, unsafe_allow_html=True)

    counters = [
        ("Views", stats.total),
        ("Uploaded", stats.uploaded),
        ("Validated", stats.validated),
        ("Success rate", stats.rate_label),
    ]
    cols = st.columns(len(counters))
    for col, (label, value) in zip(cols, counters):
        with col:
            st.metric(label, value)

    if stats.all_validated:
        st.success("All views validated")


def render_instructions():
    st.markdown("### Photo Requirements")
    st.markdown(
        "Our AI system will automatically verify that each photo matches the expected view angle. "
        "Upload high-quality images showing clear views of the vehicle from each specified angle."
    )
    for slot in VIEW_SLOTS:
        st.markdown(f"- **{slot.label}:** {slot.hint}")
