"""
Upload zone for one vehicle view.
"""
import os

import streamlit as st

from api_client import classify_images, encode_data_url, is_image, normalize_file_content_type
from upload_state import UploadRecord, UploadState, ViewSlot
from utils.styling import render_status_badge, status_for

MAX_FILES_PER_VIEW = int(os.getenv("MAX_FILES_PER_VIEW", "4"))


def upload_file_id(uploaded) -> str:
    return getattr(uploaded, "file_id", None) or f"{uploaded.name}:{uploaded.size}"


def records_from_uploads(uploaded_files, max_files: int = MAX_FILES_PER_VIEW) -> list[UploadRecord]:
    """Build records for the accepted files; non-images are dropped without notice."""
    records = []
    for uploaded in uploaded_files or []:
        content_type = normalize_file_content_type(uploaded.name, uploaded.type)
        if not is_image(uploaded.name, content_type):
            continue
        records.append(UploadRecord(
            file_id=upload_file_id(uploaded),
            filename=uploaded.name,
            content_type=content_type,
            preview=uploaded.getvalue(),
        ))
        if len(records) >= max_files:
            break
    return records


def validate_records(state: UploadState, slot: ViewSlot) -> None:
    records = state.get(slot.key)
    images = [encode_data_url(r.preview, r.content_type) for r in records]
    classify_images(
        images,
        slot.expected_view,
        lambda index, result: state.set_result(slot.key, index, result),
    )


def render_validation(record: UploadRecord):
    v = record.validation
    status = status_for(v)
    if v is None:
        st.markdown(render_status_badge(status, "Validating…"), unsafe_allow_html=True)
        return

    confidence = round(float(v.get("confidence", 0)) * 100)
    label = "View matches" if v.get("isMatch") else f"Detected {v.get('detectedView', 'unknown')}"
    st.markdown(render_status_badge(status, f"{label} · {confidence}%"), unsafe_allow_html=True)

    quality = v.get("quality")
    if quality:
        blurry = " · blurry" if quality.get("isBlurry") else ""
        st.caption(f"Quality {quality.get('qualityScore')}/100 · {quality.get('sharpness')}{blurry}")
        if quality.get("issues"):
            st.caption(quality["issues"])

    analysis = v.get("analysis")
    if analysis:
        with st.expander("Vehicle details"):
            for key in ("make", "model", "color", "condition", "damage", "features"):
                st.write(f"**{key.title()}:** {analysis.get(key, 'Unknown')}")


def render_upload_zone(state: UploadState, slot: ViewSlot):
    """
    Render one view's uploader, previews and results.

    The uploader takes any file type; records_from_uploads drops non-images
    without showing an error.
    """
    st.markdown(f"#### {slot.label}")
    st.caption(slot.hint)

    uploaded_files = st.file_uploader(
        f"Upload {slot.label.lower()} (max {MAX_FILES_PER_VIEW})",
        accept_multiple_files=True,
        key=f"uploader_{slot.key}",
        label_visibility="collapsed",
    )

    if not uploaded_files:
        if state.get(slot.key):
            state.clear(slot.key)
        return

    records = records_from_uploads(uploaded_files)
    if [r.file_id for r in records] != state.file_ids(slot.key):
        state.replace(slot.key, records)
        with st.spinner(f"Validating {slot.label.lower()}..."):
            validate_records(state, slot)

    for record in state.get(slot.key):
        st.image(record.preview, caption=record.filename, use_container_width=True)
        render_validation(record)
