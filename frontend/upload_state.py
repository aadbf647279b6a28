"""
Per-widget upload state for the car view check UI.

Kept in st.session_state as one UploadState object; nothing here touches
Streamlit so it can be exercised without a running app.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ViewSlot:
    key: str
    label: str
    expected_view: str
    hint: str


VIEW_SLOTS: tuple[ViewSlot, ...] = (
    ViewSlot("front", "Front View", "front", "Show headlights, grille, and front bumper"),
    ViewSlot("back", "Back View", "back", "Show taillights, rear bumper, license plate area"),
    ViewSlot("left_side", "Left Side", "side", "Complete left side profile of the vehicle"),
    ViewSlot("right_side", "Right Side", "side", "Complete right side profile of the vehicle"),
    ViewSlot("top", "Top View", "top", "Overhead view showing roof, hood, and trunk"),
)


@dataclass
class UploadRecord:
    file_id: str
    filename: str
    content_type: str
    preview: bytes
    validation: dict[str, Any] | None = None

    @property
    def pending(self) -> bool:
        return self.validation is None

    @property
    def is_match(self) -> bool:
        return bool(self.validation and self.validation.get("isMatch"))


@dataclass
class UploadStats:
    total: int
    uploaded: int
    validated: int

    @property
    def all_validated(self) -> bool:
        return self.validated == self.total

    @property
    def rate_label(self) -> str:
        if self.all_validated:
            return "100%"
        if self.uploaded == 0:
            return "0%"
        return f"{round(self.validated / self.uploaded * 100)}%"


@dataclass
class UploadState:
    records: dict[str, list[UploadRecord]] = field(
        default_factory=lambda: {slot.key: [] for slot in VIEW_SLOTS}
    )

    def get(self, view_key: str) -> list[UploadRecord]:
        return self.records.setdefault(view_key, [])

    def file_ids(self, view_key: str) -> list[str]:
        return [r.file_id for r in self.get(view_key)]

    def replace(self, view_key: str, records: list[UploadRecord]) -> None:
        """A new selection replaces the previous records and their results."""
        self.records[view_key] = list(records)

    def set_result(self, view_key: str, index: int, validation: dict[str, Any]) -> None:
        # Results land by index; completion order does not matter
        records = self.get(view_key)
        if 0 <= index < len(records):
            records[index].validation = validation

    def clear(self, view_key: str) -> None:
        self.records[view_key] = []

    def stats(self) -> UploadStats:
        """A zone counts as uploaded once it holds a file, validated once any of its files matches."""
        uploaded = sum(1 for slot in VIEW_SLOTS if self.get(slot.key))
        validated = sum(
            1 for slot in VIEW_SLOTS if any(r.is_match for r in self.get(slot.key))
        )
        return UploadStats(total=len(VIEW_SLOTS), uploaded=uploaded, validated=validated)

    def summary_rows(self) -> list[dict[str, Any]]:
        rows = []
        for slot in VIEW_SLOTS:
            for record in self.get(slot.key):
                if record.pending:
                    continue
                v = record.validation or {}
                quality = v.get("quality") or {}
                analysis = v.get("analysis") or {}
                make_model = " ".join(
                    part for part in (analysis.get("make"), analysis.get("model")) if part
                )
                rows.append({
                    "View": slot.label,
                    "File": record.filename,
                    "Detected": v.get("detectedView", "unknown"),
                    "Match": "✅" if v.get("isMatch") else "⚠️",
                    "Confidence": f"{round(float(v.get('confidence', 0)) * 100)}%",
                    "Quality": quality.get("qualityScore"),
                    "Vehicle": make_model or None,
                })
        return rows
