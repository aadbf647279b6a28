from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ViewType(str, Enum):
    """Camera angles a vehicle photo can show."""
    FRONT = "front"
    BACK = "back"
    SIDE = "side"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    UNKNOWN = "unknown"


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ClassifyRequest(CamelModel):
    image_base64: str = Field(alias="imageBase64", min_length=1)
    expected_view: str = Field(alias="expectedView", min_length=1)


def _as_text(v, default: str) -> str:
    # Models sometimes answer with a list, a number or null
    if v is None:
        return default
    if isinstance(v, list):
        return ", ".join(str(item) for item in v if item is not None)
    if isinstance(v, str):
        return v
    return str(v)


class QualityReport(CamelModel):
    """Image quality verdict from the quality stage."""
    quality_score: int = Field(default=50, alias="qualityScore", ge=0, le=100)
    is_blurry: bool = Field(default=True, alias="isBlurry")
    sharpness: str = "Low"
    issues: str = ""

    @field_validator("quality_score", mode="before")
    @classmethod
    def coerce_score(cls, v):
        if isinstance(v, str):
            try:
                v = float(v.strip().rstrip("%"))
            except ValueError:
                return 50
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return 50
        return min(100, max(0, round(v)))

    @field_validator("is_blurry", mode="before")
    @classmethod
    def coerce_blurry(cls, v):
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() in {"true", "yes", "1"}
        if isinstance(v, (int, float)):
            return bool(v)
        return True

    @field_validator("sharpness", "issues", mode="before")
    @classmethod
    def coerce_text(cls, v, info: ValidationInfo):
        return _as_text(v, cls.model_fields[info.field_name].default)


class VehicleAnalysis(CamelModel):
    make: str = "Unknown"
    model: str = "Unknown"
    color: str = "Unknown"
    condition: str = "Unknown"
    damage: str = "Not visible"
    features: str = "Not visible"

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, v, info: ValidationInfo):
        return _as_text(v, cls.model_fields[info.field_name].default)


QUALITY_FALLBACK = QualityReport(
    quality_score=50,
    is_blurry=True,
    sharpness="Low",
    issues="Could not analyze quality",
)

ANALYSIS_FALLBACK = VehicleAnalysis(
    make="Unknown",
    model="Unknown",
    color="Unknown",
    condition="Unknown",
    damage="Analysis failed",
    features="Could not analyze",
)


class ValidationResult(CamelModel):
    """Verdict for one uploaded image. Immutable once built."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    detected_view: str = Field(alias="detectedView")
    expected_view: str = Field(alias="expectedView")
    is_match: bool = Field(alias="isMatch")
    confidence: float = Field(ge=0.0, le=1.0)
    analysis: VehicleAnalysis | None = None
    quality: QualityReport | None = None

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
