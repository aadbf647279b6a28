"""
Per-image validation pipeline.

The relay depends on the ViewClassifier protocol only. GatewayViewClassifier
runs the enabled stages one after another against the AI gateway and folds
their outputs into a ValidationResult; any stage failure aborts the request.
"""
from __future__ import annotations

import logging
from typing import Protocol

from carview.llm_client import get_llm_client
from carview.schemas import QualityReport, ValidationResult, VehicleAnalysis, ViewType
from carview.settings import Settings, get_settings
from carview.vision import VisionClient, analyze_vehicle, assess_quality, classify_view

logger = logging.getLogger(__name__)

CONFIDENCE_UNKNOWN = 0.0
CONFIDENCE_MISMATCH = 0.85
CONFIDENCE_MATCH = 0.95


class ViewClassifier(Protocol):
    async def classify_view(self, image: str, expected_view: str) -> ValidationResult: ...


def derive_confidence(detected_view: str, is_match: bool) -> float:
    """Fixed confidence constant chosen by match outcome, not measured."""
    if detected_view == ViewType.UNKNOWN.value:
        return CONFIDENCE_UNKNOWN
    return CONFIDENCE_MATCH if is_match else CONFIDENCE_MISMATCH


def build_result(
    detected_view: str,
    expected_view: str,
    quality: QualityReport | None = None,
    analysis: VehicleAnalysis | None = None,
) -> ValidationResult:
    detected = detected_view.strip().lower()
    expected = expected_view.strip().lower()
    is_match = detected == expected
    return ValidationResult(
        detected_view=detected,
        expected_view=expected,
        is_match=is_match,
        confidence=derive_confidence(detected, is_match),
        quality=quality,
        analysis=analysis,
    )


class GatewayViewClassifier:
    def __init__(self, client: VisionClient | None = None, settings: Settings | None = None) -> None:
        self._client = client
        self._settings = settings or get_settings()

    def _get_client(self) -> VisionClient:
        # Built on first use so a missing key only fails real requests
        if self._client is None:
            self._client = get_llm_client()
        return self._client

    async def classify_view(self, image: str, expected_view: str) -> ValidationResult:
        client = self._get_client()
        # Stages are awaited strictly in order
        detected = await classify_view(client, image)

        quality = None
        if self._settings.enable_quality_stage:
            quality = await assess_quality(client, image)

        analysis = None
        if self._settings.enable_analysis_stage:
            analysis = await analyze_vehicle(client, image, expected_view)

        logger.info("Expected: %s, Detected: %s", expected_view, detected)
        return build_result(detected, expected_view, quality=quality, analysis=analysis)
