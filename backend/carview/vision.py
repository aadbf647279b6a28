"""
The three gateway stages run for each uploaded image: view classification,
quality scoring and vehicle attribute analysis.
"""
from __future__ import annotations

import logging
from typing import Any, Protocol

from carview.errors import StageError, UpstreamError
from carview.llm_client import LlmClient
from carview.parsing import parse_model
from carview.prompts import (
    MAX_TOKENS_ANALYSIS,
    MAX_TOKENS_CLASSIFY,
    MAX_TOKENS_QUALITY,
    PROMPT_ANALYSIS,
    PROMPT_CLASSIFY,
    PROMPT_QUALITY,
    USER_ANALYSIS,
    USER_CLASSIFY,
    USER_QUALITY,
)
from carview.schemas import (
    ANALYSIS_FALLBACK,
    QUALITY_FALLBACK,
    QualityReport,
    VehicleAnalysis,
    ViewType,
)

logger = logging.getLogger(__name__)

STAGE_CLASSIFY = "classification"
STAGE_QUALITY = "quality"
STAGE_ANALYSIS = "analysis"

STAGE_MESSAGES = {
    STAGE_CLASSIFY: "Image validation failed",
    STAGE_QUALITY: "Image quality analysis failed",
    STAGE_ANALYSIS: "Image analysis failed",
}


class VisionClient(Protocol):
    async def vision_completion(
        self, system_prompt: str, user_text: str, image_url: str, max_tokens: int
    ) -> dict[str, Any]: ...


async def _run_stage(
    client: VisionClient,
    stage: str,
    system_prompt: str,
    user_text: str,
    image_url: str,
    max_tokens: int,
) -> str:
    try:
        raw = await client.vision_completion(system_prompt, user_text, image_url, max_tokens)
    except UpstreamError as e:
        logger.error(
            "Gateway %s stage error: status=%s body=%s",
            stage,
            e.upstream_status,
            e.body,
        )
        raise StageError(stage, STAGE_MESSAGES[stage], cause=e) from e
    return LlmClient.extract_content(raw).strip()


def normalize_view(reply: str) -> str:
    """First line of the classifier reply, trimmed and lowercased."""
    lines = reply.strip().splitlines()
    view = lines[0].strip().lower() if lines else ""
    return view or ViewType.UNKNOWN.value


async def classify_view(client: VisionClient, image_url: str) -> str:
    reply = await _run_stage(
        client, STAGE_CLASSIFY, PROMPT_CLASSIFY, USER_CLASSIFY, image_url, MAX_TOKENS_CLASSIFY
    )
    return normalize_view(reply)


async def assess_quality(client: VisionClient, image_url: str) -> QualityReport:
    reply = await _run_stage(
        client, STAGE_QUALITY, PROMPT_QUALITY, USER_QUALITY, image_url, MAX_TOKENS_QUALITY
    )
    result = parse_model(reply, QualityReport, STAGE_QUALITY)
    if not result.ok:
        logger.warning("Failed to parse quality JSON: %r (%s)", result.error.raw, result.error.reason)
    return result.unwrap_or(QUALITY_FALLBACK)


async def analyze_vehicle(client: VisionClient, image_url: str, expected_view: str) -> VehicleAnalysis:
    reply = await _run_stage(
        client,
        STAGE_ANALYSIS,
        PROMPT_ANALYSIS,
        USER_ANALYSIS.format(expected_view=expected_view),
        image_url,
        MAX_TOKENS_ANALYSIS,
    )
    result = parse_model(reply, VehicleAnalysis, STAGE_ANALYSIS)
    if not result.ok:
        logger.warning("Failed to parse analysis JSON: %r (%s)", result.error.raw, result.error.reason)
    return result.unwrap_or(ANALYSIS_FALLBACK)
