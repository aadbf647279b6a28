from __future__ import annotations

import json
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from carview.errors import CarViewError, StageError
from carview.pipeline import GatewayViewClassifier, ViewClassifier
from carview.schemas import ClassifyRequest
from carview.settings import get_settings
from carview.upload import normalize_image_payload

logger = logging.getLogger(__name__)

MISSING_FIELDS_ERROR = "Missing imageBase64 or expectedView"

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Car View Check API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_view_classifier() -> ViewClassifier:
    """Default classifier backed by the AI gateway."""
    return GatewayViewClassifier(settings=get_settings())


@app.exception_handler(CarViewError)
async def carview_error_handler(request: Request, exc: CarViewError) -> JSONResponse:
    if isinstance(exc, StageError):
        logger.error("Stage %s failed: %s", exc.stage, exc.message)
    elif exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def parse_classify_request(request: Request) -> ClassifyRequest | None:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(body, dict):
        return None
    try:
        return ClassifyRequest.model_validate(body)
    except ValidationError:
        return None


@app.get("/healthz")
def healthz() -> dict:
    """Liveness probe - is the service running?"""
    return {"ok": True}


@app.get("/readyz")
def readiness_check() -> dict:
    """Readiness probe - can the service handle requests?"""
    current = get_settings()
    checks = {"gateway_key": bool(current.ai_gateway_api_key)}
    return {
        "status": "ready" if all(checks.values()) else "degraded",
        "checks": checks,
        "stages": {
            "classification": True,
            "quality": current.enable_quality_stage,
            "analysis": current.enable_analysis_stage,
        },
    }


@app.post("/api/classify-car-view")
@app.post("/functions/v1/classify-car-view")
async def classify_car_view(
    request: Request,
    classifier: ViewClassifier = Depends(get_view_classifier),
) -> JSONResponse:
    """Classify the view of one car photo and check it against the expected view."""
    payload = await parse_classify_request(request)
    if payload is None:
        return JSONResponse(status_code=400, content={"error": MISSING_FIELDS_ERROR})

    try:
        image = normalize_image_payload(payload.image_base64, get_settings().max_image_bytes)
        result = await classifier.classify_view(image, payload.expected_view)
    except CarViewError:
        raise
    except Exception as e:
        logger.exception("Error in classify-car-view handler")
        return JSONResponse(status_code=500, content={"error": str(e) or "Unknown error"})
    return JSONResponse(status_code=200, content=result.to_response())


def run() -> None:
    import uvicorn

    uvicorn.run("carview.main:app", host="0.0.0.0", port=get_settings().port)


if __name__ == "__main__":
    run()
