import base64

import pytest
from fastapi.testclient import TestClient

from carview.errors import UpstreamError
from carview.main import app, get_view_classifier
from carview.pipeline import GatewayViewClassifier
from carview.settings import Settings
from fakes import ANALYSIS_JSON, QUALITY_JSON, FakeVisionClient

ENDPOINT = "/api/classify-car-view"


@pytest.fixture
def fake_gateway(settings):
    holder = {}

    def install(replies):
        client = FakeVisionClient(replies)
        holder["client"] = client
        app.dependency_overrides[get_view_classifier] = lambda: GatewayViewClassifier(client, settings)
        return client

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def api():
    return TestClient(app)


def test_front_photo_matches(api, fake_gateway, png_data_url):
    fake_gateway(["front", QUALITY_JSON, ANALYSIS_JSON])

    response = api.post(ENDPOINT, json={"imageBase64": png_data_url, "expectedView": "front"})

    assert response.status_code == 200
    body = response.json()
    assert body["detectedView"] == "front"
    assert body["expectedView"] == "front"
    assert body["isMatch"] is True
    assert body["confidence"] == 0.95
    assert body["quality"]["qualityScore"] == 88
    assert body["analysis"]["model"] == "Corolla"


def test_back_photo_expected_front(api, fake_gateway, png_data_url):
    fake_gateway(["back", QUALITY_JSON, ANALYSIS_JSON])

    response = api.post(ENDPOINT, json={"imageBase64": png_data_url, "expectedView": "FRONT"})

    body = response.json()
    assert body["detectedView"] == "back"
    assert body["expectedView"] == "front"
    assert body["isMatch"] is False
    assert body["confidence"] == 0.85


def test_unrecognizable_image(api, fake_gateway, png_data_url):
    fake_gateway(["unknown", QUALITY_JSON, ANALYSIS_JSON])

    response = api.post(ENDPOINT, json={"imageBase64": png_data_url, "expectedView": "side"})

    body = response.json()
    assert body["detectedView"] == "unknown"
    assert body["isMatch"] is False
    assert body["confidence"] == 0


def test_quality_fallback_keeps_request_successful(api, fake_gateway, png_data_url):
    fake_gateway(["front", "I cannot tell.", ANALYSIS_JSON])

    response = api.post(ENDPOINT, json={"imageBase64": png_data_url, "expectedView": "front"})

    assert response.status_code == 200
    assert response.json()["quality"] == {
        "qualityScore": 50,
        "isBlurry": True,
        "sharpness": "Low",
        "issues": "Could not analyze quality",
    }


@pytest.mark.parametrize(
    "payload",
    [
        {"expectedView": "front"},
        {"imageBase64": "data:image/png;base64,AAAA"},
        {"imageBase64": "", "expectedView": "front"},
        {"imageBase64": "data:image/png;base64,AAAA", "expectedView": ""},
        {},
    ],
)
def test_missing_fields_returns_400_without_upstream_calls(api, fake_gateway, payload):
    client = fake_gateway([])

    response = api.post(ENDPOINT, json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing imageBase64 or expectedView"}
    assert client.calls == []


def test_non_json_body_returns_400(api, fake_gateway):
    client = fake_gateway([])

    response = api.post(ENDPOINT, content=b"not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert client.calls == []


def test_non_image_payload_returns_400(api, fake_gateway):
    client = fake_gateway([])
    pdf = "data:application/pdf;base64," + base64.b64encode(b"%PDF-1.4").decode()

    response = api.post(ENDPOINT, json={"imageBase64": pdf, "expectedView": "front"})

    assert response.status_code == 400
    assert "Unsupported content_type" in response.json()["error"]
    assert client.calls == []


def test_stage_failure_returns_500(api, fake_gateway, png_data_url):
    client = fake_gateway(["front", UpstreamError("AI gateway returned 503", upstream_status=503)])

    response = api.post(ENDPOINT, json={"imageBase64": png_data_url, "expectedView": "front"})

    assert response.status_code == 500
    assert response.json() == {"error": "Image quality analysis failed"}
    assert len(client.calls) == 2


def test_unexpected_exception_returns_500(api):
    class BrokenClassifier:
        async def classify_view(self, image, expected_view):
            raise RuntimeError("boom")

    app.dependency_overrides[get_view_classifier] = lambda: BrokenClassifier()
    try:
        response = api.post(ENDPOINT, json={"imageBase64": "https://example.com/car.jpg", "expectedView": "front"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "boom"}


def test_missing_gateway_key_returns_500(api, monkeypatch, png_data_url):
    from carview import settings as settings_module

    monkeypatch.setattr(settings_module, "_settings_instance", Settings(AI_GATEWAY_API_KEY=""))

    response = api.post(ENDPOINT, json={"imageBase64": png_data_url, "expectedView": "front"})

    assert response.status_code == 500
    assert response.json() == {"error": "AI_GATEWAY_API_KEY is not configured"}


def test_missing_gateway_key_still_checks_fields_first(api, monkeypatch):
    from carview import settings as settings_module

    monkeypatch.setattr(settings_module, "_settings_instance", Settings(AI_GATEWAY_API_KEY=""))

    response = api.post(ENDPOINT, json={"expectedView": "front"})

    assert response.status_code == 400


def test_legacy_function_path(api, fake_gateway, png_data_url):
    fake_gateway(["top", QUALITY_JSON, ANALYSIS_JSON])

    response = api.post(
        "/functions/v1/classify-car-view",
        json={"imageBase64": png_data_url, "expectedView": "top"},
    )

    assert response.status_code == 200
    assert response.json()["isMatch"] is True


def test_cors_is_open(api):
    response = api.options(
        ENDPOINT,
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_health_and_readiness(api, monkeypatch, settings):
    from carview import settings as settings_module

    monkeypatch.setattr(settings_module, "_settings_instance", settings)

    assert api.get("/healthz").json() == {"ok": True}
    ready = api.get("/readyz").json()
    assert ready["status"] == "ready"
    assert ready["stages"] == {"classification": True, "quality": True, "analysis": True}
