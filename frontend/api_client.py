"""
HTTP access to the relay endpoint from the Streamlit UI.
"""
from __future__ import annotations

import base64
import logging
import mimetypes
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable

import requests

logger = logging.getLogger(__name__)

CLASSIFY_ENDPOINT = "/api/classify-car-view"


def resolve_api_base_url(raw: str | None) -> str:
    """Build the API base URL, expanding bare Render service names."""
    raw = raw or "http://localhost:8000"
    if not raw.startswith(("http://", "https://")):
        if "." not in raw and raw != "localhost":
            return f"https://{raw}.onrender.com"
        return f"https://{raw}"
    return raw.rstrip("/")


API_BASE_URL = resolve_api_base_url(os.getenv("API_BASE_URL"))


def normalize_file_content_type(filename: str | None, content_type: str | None) -> str | None:
    """Best-effort image MIME type from the browser type or the file name."""
    if content_type:
        content_lower = content_type.lower()
        if content_lower == "image/jpg":
            return "image/jpeg"
        if content_lower.startswith("image/"):
            return content_lower

    if filename:
        guessed_type, _ = mimetypes.guess_type(filename)
        if guessed_type:
            guessed_type = guessed_type.lower()
            return "image/jpeg" if guessed_type == "image/jpg" else guessed_type

        ext = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
        ext_to_type = {
            "heic": "image/heic",
            "heif": "image/heif",
        }
        if ext in ext_to_type:
            return ext_to_type[ext]

    return content_type


def is_image(filename: str | None, content_type: str | None) -> bool:
    normalized = normalize_file_content_type(filename, content_type)
    return bool(normalized and normalized.startswith("image/"))


def encode_data_url(content: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


def call_api(method: str, endpoint: str, **kwargs) -> tuple[bool, Any]:
    """Make API call and return (success, data/error)."""
    url = f"{API_BASE_URL}{endpoint}"
    api_timeout = int(os.getenv("API_TIMEOUT_SECONDS", "60"))

    if "timeout" not in kwargs:
        kwargs["timeout"] = api_timeout

    try:
        resp = requests.request(method, url, **kwargs)
        if resp.status_code < 400:
            return True, resp.json()
        try:
            error_data = resp.json()
            error_message = error_data.get("error", resp.text)
        except (ValueError, AttributeError):
            error_message = resp.text
        return False, {"error": error_message, "status_code": resp.status_code}
    except requests.exceptions.Timeout:
        return False, {"error": f"Request timeout after {api_timeout}s."}
    except requests.exceptions.ConnectionError as e:
        return False, {"error": f"Connection error: {e}"}
    except requests.exceptions.RequestException as e:
        return False, {"error": str(e)}


def classify_image(image_data_url: str, expected_view: str) -> dict[str, Any] | None:
    """Validate one image; relay or network errors are logged and yield None."""
    success, result = call_api(
        "POST",
        CLASSIFY_ENDPOINT,
        json={"imageBase64": image_data_url, "expectedView": expected_view},
    )
    if not success:
        logger.error("Validation error for %s view: %s", expected_view, result.get("error"))
        return None
    return result


def classify_images(
    images: list[str],
    expected_view: str,
    on_result: Callable[[int, dict[str, Any]], None],
) -> None:
    """
    Validate every image independently. on_result is called with the image
    index as each one finishes; failed images are never reported and stay
    pending.
    """
    if not images:
        return
    with ThreadPoolExecutor(max_workers=len(images)) as pool:
        futures = {
            pool.submit(classify_image, image, expected_view): index
            for index, image in enumerate(images)
        }
        for future in as_completed(futures):
            index = futures[future]
            result = future.result()
            if result is not None:
                on_result(index, result)
