import base64
import io

import pytest
from PIL import Image

from carview.errors import InvalidImageError
from carview.upload import normalize_content_type, normalize_image_payload

MAX_BYTES = 1024 * 1024


def test_png_data_url_passes_through(png_data_url):
    assert normalize_image_payload(png_data_url, MAX_BYTES) == png_data_url


def test_jpg_mime_is_normalized(png_bytes):
    encoded = base64.b64encode(png_bytes).decode()

    result = normalize_image_payload(f"data:image/jpg;base64,{encoded}", MAX_BYTES)

    assert result == f"data:image/jpeg;base64,{encoded}"


def test_bare_base64_is_sniffed(png_bytes):
    encoded = base64.b64encode(png_bytes).decode()

    assert normalize_image_payload(encoded, MAX_BYTES) == f"data:image/png;base64,{encoded}"


def test_remote_url_passes_through():
    url = "https://cdn.example.com/cars/front.jpg"

    assert normalize_image_payload(url, MAX_BYTES) == url


@pytest.mark.parametrize(
    "payload",
    [
        "data:text/plain;base64,aGVsbG8=",
        "data:image/png,rawbytes",
        "data:image/png;base64,!!not-base64!!",
        base64.b64encode(b"definitely not an image").decode(),
    ],
)
def test_invalid_payloads_are_rejected(payload):
    with pytest.raises(InvalidImageError):
        normalize_image_payload(payload, MAX_BYTES)


def test_oversized_payload_is_rejected(png_data_url):
    with pytest.raises(InvalidImageError) as excinfo:
        normalize_image_payload(png_data_url, 10)

    assert excinfo.value.status_code == 400


def test_normalize_content_type():
    assert normalize_content_type("IMAGE/JPG") == "image/jpeg"
    assert normalize_content_type("image/png") == "image/png"
    assert normalize_content_type(None) is None


def test_heif_payload_is_converted_to_jpeg():
    buf = io.BytesIO()
    Image.new("RGB", (64, 48), (10, 120, 200)).save(buf, format="HEIF")
    encoded = base64.b64encode(buf.getvalue()).decode()

    result = normalize_image_payload(f"data:image/heic;base64,{encoded}", MAX_BYTES)

    assert result.startswith("data:image/jpeg;base64,")
    converted = Image.open(io.BytesIO(base64.b64decode(result.split(",", 1)[1])))
    assert converted.format == "JPEG"
    assert converted.size == (64, 48)
