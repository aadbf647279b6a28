import base64
import io

import pytest
from PIL import Image

from carview import llm_client as llm_client_module
from carview import settings as settings_module
from carview.settings import Settings


@pytest.fixture
def settings():
    return Settings(AI_GATEWAY_API_KEY="test-key")


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    monkeypatch.setattr(settings_module, "_settings_instance", None)
    monkeypatch.setattr(llm_client_module, "_singleton", None)


def make_png(width=120, height=80, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
