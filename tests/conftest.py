from contextlib import asynccontextmanager
from typing import Optional

import httpx
import pytest

from pantry_ocr.config import Settings
from pantry_ocr.pipeline import ReceiptScanner
from pantry_ocr.vision import VisionClient

TEST_URL = "https://vision.test/v1/images:annotate"


def vision_body(text: Optional[str]) -> dict:
    if text is None:
        return {"responses": [{}]}
    words = [{"description": w} for w in text.split()]
    return {"responses": [{"textAnnotations": [{"description": text, "locale": "en"}, *words]}]}


@pytest.fixture
def live_settings() -> Settings:
    return Settings(
        _env_file=None,
        google_vision_api_key="test-key",
        vision_api_url=TEST_URL,
        vision_timeout_seconds=2.0,
        mock_delay_seconds=0,
    )


@pytest.fixture
def mock_settings() -> Settings:
    return Settings(_env_file=None, google_vision_api_key="", mock_delay_seconds=0)


@pytest.fixture
def ok_response():
    def _ok(text: Optional[str]) -> httpx.Response:
        return httpx.Response(200, json=vision_body(text))

    return _ok


@pytest.fixture
def scanner_with(live_settings):
    @asynccontextmanager
    async def _make(handler, settings: Optional[Settings] = None, **kwargs):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            yield ReceiptScanner(settings or live_settings, client=client, **kwargs)

    return _make


@pytest.fixture
def vision_with():
    @asynccontextmanager
    async def _make(handler, **kwargs):
        kwargs.setdefault("timeout", 2.0)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            yield VisionClient("test-key", url=TEST_URL, client=client, **kwargs)

    return _make
