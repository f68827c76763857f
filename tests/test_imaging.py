import base64
import io

import pytest
from PIL import Image

from pantry_ocr.imaging import PROBE_PNG_B64, load_image_bytes, preprocess_image_bytes
from pantry_ocr.models import TransportError, TransportErrorKind
from pantry_ocr.vision import VisionClient
from tests.conftest import TEST_URL


def _jpeg(size=(40, 20), color=(200, 180, 160)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG")
    return buf.getvalue()


def test_preprocess_returns_grayscale_png():
    out = preprocess_image_bytes(_jpeg())
    img = Image.open(io.BytesIO(out))
    assert img.format == "PNG"
    assert img.mode == "L"
    assert img.size == (40, 20)


def test_preprocess_rejects_garbage():
    with pytest.raises(OSError):
        preprocess_image_bytes(b"not an image")


def test_credential_check_image_is_a_png():
    img = Image.open(io.BytesIO(base64.b64decode(PROBE_PNG_B64)))
    assert img.size == (1, 1)


@pytest.mark.asyncio
async def test_load_bytes_passthrough():
    assert await load_image_bytes(b"raw") == b"raw"


@pytest.mark.asyncio
async def test_load_from_path(tmp_path):
    path = tmp_path / "r.jpg"
    path.write_bytes(_jpeg())
    data = await load_image_bytes(path, preprocess=True)
    assert Image.open(io.BytesIO(data)).mode == "L"


@pytest.mark.asyncio
async def test_load_empty_raises():
    with pytest.raises(ValueError):
        await load_image_bytes(b"")


@pytest.mark.asyncio
async def test_vision_preprocess_garbage_is_unreadable():
    vision = VisionClient("k", url=TEST_URL, preprocess=True)
    outcome = await vision.recognize(b"not an image")
    assert isinstance(outcome, TransportError)
    assert outcome.kind is TransportErrorKind.UNREADABLE_IMAGE
