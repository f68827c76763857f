from __future__ import annotations

import asyncio
import io
from pathlib import Path

from PIL import Image, ImageFilter, ImageOps

from pantry_ocr.models import ImageSource

# 1x1 PNG, used to probe the provider without a real receipt.
PROBE_PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def preprocess_image_bytes(data: bytes) -> bytes:
    """Grayscale + autocontrast + sharpen. Helps on thermal-paper receipts."""
    img = Image.open(io.BytesIO(data))
    img = ImageOps.exif_transpose(img).convert("RGB")
    img = ImageOps.grayscale(img)
    img = ImageOps.autocontrast(img)
    img = img.filter(ImageFilter.SHARPEN)

    out = io.BytesIO()
    img.save(out, format="PNG", optimize=True)
    return out.getvalue()


def _read(source: ImageSource, preprocess: bool) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    else:
        data = Path(source).expanduser().read_bytes()
    if not data:
        raise ValueError("image is empty")
    if preprocess:
        data = preprocess_image_bytes(data)
    return data


async def load_image_bytes(source: ImageSource, preprocess: bool = False) -> bytes:
    """
    Resolve an image handle to bytes. File reads and Pillow work run in a
    worker thread. Raises OSError / ValueError for missing or undecodable images.
    """
    if isinstance(source, (bytes, bytearray)) and not preprocess:
        return _read(source, preprocess=False)
    return await asyncio.to_thread(_read, source, preprocess)
