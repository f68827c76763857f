from __future__ import annotations

import asyncio
import logging
import time

from pantry_ocr.models import ImageSource, ParsedItem, PipelineResult

logger = logging.getLogger(__name__)

MOCK_TEXT = "Mock receipt text extracted from image"

MOCK_ITEMS: tuple[dict, ...] = (
    {"name": "Whole Milk", "quantity": "1 gallon", "price": 4.99, "category": "Dairy & Eggs"},
    {"name": "Bread", "quantity": "1 loaf", "price": 2.99, "category": "Grains & Bread"},
    {"name": "Bananas", "quantity": "1 bunch", "price": 1.99, "category": "Produce"},
    {"name": "Eggs", "quantity": "1 dozen", "price": 3.49, "category": "Dairy & Eggs"},
    {"name": "Chicken Breast", "quantity": "2 lbs", "price": 8.99, "category": "Meat & Seafood"},
    {"name": "Orange Juice", "quantity": "1/2 gallon", "price": 3.99, "category": "Beverages"},
    {"name": "Crackers", "quantity": "1 box", "price": 2.49, "category": "Snacks"},
)


async def mock_extract(image: ImageSource, delay_seconds: float = 3.0) -> PipelineResult:
    """Demo-mode result: same seven items for any image, after a fake processing delay."""
    logger.info("Using mock OCR (no Vision API key configured)")
    started = time.perf_counter()
    if delay_seconds > 0:
        await asyncio.sleep(delay_seconds)

    items = [ParsedItem(confidence="high", **it) for it in MOCK_ITEMS]
    return PipelineResult(
        success=True,
        text=MOCK_TEXT,
        items=items,
        message=(
            f"Successfully extracted {len(items)} items from your receipt! "
            "(Demo mode - add a Google Vision API key for real OCR)"
        ),
        debug_info={
            "step": "mock",
            "provider": "mock",
            "mode": "mock",
            "reason": "no credential",
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
        },
    )
