import asyncio

import httpx
import pytest

from pantry_ocr.config import Settings
from pantry_ocr.mock import MOCK_ITEMS
from pantry_ocr.normalizer import normalize
from pantry_ocr.pipeline import (
    NO_ITEMS_MESSAGE,
    NO_TEXT_MESSAGE,
    UNEXPECTED_MESSAGE,
    ReceiptScanner,
    check_credential,
    extract_receipt,
    sanitize_text,
)
from tests.conftest import vision_body

RECEIPT = """PUB DICED TOMATOES 2.99
BANANA 0.59
  EGGS 12 CT 4.99

SUBTOTAL 8.57
TOTAL $8.57
"""


@pytest.mark.asyncio
async def test_successful_receipt(scanner_with, ok_response):
    async with scanner_with(lambda request: ok_response(RECEIPT)) as scanner:
        result = await scanner.extract_receipt(b"jpeg")

    assert result.success
    assert [i.name for i in result.items] == ["Diced Tomatoes", "Bananas", "Eggs"]
    assert result.message == "Successfully extracted 3 items from your receipt!"
    assert result.text.splitlines()[2] == "EGGS 12 CT 4.99"
    assert "" not in result.text.splitlines()
    assert result.debug_info["provider"] == "google_vision"
    assert result.debug_info["step"] == "parse"
    assert result.debug_info["item_count"] == 3
    assert result.debug_info["elapsed_ms"] >= 0


@pytest.mark.asyncio
async def test_item_names_are_stable_under_normalize(scanner_with, ok_response):
    text = RECEIPT + "PEPPERS GREEN BELL 1.29\nHNZ KETCH 3.19\n2% MILK 3.49\n"
    async with scanner_with(lambda request: ok_response(text)) as scanner:
        result = await scanner.extract_receipt(b"jpeg")
    for item in result.items:
        assert normalize(item.name) == item.name


@pytest.mark.asyncio
async def test_text_without_items_is_not_a_no_text_failure(scanner_with, ok_response):
    async with scanner_with(lambda request: ok_response("THANK YOU\nTOTAL $12.00")) as scanner:
        result = await scanner.extract_receipt(b"jpeg")

    assert not result.success
    assert result.items == []
    assert result.message == NO_ITEMS_MESSAGE
    assert result.message != NO_TEXT_MESSAGE
    assert result.text == "THANK YOU\nTOTAL $12.00"
    assert result.debug_info["step"] == "parse"
    assert result.debug_info["reason"] == "no_items"
    assert result.debug_info["raw_text"] == "THANK YOU\nTOTAL $12.00"


@pytest.mark.asyncio
async def test_no_text(scanner_with, ok_response):
    async with scanner_with(lambda request: ok_response(None)) as scanner:
        result = await scanner.extract_receipt(b"jpeg")

    assert not result.success
    assert result.message == NO_TEXT_MESSAGE
    assert "lighting" in result.message
    assert result.debug_info["reason"] == "no_text"
    assert result.debug_info["raw_response"] == vision_body(None)


@pytest.mark.asyncio
async def test_rate_limit_message(scanner_with):
    async with scanner_with(lambda request: httpx.Response(429, text="quota")) as scanner:
        result = await scanner.extract_receipt(b"jpeg")

    assert not result.success
    assert "rate limit" in result.message.lower()
    assert result.debug_info["http_status"] == 429
    assert result.debug_info["reason"] == "rate_limit"
    assert result.debug_info["raw_body"] == "quota"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, fragment",
    [
        (400, "Invalid image format"),
        (403, "API key is invalid"),
        (503, "temporarily unavailable"),
        (404, "Text recognition failed"),
    ],
)
async def test_provider_error_messages(scanner_with, status, fragment):
    async with scanner_with(lambda request: httpx.Response(status)) as scanner:
        result = await scanner.extract_receipt(b"jpeg")
    assert not result.success
    assert fragment in result.message
    assert result.debug_info["http_status"] == status


@pytest.mark.asyncio
async def test_timeout_message(scanner_with, live_settings, ok_response):
    async def slow(request):
        await asyncio.sleep(5)
        return ok_response(RECEIPT)

    settings = live_settings.model_copy(update={"vision_timeout_seconds": 0.05})
    async with scanner_with(slow, settings=settings) as scanner:
        result = await scanner.extract_receipt(b"jpeg")

    assert not result.success
    assert result.message.startswith("Request timed out")
    assert result.debug_info["reason"] == "timeout"


@pytest.mark.asyncio
async def test_network_message(scanner_with):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    async with scanner_with(handler) as scanner:
        result = await scanner.extract_receipt(b"jpeg")

    assert not result.success
    assert result.message.startswith("Network error")
    assert result.debug_info["error"] == "unreachable"


@pytest.mark.asyncio
async def test_too_large_message(scanner_with, live_settings, ok_response):
    settings = live_settings.model_copy(update={"max_payload_bytes": 100})
    async with scanner_with(lambda request: ok_response(RECEIPT), settings=settings) as scanner:
        result = await scanner.extract_receipt(b"x" * 200)

    assert not result.success
    assert result.message == "Image is too large. Please use a smaller image."
    assert result.debug_info["reason"] == "payload_too_large"


@pytest.mark.asyncio
async def test_unexpected_error_becomes_failure(scanner_with, ok_response):
    class BrokenParser:
        def parse(self, raw_text):
            raise RuntimeError("boom")

    async with scanner_with(lambda request: ok_response(RECEIPT), parser=BrokenParser()) as scanner:
        result = await scanner.extract_receipt(b"jpeg")

    assert not result.success
    assert result.message == UNEXPECTED_MESSAGE
    assert result.debug_info["step"] == "unexpected"
    assert "boom" in result.debug_info["error"]


@pytest.mark.asyncio
async def test_cancellation_propagates(scanner_with, ok_response):
    started = asyncio.Event()

    async def slow(request):
        started.set()
        await asyncio.sleep(5)
        return ok_response(RECEIPT)

    async with scanner_with(slow) as scanner:
        task = asyncio.create_task(scanner.extract_receipt(b"jpeg"))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


@pytest.mark.asyncio
async def test_concurrent_extractions_are_independent(scanner_with, ok_response):
    def handler(request):
        # the image payload decides which receipt comes back
        if b"YmFuYW5h" in request.content:
            return ok_response("BANANA 0.59")
        return ok_response("MILK 3.99")

    async with scanner_with(handler) as scanner:
        first, second = await asyncio.gather(
            scanner.extract_receipt(b"banana"),
            scanner.extract_receipt(b"milk"),
        )

    assert [i.name for i in first.items] == ["Bananas"]
    assert [i.name for i in second.items] == ["Milk"]


# ---------------- DEMO MODE ----------------

@pytest.mark.asyncio
@pytest.mark.parametrize("image", [b"anything", b"\x00\x01", "/no/such/file.jpg"])
async def test_mock_mode_ignores_image(scanner_with, mock_settings, image):
    calls = []
    async with scanner_with(lambda request: calls.append(request), settings=mock_settings) as scanner:
        result = await scanner.extract_receipt(image)

    assert result.success
    assert len(result.items) == 7
    assert [i.name for i in result.items] == [it["name"] for it in MOCK_ITEMS]
    assert all(i.confidence == "high" for i in result.items)
    assert "Demo mode" in result.message
    assert result.debug_info["step"] == "mock"
    assert calls == []


@pytest.mark.asyncio
async def test_placeholder_key_is_demo_mode(scanner_with):
    settings = Settings(_env_file=None, google_vision_api_key="PASTE_YOUR_API_KEY_HERE", mock_delay_seconds=0)
    calls = []
    async with scanner_with(lambda request: calls.append(request), settings=settings) as scanner:
        assert not scanner.live
        result = await scanner.extract_receipt(b"jpeg")
    assert result.debug_info["mode"] == "mock"
    assert calls == []


@pytest.mark.asyncio
async def test_module_level_extract_receipt(mock_settings):
    result = await extract_receipt(b"jpeg", settings=mock_settings)
    assert result.success
    assert len(result.items) == 7


@pytest.mark.parametrize(
    "key, live",
    [("", False), ("   ", False), ("paste_your_api_key_here", False), ("changeme", False), ("AIza-real", True)],
)
def test_has_live_credential(key, live):
    assert Settings(_env_file=None, google_vision_api_key=key).has_live_credential is live


def test_ocr_status(live_settings, mock_settings):
    assert ReceiptScanner(live_settings).ocr_status().mode == "google"
    status = ReceiptScanner(mock_settings).ocr_status()
    assert status.mode == "mock"
    assert "demo" in status.message


def test_sanitize_text():
    assert sanitize_text("  A  \n\n B\n   \n") == "A\nB"
    assert sanitize_text("") == ""


# ---------------- CREDENTIAL CHECK ----------------

@pytest.mark.asyncio
async def test_check_credential_ok(scanner_with, ok_response):
    seen = []

    def handler(request):
        seen.append(request)
        return ok_response(None)

    async with scanner_with(handler) as scanner:
        check = await scanner.check_credential()

    assert check.valid
    assert check.mode == "google"
    assert check.message == "Google Vision API is ready!"
    assert len(seen) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, message",
    [
        (403, "API key is invalid or quota exceeded."),
        (401, "API key is invalid or quota exceeded."),
        (500, "API test failed (500)"),
        (429, "API test failed (429)"),
    ],
)
async def test_check_credential_http_failure(scanner_with, status, message):
    async with scanner_with(lambda request: httpx.Response(status)) as scanner:
        check = await scanner.check_credential()
    assert not check.valid
    assert check.mode == "error"
    assert check.message == message


@pytest.mark.asyncio
async def test_check_credential_network_failure(scanner_with):
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    async with scanner_with(handler) as scanner:
        check = await scanner.check_credential()
    assert not check.valid
    assert check.message == "Network error testing API key."


@pytest.mark.asyncio
async def test_check_credential_without_key(mock_settings):
    check = await check_credential(settings=mock_settings)
    assert not check.valid
    assert check.mode == "mock"


@pytest.mark.asyncio
async def test_check_credential_decoding_failure(scanner_with):
    def handler(request):
        raise httpx.DecodingError("bad gzip stream", request=request)

    async with scanner_with(handler) as scanner:
        check = await scanner.check_credential()
    assert not check.valid
    assert check.mode == "error"
    assert check.message == "Network error testing API key."


@pytest.mark.asyncio
async def test_check_credential_unexpected_error(live_settings):
    class BrokenVision:
        async def send(self, request):
            raise httpx.InvalidURL("bad url")

    check = await ReceiptScanner(live_settings, vision=BrokenVision()).check_credential()
    assert not check.valid
    assert check.mode == "error"
    assert check.message == "API test failed (InvalidURL)"
