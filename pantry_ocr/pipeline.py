"""
Receipt photo -> PipelineResult.

ReceiptScanner.extract_receipt() is the entry point the pantry UI calls. It
never raises (apart from cancellation): every outcome, including unexpected
bugs, comes back as a PipelineResult with a short user-facing message and the
details in debug_info.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx

from pantry_ocr.config import Settings, get_settings
from pantry_ocr.imaging import PROBE_PNG_B64
from pantry_ocr.mock import mock_extract
from pantry_ocr.models import (
    CredentialCheck,
    ImageSource,
    NoTextDetected,
    OcrStatus,
    PipelineResult,
    ProviderError,
    ProviderErrorKind,
    RecognitionOutcome,
    RecognitionRequest,
    RecognitionSuccess,
    TransportError,
    TransportErrorKind,
)
from pantry_ocr.parser import ReceiptParser
from pantry_ocr.vision import VisionClient

logger = logging.getLogger(__name__)

PROVIDER = "google_vision"

NO_TEXT_MESSAGE = (
    "No text detected in the receipt. Please try again with better lighting "
    "and the whole receipt in frame."
)
NO_ITEMS_MESSAGE = (
    "No grocery items detected in the receipt text. The photo was readable, "
    "but the receipt might be in an unrecognized format."
)
UNEXPECTED_MESSAGE = "OCR processing failed. Please try again."

PROVIDER_MESSAGES: dict[ProviderErrorKind, str] = {
    ProviderErrorKind.CREDENTIAL: (
        "API key is invalid or quota exceeded. Please check your Google Vision API setup."
    ),
    ProviderErrorKind.RATE_LIMIT: "API rate limit exceeded. Please try again in a moment.",
    ProviderErrorKind.MALFORMED_IMAGE: "Invalid image format. Please try a clearer photo.",
    ProviderErrorKind.UNAVAILABLE: (
        "Google Vision API is temporarily unavailable. Please try again later."
    ),
    ProviderErrorKind.GENERIC: "Text recognition failed. Please try again.",
}

TRANSPORT_MESSAGES: dict[TransportErrorKind, str] = {
    TransportErrorKind.TIMEOUT: "Request timed out. Please try again.",
    TransportErrorKind.NETWORK: (
        "Network error. Please check your internet connection and try again."
    ),
    TransportErrorKind.PAYLOAD_TOO_LARGE: "Image is too large. Please use a smaller image.",
    TransportErrorKind.UNREADABLE_IMAGE: (
        "Could not read the selected image. Please choose a different photo."
    ),
}


def sanitize_text(raw_text: str) -> str:
    lines = [ln.strip() for ln in (raw_text or "").splitlines()]
    return "\n".join(ln for ln in lines if ln)


class ReceiptScanner:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        parser: Optional[ReceiptParser] = None,
        vision: Optional[VisionClient] = None,
    ):
        self.settings = settings or get_settings()
        self.vision = vision or VisionClient.from_settings(self.settings, client=client)
        self.parser = parser or ReceiptParser()

    @property
    def live(self) -> bool:
        return self.settings.has_live_credential

    def ocr_status(self) -> OcrStatus:
        if not self.live:
            return OcrStatus(
                mode="mock",
                message="Using mock OCR (demo mode)",
                description="Add your Google Vision API key for real OCR",
            )
        return OcrStatus(
            mode="google",
            message="Real OCR enabled (Google Vision API)",
            description="Using Google Vision API for accurate text extraction",
        )

    # ---------------- EXTRACTION ----------------

    async def extract_receipt(self, image: ImageSource) -> PipelineResult:
        started = time.perf_counter()

        if not self.live:
            return await mock_extract(image, delay_seconds=self.settings.mock_delay_seconds)

        try:
            return await self._extract(image, started)
        except Exception as e:
            logger.exception("Unexpected error while processing receipt")
            return self._failure(
                UNEXPECTED_MESSAGE,
                started,
                step="unexpected",
                error=f"{e.__class__.__name__}: {e}",
            )

    async def _extract(self, image: ImageSource, started: float) -> PipelineResult:
        logger.info("Sending receipt to Google Vision API")
        outcome = await self.vision.recognize(image)

        if isinstance(outcome, RecognitionSuccess):
            return self._parse(outcome, started)
        if isinstance(outcome, NoTextDetected):
            return self._failure(
                NO_TEXT_MESSAGE,
                started,
                step="recognize",
                reason="no_text",
                http_status=200,
                raw_response=outcome.raw_response,
            )
        return self._recognition_failure(outcome, started)

    def _parse(self, outcome: RecognitionSuccess, started: float) -> PipelineResult:
        text = sanitize_text(outcome.raw_text)
        items = self.parser.parse(outcome.raw_text)
        if not items:
            logger.info("Text recognized but no grocery items parsed")
            return self._failure(
                NO_ITEMS_MESSAGE,
                started,
                step="parse",
                text=text,
                reason="no_items",
                raw_text=outcome.raw_text,
            )

        return PipelineResult(
            success=True,
            text=text,
            items=items,
            message=f"Successfully extracted {len(items)} items from your receipt!",
            debug_info=self._debug(started, step="parse", item_count=len(items), http_status=200),
        )

    def _recognition_failure(self, outcome: RecognitionOutcome, started: float) -> PipelineResult:
        if isinstance(outcome, ProviderError):
            return self._failure(
                PROVIDER_MESSAGES[outcome.kind],
                started,
                step="recognize",
                reason=outcome.kind.value,
                http_status=outcome.http_status,
                error=outcome.message,
                raw_body=outcome.raw_body,
            )
        if isinstance(outcome, TransportError):
            return self._failure(
                TRANSPORT_MESSAGES[outcome.kind],
                started,
                step="recognize",
                reason=outcome.kind.value,
                error=outcome.message,
            )
        raise TypeError(f"unexpected recognition outcome: {outcome!r}")

    def _debug(self, started: float, **extra: Any) -> dict[str, Any]:
        info: dict[str, Any] = {
            "provider": PROVIDER,
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
        }
        info.update(extra)
        return info

    def _failure(self, message: str, started: float, *, step: str, text: str = "", **extra: Any) -> PipelineResult:
        logger.warning("Receipt extraction failed at %s: %s", step, extra.get("reason") or extra.get("error"))
        return PipelineResult(
            success=False,
            text=text,
            items=[],
            message=message,
            debug_info=self._debug(started, step=step, **extra),
        )

    # ---------------- DIAGNOSTICS ----------------

    async def check_credential(self) -> CredentialCheck:
        """Send a 1x1 PNG to the provider to check the key and endpoint, no parsing."""
        if not self.live:
            return CredentialCheck(
                valid=False,
                message="No API key configured. Using mock OCR for testing.",
                mode="mock",
            )

        try:
            outcome = await self.vision.send(RecognitionRequest(source="probe", payload=PROBE_PNG_B64))
        except Exception as e:
            logger.exception("Unexpected error while testing the Vision API key")
            return CredentialCheck(
                valid=False,
                message=f"API test failed ({e.__class__.__name__})",
                mode="error",
            )
        return self._credential_check(outcome)

    @staticmethod
    def _credential_check(outcome: RecognitionOutcome) -> CredentialCheck:
        if isinstance(outcome, (RecognitionSuccess, NoTextDetected)):
            return CredentialCheck(valid=True, message="Google Vision API is ready!", mode="google")
        if isinstance(outcome, ProviderError):
            if outcome.kind is ProviderErrorKind.CREDENTIAL:
                return CredentialCheck(valid=False, message="API key is invalid or quota exceeded.", mode="error")
            return CredentialCheck(valid=False, message=f"API test failed ({outcome.http_status})", mode="error")
        if isinstance(outcome, TransportError) and outcome.kind is TransportErrorKind.TIMEOUT:
            return CredentialCheck(valid=False, message="Timed out testing API key.", mode="error")
        return CredentialCheck(valid=False, message="Network error testing API key.", mode="error")


async def extract_receipt(image: ImageSource, settings: Optional[Settings] = None) -> PipelineResult:
    return await ReceiptScanner(settings).extract_receipt(image)


async def check_credential(settings: Optional[Settings] = None) -> CredentialCheck:
    return await ReceiptScanner(settings).check_credential()
