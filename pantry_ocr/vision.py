"""
Google Cloud Vision REST adapter (images:annotate, TEXT_DETECTION).

recognize() always returns a RecognitionOutcome; it never raises for provider
or transport problems. Cancellation from the caller is the one thing that
propagates (asyncio.CancelledError), and it aborts the in-flight request.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Optional

import httpx

from pantry_ocr.config import MAX_PAYLOAD_BYTES, VISION_TIMEOUT_SECONDS, Settings
from pantry_ocr.imaging import load_image_bytes
from pantry_ocr.models import (
    ImageSource,
    NoTextDetected,
    ProviderError,
    ProviderErrorKind,
    RecognitionOutcome,
    RecognitionRequest,
    RecognitionSuccess,
    TransportError,
    TransportErrorKind,
)

logger = logging.getLogger(__name__)


def status_to_error_kind(status: int) -> ProviderErrorKind:
    if status == 400:
        return ProviderErrorKind.MALFORMED_IMAGE
    if status in (401, 403):
        return ProviderErrorKind.CREDENTIAL
    if status == 429:
        return ProviderErrorKind.RATE_LIMIT
    if 500 <= status <= 599:
        return ProviderErrorKind.UNAVAILABLE
    return ProviderErrorKind.GENERIC


def _embedded_error(body: dict[str, Any]) -> Optional[dict[str, Any]]:
    if isinstance(body.get("error"), dict):
        return body["error"]
    responses = body.get("responses") or []
    if responses and isinstance(responses[0], dict) and isinstance(responses[0].get("error"), dict):
        return responses[0]["error"]
    return None


def _full_text(body: dict[str, Any]) -> str:
    responses = body.get("responses") or []
    if not responses or not isinstance(responses[0], dict):
        return ""
    annotations = responses[0].get("textAnnotations") or []
    if not annotations:
        return ""
    # first annotation is the whole text blob; the rest are single words
    return (annotations[0].get("description") or "").strip()


class VisionClient:
    def __init__(
        self,
        api_key: str,
        *,
        url: str,
        timeout: float = VISION_TIMEOUT_SECONDS,
        max_payload_bytes: int = MAX_PAYLOAD_BYTES,
        preprocess: bool = False,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.max_payload_bytes = max_payload_bytes
        self.preprocess = preprocess
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "VisionClient":
        return cls(
            settings.google_vision_api_key.strip(),
            url=settings.vision_api_url,
            timeout=settings.vision_timeout_seconds,
            max_payload_bytes=settings.max_payload_bytes,
            preprocess=settings.preprocess_images,
            client=client,
        )

    # ---------------- REQUEST ----------------

    def build_request(self, source: ImageSource, image_bytes: bytes) -> RecognitionRequest:
        return RecognitionRequest(source=source, payload=base64.b64encode(image_bytes).decode("ascii"))

    def request_body(self, request: RecognitionRequest) -> dict[str, Any]:
        return {
            "requests": [
                {
                    "image": {"content": request.payload},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
                }
            ]
        }

    async def recognize(self, image: ImageSource) -> RecognitionOutcome:
        try:
            image_bytes = await load_image_bytes(image, preprocess=self.preprocess)
        except (OSError, ValueError) as e:
            logger.warning("Could not read image: %s", e)
            return TransportError(TransportErrorKind.UNREADABLE_IMAGE, str(e))

        request = self.build_request(image, image_bytes)
        if request.size > self.max_payload_bytes:
            logger.warning(
                "Image payload too large (%d > %d bytes); not sending", request.size, self.max_payload_bytes
            )
            return TransportError(
                TransportErrorKind.PAYLOAD_TOO_LARGE,
                f"encoded payload is {request.size} bytes (limit {self.max_payload_bytes})",
            )
        return await self.send(request)

    # ---------------- TRANSPORT ----------------

    async def send(self, request: RecognitionRequest) -> RecognitionOutcome:
        try:
            response = await asyncio.wait_for(self._post(self.request_body(request)), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("Vision request timed out after %.1fs", self.timeout)
            return TransportError(TransportErrorKind.TIMEOUT, f"no response within {self.timeout:g}s")
        except httpx.RequestError as e:
            logger.warning("Vision request failed: %s", e)
            return TransportError(TransportErrorKind.NETWORK, str(e) or e.__class__.__name__)

        return self.interpret(response)

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        params = {"key": self.api_key}
        headers = {"Content-Type": "application/json"}
        if self._client is not None:
            return await self._client.post(self.url, params=params, json=body, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, params=params, json=body, headers=headers)

    # ---------------- RESPONSE ----------------

    def interpret(self, response: httpx.Response) -> RecognitionOutcome:
        status = response.status_code
        if status != 200:
            kind = status_to_error_kind(status)
            logger.warning("Vision API error %s (%s)", status, kind.value)
            return ProviderError(kind, status, f"Vision API returned HTTP {status}", response.text)

        try:
            body = response.json()
        except ValueError:
            return ProviderError(ProviderErrorKind.GENERIC, status, "Vision API returned invalid JSON", response.text)
        if not isinstance(body, dict):
            return ProviderError(ProviderErrorKind.GENERIC, status, "Vision API returned unexpected JSON", response.text)

        error = _embedded_error(body)
        if error:
            message = str(error.get("message") or "unknown error")
            logger.warning("Vision API reported an error in a 200 response: %s", message)
            return ProviderError(ProviderErrorKind.GENERIC, status, f"Vision API error: {message}", response.text)

        text = _full_text(body)
        if not text:
            logger.info("No text detected in image")
            return NoTextDetected(raw_response=body)

        logger.debug("Extracted text from Vision API: %s", text)
        return RecognitionSuccess(raw_text=text, raw_response=body)
