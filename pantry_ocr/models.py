"""
Data passed between the pipeline stages.

Recognition outcomes are plain frozen dataclasses (one per provider call);
everything handed to callers (items, results, status) is a pydantic model so
the HTTP layer can return it as-is.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

# An opaque image handle: raw bytes or a path on disk.
ImageSource = Union[bytes, str, Path]

Confidence = Literal["high", "medium"]


# ---------------- RECOGNITION ----------------

@dataclass(frozen=True)
class RecognitionRequest:
    source: ImageSource
    payload: str  # base64

    @property
    def size(self) -> int:
        return len(self.payload)


class ProviderErrorKind(str, enum.Enum):
    CREDENTIAL = "credential"
    RATE_LIMIT = "rate_limit"
    MALFORMED_IMAGE = "malformed_image"
    UNAVAILABLE = "unavailable"
    GENERIC = "generic"


class TransportErrorKind(str, enum.Enum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNREADABLE_IMAGE = "unreadable_image"


@dataclass(frozen=True)
class RecognitionSuccess:
    raw_text: str
    raw_response: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class NoTextDetected:
    raw_response: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class ProviderError:
    kind: ProviderErrorKind
    http_status: int
    message: str
    raw_body: str = ""


@dataclass(frozen=True)
class TransportError:
    kind: TransportErrorKind
    message: str


RecognitionOutcome = Union[RecognitionSuccess, NoTextDetected, ProviderError, TransportError]


# ---------------- RESULTS ----------------

class ParsedItem(BaseModel):
    name: str
    quantity: str = "1"
    price: Optional[float] = None
    category: str = "Other"
    confidence: Confidence = "high"


class PipelineResult(BaseModel):
    """
    What the pantry UI receives for one receipt photo.

    `message` is the only field meant for display. `debug_info` holds timing,
    provider status and raw error detail for logs and support.
    """

    success: bool
    text: str = ""
    items: list[ParsedItem] = Field(default_factory=list)
    message: str = ""
    debug_info: dict[str, Any] = Field(default_factory=dict)


class CredentialCheck(BaseModel):
    valid: bool
    message: str
    mode: Literal["mock", "google", "error"]


class OcrStatus(BaseModel):
    mode: Literal["mock", "google"]
    message: str
    description: str
