from pantry_ocr.categories import CategoryClassifier, classify
from pantry_ocr.config import Settings, get_settings
from pantry_ocr.models import CredentialCheck, OcrStatus, ParsedItem, PipelineResult
from pantry_ocr.normalizer import normalize
from pantry_ocr.parser import ReceiptParser, parse_receipt_text
from pantry_ocr.pipeline import ReceiptScanner, check_credential, extract_receipt

__all__ = [
    "CategoryClassifier",
    "CredentialCheck",
    "OcrStatus",
    "ParsedItem",
    "PipelineResult",
    "ReceiptParser",
    "ReceiptScanner",
    "Settings",
    "check_credential",
    "classify",
    "extract_receipt",
    "get_settings",
    "normalize",
    "parse_receipt_text",
]
