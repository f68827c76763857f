"""
main.py: pantry receipt scanning service

- /parse-receipt (Google Vision OCR → pantry items, mock items when no key)
- /ocr-status
- /credential-check
- /health

The UI shows `message` and the item checklist. `debug_info` is only returned
with ?debug=true (support / telemetry).
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from pantry_ocr.config import get_settings
from pantry_ocr.models import CredentialCheck, OcrStatus
from pantry_ocr.pipeline import ReceiptScanner

logging.basicConfig(
    format="%(asctime)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)
log = logging.getLogger(__name__)

app = FastAPI()


def get_scanner() -> ReceiptScanner:
    return ReceiptScanner(get_settings())


Scanner = Annotated[ReceiptScanner, Depends(get_scanner)]


# ---------------- ROUTES ----------------

@app.get("/health")
def health() -> dict[str, Any]:
    return {"ok": True}


@app.get("/ocr-status", response_model=OcrStatus)
def ocr_status(scanner: Scanner) -> OcrStatus:
    return scanner.ocr_status()


@app.get("/credential-check", response_model=CredentialCheck)
async def credential_check(scanner: Scanner) -> CredentialCheck:
    return await scanner.check_credential()


@app.post("/parse-receipt")
async def parse_receipt(
    scanner: Scanner,
    file: UploadFile = File(...),
    debug: bool = Query(False, description="include debug_info"),
):
    raw = await file.read()
    if not raw:
        return JSONResponse(status_code=400, content={"error": "Empty file"})

    result = await scanner.extract_receipt(raw)
    log.info(
        "parse-receipt: success=%s items=%d step=%s",
        result.success,
        len(result.items),
        result.debug_info.get("step"),
    )

    if debug:
        return result.model_dump()
    return result.model_dump(exclude={"debug_info"})


@app.middleware("http")
async def _log_requests(request: Request, call_next):
    try:
        resp = await call_next(request)
        return resp
    finally:
        log.info("%s %s", request.method, request.url.path)
