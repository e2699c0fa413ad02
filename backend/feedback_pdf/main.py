from __future__ import annotations

import hmac
import os
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import FONT_DIR
from .converter import md_to_pdf
from .fonts import BOLD_FILE, REGULAR_FILE, FontResolutionError, fonts_registered
from .logging_utils import get_logger
from .schemas import HealthResponse, PdfErrorResponse, PdfRequest

log = get_logger(__name__)

_INTERNAL_API_SECRET = (os.getenv("INTERNAL_API_SECRET") or os.getenv("CRON_SECRET_FEEDBACK") or "").strip()
if not _INTERNAL_API_SECRET:
    log.warning("INTERNAL_API_SECRET is not set; /md-to-pdf will reject every request.")

app = FastAPI(title="feedback-pdf")


def _check_secret(request: Request) -> None:
    provided = request.headers.get("x-internal-secret") or ""
    if not _INTERNAL_API_SECRET or not hmac.compare_digest(provided.encode("utf-8"), _INTERNAL_API_SECRET.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")


async def _read_request(request: Request) -> PdfRequest:
    content_type = request.headers.get("content-type") or ""
    if "application/json" in content_type:
        try:
            body = await request.json()
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid JSON body") from e
        if not isinstance(body, dict) or not str(body.get("markdown") or "").strip():
            raise HTTPException(status_code=400, detail="markdown 필드가 필요합니다.")
        try:
            return PdfRequest(**body)
        except ValidationError as e:
            detail = [{"loc": list(err.get("loc") or ()), "msg": err.get("msg")} for err in e.errors()]
            raise HTTPException(status_code=400, detail=detail) from e

    raw = (await request.body()).decode("utf-8", errors="replace")
    if not raw.strip():
        raise HTTPException(status_code=400, detail="markdown 필드가 필요합니다.")
    return PdfRequest(markdown=raw)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(ok=True, fonts_registered=fonts_registered())


@app.post("/md-to-pdf")
async def md_to_pdf_endpoint(request: Request) -> Response:
    _check_secret(request)
    req = await _read_request(request)

    log.debug(
        "md-to-pdf: font_dir=%s regular=%s bold=%s",
        FONT_DIR,
        (FONT_DIR / REGULAR_FILE).exists(),
        (FONT_DIR / BOLD_FILE).exists(),
    )

    try:
        pdf_bytes = await md_to_pdf(
            req.markdown,
            title=req.title,
            subtitle=req.subtitle,
            score=req.score,
            created_at=req.created_at,
        )
    except FontResolutionError as e:
        log.error("md-to-pdf: font resolution failed: %s", e)
        return JSONResponse(status_code=500, content=PdfErrorResponse(error="PDF 변환 실패", detail=str(e)).model_dump())
    except Exception as e:
        log.exception("md-to-pdf: render failed")
        return JSONResponse(status_code=500, content=PdfErrorResponse(error="PDF 변환 실패", detail=str(e)).model_dump())

    filename = req.filename or "output.pdf"
    log.info("md-to-pdf: PDF generated: %d bytes", len(pdf_bytes))
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{quote(filename)}"',
            "Content-Length": str(len(pdf_bytes)),
        },
    )
