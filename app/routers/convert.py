"""Conversion endpoints: fetch, upload or paste a page and get clean HTML back."""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import get_settings
from app.models.convert_request import ConvertHtmlRequest, ConvertUrlRequest
from app.models.convert_response import OUTPUT_FILENAME, ConvertResponse
from app.services.converter import ConversionResult, convert_page
from app.services.detector import PageType
from app.services.errors import ConversionFailed
from app.services.fetcher import FetchError, PageTooLarge, fetch_page

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter(prefix="/convert", tags=["Convert"])

_FORMAT_QUERY = Query(default="json", description="Output format: 'json' or 'html'.")


def _rate_limit() -> str:
    return get_settings().convert_rate_limit


def _convert(html: str, page_type: Optional[PageType], source: str) -> ConversionResult:
    try:
        return convert_page(html, page_type)
    except ConversionFailed as exc:
        logger.warning("Conversion failed for %s: %s", source, exc.__cause__)
        raise HTTPException(status_code=422, detail=exc.message)


def _respond(result: ConversionResult, source: str, format: str) -> ConvertResponse | Response:
    if format == "html":
        return Response(
            content=result.html,
            media_type="text/html",
            headers={"Content-Disposition": f'attachment; filename="{OUTPUT_FILENAME}"'},
        )
    return ConvertResponse(
        source=source,
        page_type=result.page_type,
        title=result.title,
        html=result.html,
        size=len(result.html.encode("utf-8")),
    )


@router.post(
    "",
    response_model=ConvertResponse,
    summary="Fetch a page by URL and convert it",
    description=(
        "Fetches the page, detects its builder (Elementor, GoHighLevel or "
        "generic), extracts the content, sanitizes it and returns a "
        "standalone HTML document.\n\n"
        "Pass `?format=html` to download the document as "
        f"`{OUTPUT_FILENAME}` instead of a JSON envelope."
    ),
)
@limiter.limit(_rate_limit)
async def convert_url(
    request: Request,
    body: ConvertUrlRequest,
    format: str = _FORMAT_QUERY,
) -> ConvertResponse | Response:
    url = str(body.url)
    logger.info("Convert request received", extra={"url": url, "page_type": body.page_type})

    try:
        html = await fetch_page(url)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except PageTooLarge as exc:
        logger.warning("Page too large: %s", url)
        raise HTTPException(status_code=413, detail=str(exc))
    except (FetchError, httpx.HTTPError) as exc:
        logger.error("Error fetching %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=str(exc))

    result = _convert(html, body.page_type, url)
    return _respond(result, url, format)


@router.post(
    "/upload",
    response_model=ConvertResponse,
    summary="Convert an uploaded HTML file",
)
@limiter.limit(_rate_limit)
async def convert_upload(
    request: Request,
    file: UploadFile = File(description="HTML file exported from the page builder."),
    page_type: Optional[PageType] = Form(default=None),
    format: str = _FORMAT_QUERY,
) -> ConvertResponse | Response:
    limit = get_settings().max_upload_bytes
    filename = file.filename or "upload.html"
    logger.info("Upload received", extra={"upload_name": filename, "page_type": page_type})

    data = await file.read(limit + 1)
    if len(data) > limit:
        logger.warning("Upload too large: %s", filename)
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the maximum allowed size of {limit} bytes.",
        )

    html = data.decode("utf-8-sig", errors="replace")
    result = _convert(html, page_type, filename)
    return _respond(result, filename, format)


@router.post(
    "/html",
    response_model=ConvertResponse,
    summary="Convert pasted HTML markup",
)
@limiter.limit(_rate_limit)
async def convert_html(
    request: Request,
    body: ConvertHtmlRequest,
    format: str = _FORMAT_QUERY,
) -> ConvertResponse | Response:
    limit = get_settings().max_upload_bytes
    if len(body.html.encode("utf-8")) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"Markup exceeds the maximum allowed size of {limit} bytes.",
        )

    result = _convert(body.html, body.page_type, "html")
    return _respond(result, "html", format)
