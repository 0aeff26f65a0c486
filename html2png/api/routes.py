"""
FastAPI route definitions for the HTML to PNG service.

- GET  /                 — service info and endpoint listing
- GET  /health           — health check
- POST /render           — raw HTML body (text/html) -> PNG, full page
- POST /render-with-css  — JSON {html, css?, selector?, viewport?} -> PNG

Concurrency:
- Handlers are async and the browser is driven through Playwright's async
  API, so concurrent requests interleave on the event loop.
- Every request gets its own browser process; there is no admission
  control, so concurrency is bounded only by memory and process limits.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from .schemas import ErrorResponse, HealthResponse, RenderWithCssRequest, ServiceInfoResponse
from ..config import get_settings
from ..render import ErrorKind, RenderResult, RenderService, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------------------------------------------------------------------------
# Singletons (one per process)
# ---------------------------------------------------------------------------

_service: RenderService | None = None


def get_service() -> RenderService:
    global _service
    if _service is None:
        _service = RenderService()
    return _service


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_BY_KIND = {
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.LOAD_TIMEOUT: 504,
}


def status_code_for(kind: ErrorKind, client_fault: bool) -> int:
    return _STATUS_BY_KIND.get(kind, 400 if client_fault else 500)


def error_response(kind: ErrorKind, message: str, client_fault: bool) -> JSONResponse:
    status_code = status_code_for(kind, client_fault)
    logger.debug("[api] Responding %d %s", status_code, kind.value)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=kind.value, message=message).model_dump(),
    )


def _to_response(result: RenderResult) -> Response:
    if not result.ok:
        return error_response(result.error.kind, result.error.message, result.error.client_fault)
    return Response(
        content=result.image_bytes,
        media_type=result.mime_type,
        headers={"Cache-Control": "no-cache"},
    )


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request or selector not found"},
    413: {"model": ErrorResponse, "description": "Request body too large"},
    500: {"model": ErrorResponse, "description": "Browser or rendering failure"},
    504: {"model": ErrorResponse, "description": "Content load timed out"},
}
_PNG_RESPONSE = {200: {"content": {"image/png": {}}, "description": "Rendered PNG image"}}


# ---------------------------------------------------------------------------
# Body helpers
# ---------------------------------------------------------------------------

def _require_content_type(request: Request, expected: str) -> None:
    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() != expected:
        raise ValidationError(
            ErrorKind.INVALID_CONTENT_TYPE, f"Invalid content type. Expected {expected}",
        )


async def _read_body(request: Request) -> bytes:
    limit = get_settings().render_max_body_bytes
    too_large = ValidationError(
        ErrorKind.PAYLOAD_TOO_LARGE, f"Request body exceeds the {limit} byte limit",
    )

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise too_large

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise too_large
    return bytes(body)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@router.get("/", response_model=ServiceInfoResponse, tags=["health"])
async def service_info():
    """Service info with the list of render endpoints."""
    return ServiceInfoResponse()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Service health check endpoint."""
    return HealthResponse()


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

@router.post(
    "/render",
    tags=["render"],
    response_class=Response,
    responses={**_PNG_RESPONSE, **_ERROR_RESPONSES},
    openapi_extra={"requestBody": {"required": True, "content": {"text/html": {"schema": {"type": "string"}}}}},
)
async def render(request: Request, service: RenderService = Depends(get_service)):
    """
    Render a raw HTML document to PNG.

    The body is the HTML itself (Content-Type: text/html). The page is laid
    out in the default viewport (1200x800) and captured in full.
    """
    try:
        _require_content_type(request, "text/html")
        body = await _read_body(request)
    except ValidationError as e:
        return error_response(e.kind, e.message, e.client_fault)

    return _to_response(await service.handle_raw_render(body))


@router.post(
    "/render-with-css",
    tags=["render"],
    response_class=Response,
    responses={**_PNG_RESPONSE, **_ERROR_RESPONSES},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": RenderWithCssRequest.model_json_schema()}},
        }
    },
)
async def render_with_css(request: Request, service: RenderService = Depends(get_service)):
    """
    Render HTML with optional injected CSS, element selector and viewport.

    - ``css`` is appended as a <style> tag once the content has loaded.
    - ``selector`` restricts the capture to the first matching element;
      no match is a 400 (SelectorNotFound).
    - Invalid ``viewport`` fields silently fall back to their defaults.
    """
    try:
        _require_content_type(request, "application/json")
        body = await _read_body(request)
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise ValidationError(ErrorKind.INVALID_JSON, f"Request body is not valid JSON: {e}") from e
    except ValidationError as e:
        return error_response(e.kind, e.message, e.client_fault)

    return _to_response(await service.handle_structured_render(payload))
