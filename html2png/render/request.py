"""
Request validation.

Turns the two accepted request shapes into one canonical ``RenderRequest``:

- raw mode: the body is the HTML document itself (bytes or text).
- structured mode: a JSON object ``{html, css?, selector?, viewport?}``.

Validation is a pure function of its input: it never touches the browser
and never logs. Failures raise ``ValidationError`` (always a client fault).
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..config import Settings, get_settings
from .errors import ErrorKind, ValidationError


class RequestKind(str, Enum):
    RAW = "raw"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class Viewport:
    width: int = 1200
    height: int = 800
    device_scale_factor: float = 1.0


@dataclass(frozen=True)
class RenderRequest:
    """Canonical, immutable description of one render call."""
    html: str
    css: str | None = None
    selector: str | None = None
    viewport: Viewport = field(default_factory=Viewport)


def default_viewport(settings: Settings | None = None) -> Viewport:
    settings = settings or get_settings()
    return Viewport(
        width=settings.render_viewport_width,
        height=settings.render_viewport_height,
        device_scale_factor=settings.render_device_scale_factor,
    )


def validate(kind: RequestKind, raw_input: Any, settings: Settings | None = None) -> RenderRequest:
    """Dispatch to the validator for ``kind``."""
    if kind == RequestKind.RAW:
        return validate_raw(raw_input, settings)
    return validate_structured(raw_input, settings)


def validate_raw(body: bytes | str | None, settings: Settings | None = None) -> RenderRequest:
    """
    Validate a raw HTML body.

    Args:
        body: Request body as received. Bytes are decoded as UTF-8, with
              invalid sequences replaced.

    Raises:
        ValidationError(EmptyBody): body missing, empty or whitespace-only.
    """
    if not body:
        raise ValidationError(ErrorKind.EMPTY_BODY, "HTML content is required in request body")

    html = body.decode("utf-8", errors="replace") if isinstance(body, (bytes, bytearray)) else str(body)
    if not html.strip():
        raise ValidationError(ErrorKind.EMPTY_BODY, "HTML content cannot be empty")

    return RenderRequest(html=html, viewport=default_viewport(settings))


def validate_structured(payload: Any, settings: Settings | None = None) -> RenderRequest:
    """
    Validate a parsed JSON payload.

    ``html`` is required. ``css`` and ``selector`` must be strings when
    present (JSON null counts as absent; whitespace-only counts as absent).
    A malformed ``viewport`` never fails the request: each bad field falls
    back to its default.
    """
    settings = settings or get_settings()

    if not isinstance(payload, dict):
        raise ValidationError(
            ErrorKind.INVALID_JSON, "JSON body is required with html and css properties",
        )

    html = payload.get("html")
    if not isinstance(html, str) or not html.strip():
        raise ValidationError(ErrorKind.MISSING_HTML, "HTML content is required in the html property")

    css = payload.get("css")
    if css is not None and not isinstance(css, str):
        raise ValidationError(ErrorKind.INVALID_CSS_TYPE, "CSS must be a string if provided")

    selector = payload.get("selector")
    if selector is not None and not isinstance(selector, str):
        raise ValidationError(ErrorKind.INVALID_SELECTOR_TYPE, "Selector must be a string if provided")

    return RenderRequest(
        html=html,
        css=css if css and css.strip() else None,
        selector=selector.strip() if selector and selector.strip() else None,
        viewport=_resolve_viewport(payload.get("viewport"), settings),
    )


def _positive_number(value: Any) -> float | None:
    # bool is an int subclass; JSON true/false are not sizes
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _resolve_viewport(raw: Any, settings: Settings) -> Viewport:
    defaults = default_viewport(settings)
    if not isinstance(raw, dict):
        return defaults

    width, height = defaults.width, defaults.height
    scale = defaults.device_scale_factor

    value = _positive_number(raw.get("width"))
    if value is not None and value >= 1:
        width = int(min(value, settings.render_max_viewport_width))

    value = _positive_number(raw.get("height"))
    if value is not None and value >= 1:
        height = int(min(value, settings.render_max_viewport_height))

    value = _positive_number(raw.get("deviceScaleFactor"))
    if value is not None:
        scale = min(value, settings.render_max_device_scale_factor)

    return Viewport(width=width, height=height, device_scale_factor=scale)
