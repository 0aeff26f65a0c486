"""
Pydantic schemas for API request / response models.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Render request (structured mode)
# ---------------------------------------------------------------------------
# Documentation only: the route validates the raw JSON itself so that
# malformed viewport fields fall back to defaults instead of failing.

class RenderWithCssRequest(BaseModel):
    """Body of POST /render-with-css."""
    html: str = Field(..., description="Complete HTML document to render")
    css: str | None = Field(default=None, description="CSS injected as a <style> tag after load")
    selector: str | None = Field(default=None, description="Capture only the first matching element")
    viewport: dict[str, float] | None = Field(
        default=None,
        description="Optional {width, height, deviceScaleFactor}; invalid fields fall back to defaults",
    )


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    """Error body for every non-2xx response."""
    error: str = Field(..., description="Error kind, e.g. 'SelectorNotFound'")
    message: str = Field(..., description="Human-readable description")


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    service: str = "html2png"


class ServiceInfoResponse(BaseModel):
    """Root endpoint: liveness plus a short endpoint listing."""
    status: str = "ok"
    message: str = "HTML to PNG conversion service is running"
    endpoints: dict[str, str] = Field(default_factory=lambda: {
        "render": "POST /render - Convert HTML to PNG",
        "render-with-css": "POST /render-with-css - Convert HTML to PNG with custom CSS injection",
    })
