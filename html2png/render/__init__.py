"""
Render core: request validation, browser sessions, the render pipeline and
the service that ties them together.
"""

from .errors import ErrorKind, LaunchError, RenderError, RenderServiceError, ValidationError
from .pipeline import PipelineState, RenderPipeline
from .request import RenderRequest, RequestKind, Viewport, validate
from .service import PNG_MIME_TYPE, RenderFailure, RenderResult, RenderService
from .session import BrowserSession, open_session

__all__ = [
    "ErrorKind",
    "LaunchError",
    "RenderError",
    "RenderServiceError",
    "ValidationError",
    "PipelineState",
    "RenderPipeline",
    "RenderRequest",
    "RequestKind",
    "Viewport",
    "validate",
    "PNG_MIME_TYPE",
    "RenderFailure",
    "RenderResult",
    "RenderService",
    "BrowserSession",
    "open_session",
]
