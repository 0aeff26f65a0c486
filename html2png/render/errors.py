"""
Error taxonomy for the render request lifecycle.

Every failure a request can hit is a ``RenderServiceError`` carrying an
``ErrorKind``. The kind alone decides whether the failure is the caller's
fault (4xx at the HTTP boundary) or the service's (5xx).
"""

from enum import Enum


class ErrorKind(str, Enum):
    # client faults
    EMPTY_BODY = "EmptyBody"
    MISSING_HTML = "MissingHtml"
    INVALID_CSS_TYPE = "InvalidCssType"
    INVALID_SELECTOR_TYPE = "InvalidSelectorType"
    INVALID_CONTENT_TYPE = "InvalidContentType"
    INVALID_JSON = "InvalidJson"
    PAYLOAD_TOO_LARGE = "PayloadTooLarge"
    SELECTOR_NOT_FOUND = "SelectorNotFound"

    # server faults
    LAUNCH_ERROR = "LaunchError"
    VIEWPORT_FAILURE = "ViewportFailure"
    LOAD_TIMEOUT = "LoadTimeout"
    LOAD_FAILURE = "LoadFailure"
    STYLE_INJECTION_FAILURE = "StyleInjectionFailure"
    CAPTURE_FAILURE = "CaptureFailure"
    RELEASE_ERROR = "ReleaseError"
    INTERNAL_ERROR = "InternalError"


CLIENT_FAULT_KINDS = frozenset({
    ErrorKind.EMPTY_BODY,
    ErrorKind.MISSING_HTML,
    ErrorKind.INVALID_CSS_TYPE,
    ErrorKind.INVALID_SELECTOR_TYPE,
    ErrorKind.INVALID_CONTENT_TYPE,
    ErrorKind.INVALID_JSON,
    ErrorKind.PAYLOAD_TOO_LARGE,
    ErrorKind.SELECTOR_NOT_FOUND,
})


def is_client_fault(kind: ErrorKind) -> bool:
    return kind in CLIENT_FAULT_KINDS


class RenderServiceError(Exception):
    """Base error: a kind from the taxonomy plus a human-readable message."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def client_fault(self) -> bool:
        return is_client_fault(self.kind)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value}: {self.message})"


class ValidationError(RenderServiceError):
    """Request rejected before any browser work started."""


class LaunchError(RenderServiceError):
    """The browser process could not be started or its page could not be opened."""

    def __init__(self, message: str):
        super().__init__(ErrorKind.LAUNCH_ERROR, message)


class RenderError(RenderServiceError):
    """A pipeline step failed. ``selector`` is set for SelectorNotFound."""

    def __init__(self, kind: ErrorKind, message: str, selector: str | None = None):
        super().__init__(kind, message)
        self.selector = selector
