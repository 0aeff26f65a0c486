"""
FastAPI application entry point for the html2png service.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .api.routes import router
from .api.schemas import ErrorResponse


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup / shutdown hooks."""
    logger.info("HTML to PNG conversion service running on port %d", settings.app_port)
    logger.info("Health check: http://localhost:%d/", settings.app_port)
    logger.info("Render endpoint: POST http://localhost:%d/render", settings.app_port)
    yield
    logger.info("Shutting down gracefully ...")


app = FastAPI(
    title="html2png",
    description="Renders HTML, optionally with injected CSS and an element selector, "
                "to PNG using headless Chromium.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        body = ErrorResponse(
            error="NotFound",
            message=f"{request.method} {request.url.path} is not a valid endpoint",
        )
    else:
        body = ErrorResponse(error="HTTPError", message=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="InternalError", message=str(exc)).model_dump(),
    )


def run() -> None:
    uvicorn.run(
        "html2png.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
    )


if __name__ == "__main__":
    run()
