# podscription/main.py
# -*- coding: utf-8 -*-
"""
Podscription API — FastAPI application entrypoint
-------------------------------------------------
This file wires everything together:

- Sets up central logging.
- Creates the FastAPI app.
- Adds middleware (CORS outside production, per-request access log).
- Maps PodscriptionError / body validation errors to JSON error bodies.
- Mounts the /api router and /health.
- Exposes an ASGI `app` object for uvicorn.

Typical run command (dev), from api_server/:

    uvicorn podscription.main:app --host localhost --port 8080 --reload
"""

from __future__ import annotations

import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from podscription.core.config import settings
from podscription.core.errors import ErrorCode, PodscriptionError
from podscription.models.chat_request import ErrorResponse
from podscription.routers.chat import STATUS_BY_CODE
from podscription.routers.chat import router as chat_router
from podscription.utils import get_logger, setup_logging


# ---------------------------------------------------------------------------
# Global logging config
# ---------------------------------------------------------------------------
setup_logging(debug=settings.debug, level=settings.log_level or None)
logger = get_logger(__name__)
logger.info(
    "Podscription API starting (env=%s, model=%s, store_type=%s, store_path=%r)",
    settings.environment,
    settings.openai_model,
    settings.store_type,
    settings.store_path,
)
if not settings.openai_api_key:
    logger.warning("OPENAI_API_KEY is not set; every chat turn will fail with PROCESSING_FAILED.")


def _error_response(code: ErrorCode, message: str) -> JSONResponse:
    body = ErrorResponse(error=code.value, message=message)
    return JSONResponse(status_code=STATUS_BY_CODE[code], content=body.model_dump())


def create_app() -> FastAPI:
    """
    Application factory.

    Returns a configured FastAPI instance ready for uvicorn.
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ------------------------------------------------------------------
    # CORS: the web client is served from a different origin in dev.
    # ------------------------------------------------------------------
    if settings.environment != "production":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["Content-Length"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        logger.info(
            "request processed method=%s path=%s status_code=%d latency_ms=%d client_ip=%s",
            request.method,
            path,
            response.status_code,
            int((time.perf_counter() - start) * 1000),
            request.client.host if request.client else "-",
        )
        return response

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @app.exception_handler(PodscriptionError)
    async def podscription_error_handler(request: Request, exc: PodscriptionError):
        logger.error(
            "returning error response error_code=%s error_message=%r method=%s path=%s",
            exc.code.value,
            exc.message,
            request.method,
            request.url.path,
        )
        return _error_response(exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.error("invalid request payload on %s: %s", request.url.path, exc.errors())
        return _error_response(ErrorCode.INVALID_PAYLOAD, "Invalid request payload")

    # ------------------------------------------------------------------
    # Routers
    # ------------------------------------------------------------------
    app.include_router(chat_router)

    @app.get("/health", tags=["meta"])
    async def health_check():
        """Lightweight health check for load balancers / the web client."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    logger.info("FastAPI app created (env=%s)", settings.environment)
    return app


# ASGI app for uvicorn / gunicorn
app = create_app()


def run() -> None:
    """Console entry point: `podscription-api`."""
    import uvicorn

    uvicorn.run(
        "podscription.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=(settings.environment == "development"),
    )


if __name__ == "__main__":
    run()
