"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.errors import register_exception_handlers, unhandled_error_handler
from app.core.logging import (
    REQUEST_ID_HEADER,
    bind_request_id,
    configure_logging,
    get_request_id,
    reset_request_id,
)
from app.core.security import security_headers

configure_logging(settings)
logger = logging.getLogger("app.request")

app = FastAPI(
    title="Offline Academy API",
    version="0.1.0",
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)
app.state.settings = settings

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CORS_ORIGIN],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind a request id for log correlation, add security headers, log the outcome."""
    token = bind_request_id(request.headers.get(REQUEST_ID_HEADER))
    started = time.perf_counter()
    try:
        forwarded_proto = request.headers.get("x-forwarded-proto", request.url.scheme)
        if settings.FORCE_HTTPS and forwarded_proto != "https":
            response = RedirectResponse(
                str(request.url.replace(scheme="https")),
                status_code=status.HTTP_308_PERMANENT_REDIRECT,
            )
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                # Answered inside the request-id context, before headers are added.
                response = await unhandled_error_handler(request, exc)
        response.headers.update(security_headers())
        response.headers[REQUEST_ID_HEADER] = get_request_id() or ""
        logger.info(
            "request completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return response
    finally:
        reset_request_id(token)


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Offline Academy API"}
