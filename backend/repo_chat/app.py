"""FastAPI application setup for Repo Chat."""

from __future__ import annotations

import time

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.routing import Match

from repo_chat.api.dependencies import get_app_settings, get_context
from repo_chat.api.routes_admin import router as admin_router
from repo_chat.api.routes_chat import router as chat_router
from repo_chat.api.routes_ingest import router as ingest_router
from repo_chat.core.errors import RepoChatError
from repo_chat.core.logging import configure_logging, get_logger
from repo_chat.core.metrics import REQUEST_COUNT, REQUEST_LATENCY

configure_logging()

logger = get_logger(__name__)

app = FastAPI(
    title="Repo Chat",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_app_settings().cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(ingest_router, prefix="/api", tags=["ingest"])
app.include_router(chat_router, prefix="/api", tags=["chat"])
app.include_router(admin_router, prefix="", tags=["admin"])


def _route_label(request: Request) -> str:
    """Path template of the matching route, so label cardinality stays bounded."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", "unmatched")
    return "unmatched"


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    started = time.perf_counter()
    endpoint = _route_label(request)
    response = await call_next(request)
    REQUEST_LATENCY.labels(endpoint=endpoint, method=request.method).observe(time.perf_counter() - started)
    REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=str(response.status_code)).inc()
    return response


@app.exception_handler(RepoChatError)
async def handle_repo_chat_error(request: Request, exc: RepoChatError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.payload()))


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": {"errors": jsonable_encoder(exc.errors())}},
    )


@app.on_event("startup")
async def startup() -> None:
    """Build the shared application context on startup."""
    get_app_settings()
    get_context().warm_up()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
