"""
Main FastAPI application for the DirectRent core API.
Serves health, contact unlock, provider payouts and metrics.
"""
import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from directrent.api.errors import register_exception_handlers
from directrent.api.routes import health, payouts, unlocks
from directrent.core.config import settings
from directrent.core.logging import configure_logging, request_id_var
from directrent.utils.metrics import router as metrics_router

configure_logging()
logger = logging.getLogger("api")


app = FastAPI(
    title="DirectRent API",
    description="Contact unlock quota and provider payouts",
    version="1.0.0",
)

# CORS
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if not origins:
    origins = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8081"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = request.headers.get(settings.request_id_header) or f"req_{uuid4().hex[:12]}"
    request.state.request_id = request_id
    token = request_id_var.set(request_id)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers[settings.request_id_header] = request_id
    logger.info(
        "http_request",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "latency_ms": round((time.perf_counter() - start) * 1000, 1),
        },
    )
    return response


register_exception_handlers(app)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(unlocks.router)
app.include_router(payouts.router)
app.include_router(metrics_router)
