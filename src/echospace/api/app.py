# src/echospace/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and installs middleware. Business logic lives in
`echospace.api.routes`, the proximity filter and the AR projector.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from echospace.core.logging import configure_logging

from .routes import router

configure_logging()

logger = logging.getLogger(__name__)

app = FastAPI(title="Echo Space API", version="0.1.0")

# CORS (dev-friendly): allow local frontends to call this API.
# Configure via env:
# - ECHOSPACE_CORS_ORIGINS="http://localhost:5173,http://127.0.0.1:5173"
# - ECHOSPACE_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("ECHOSPACE_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("ECHOSPACE_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = (
    r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$" if cors_allow_local and not cors_origins else ""
)
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(Exception)
async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )


app.include_router(router)
