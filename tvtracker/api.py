"""
FastAPI app entry point aggregating per-domain routers under tvtracker/routes.
Run with `uvicorn tvtracker.api:app`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import ensure_schema

logger = logging.getLogger(__name__)

app = FastAPI(title="tvtracker-api", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    try:
        ensure_schema()
    except Exception:
        logger.exception("ensure_schema failed")


# Include routers (split by business domain)
from .routes import base as base_routes
from .routes import accounts as accounts_routes
from .routes import media as media_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(accounts_routes.router)
app.include_router(media_routes.router)
app.include_router(logs_routes.router)
