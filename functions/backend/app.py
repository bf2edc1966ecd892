"""
FastAPI application entry point for the backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from backend.config import get_settings
from backend.routes import router


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    app = FastAPI(title="Last Used Backend (FastAPI)", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
